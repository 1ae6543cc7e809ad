"""Demo data for a fresh account."""

from __future__ import annotations

import logging
from random import Random
from typing import Any, Dict, List, Sequence

from .errors import RecordsError
from .queries import COURSES, ENROLLMENTS, STUDENTS
from .stores.base import RecordStore

logger = logging.getLogger(__name__)

SEED_STUDENT_LIMIT = 10
DEFAULT_SEED = 2024

DEMO_STUDENTS: Sequence[tuple] = (
    ("Ahmed Khan", "ahmed.khan@university.edu", "Computer Science"),
    ("Fatima Ali", "fatima.ali@university.edu", "Computer Science"),
    ("Muhammad Hassan", "m.hassan@university.edu", "Software Engineering"),
    ("Ayesha Siddiqui", "ayesha.s@university.edu", "Data Science"),
    ("Omar Farooq", "omar.f@university.edu", "Computer Science"),
    ("Zainab Malik", "zainab.m@university.edu", "Information Technology"),
    ("Ali Raza", "ali.raza@university.edu", "Software Engineering"),
    ("Hira Nawaz", "hira.n@university.edu", "Computer Science"),
    ("Bilal Ahmed", "bilal.a@university.edu", "Electrical Engineering"),
    ("Sana Sheikh", "sana.s@university.edu", "Data Science"),
    ("Usman Tariq", "usman.t@university.edu", "Computer Science"),
    ("Maryam Javed", "maryam.j@university.edu", "Business Administration"),
    ("Hamza Iqbal", "hamza.i@university.edu", "Software Engineering"),
    ("Nadia Hussain", "nadia.h@university.edu", "Computer Science"),
    ("Saad Mehmood", "saad.m@university.edu", "Electrical Engineering"),
    ("Rabia Aslam", "rabia.a@university.edu", "Data Science"),
    ("Faisal Shahzad", "faisal.s@university.edu", "Computer Science"),
    ("Amina Yousuf", "amina.y@university.edu", "Information Technology"),
    ("Tahir Abbas", "tahir.a@university.edu", "Software Engineering"),
    ("Khadija Riaz", "khadija.r@university.edu", "Business Administration"),
    ("Imran Haider", "imran.h@university.edu", "Computer Science"),
    ("Sara Akram", "sara.a@university.edu", "Data Science"),
    ("Junaid Akhtar", "junaid.a@university.edu", "Electrical Engineering"),
    ("Maham Zafar", "maham.z@university.edu", "Software Engineering"),
    ("Rizwan Qureshi", "rizwan.q@university.edu", "Computer Science"),
    ("Anum Batool", "anum.b@university.edu", "Information Technology"),
    ("Danish Saleem", "danish.s@university.edu", "Computer Science"),
    ("Laiba Anwar", "laiba.a@university.edu", "Business Administration"),
    ("Waqas Aziz", "waqas.a@university.edu", "Software Engineering"),
    ("Maheen Rehman", "maheen.r@university.edu", "Data Science"),
    ("Adeel Shah", "adeel.s@university.edu", "Electrical Engineering"),
    ("Nimra Khalid", "nimra.k@university.edu", "Computer Science"),
    ("Zubair Nadeem", "zubair.n@university.edu", "Software Engineering"),
    ("Iqra Pervez", "iqra.p@university.edu", "Information Technology"),
    ("Kamran Ashraf", "kamran.a@university.edu", "Computer Science"),
    ("Bushra Jamil", "bushra.j@university.edu", "Data Science"),
    ("Naveed Ansar", "naveed.a@university.edu", "Electrical Engineering"),
    ("Sobia Arif", "sobia.a@university.edu", "Business Administration"),
    ("Arslan Butt", "arslan.b@university.edu", "Software Engineering"),
    ("Sumaya Noor", "sumaya.n@university.edu", "Computer Science"),
    ("Kashif Rafiq", "kashif.r@university.edu", "Information Technology"),
    ("Alina Waheed", "alina.w@university.edu", "Data Science"),
    ("Shoaib Mushtaq", "shoaib.m@university.edu", "Electrical Engineering"),
    ("Noor Fatima", "noor.f@university.edu", "Computer Science"),
    ("Taimoor Ghani", "taimoor.g@university.edu", "Software Engineering"),
    ("Areeba Saeed", "areeba.s@university.edu", "Business Administration"),
    ("Farhan Latif", "farhan.l@university.edu", "Computer Science"),
    ("Mehwish Zahoor", "mehwish.z@university.edu", "Data Science"),
    ("Asad Mirza", "asad.m@university.edu", "Electrical Engineering"),
    ("Huma Nasir", "huma.n@university.edu", "Information Technology"),
)

DEMO_COURSES: Sequence[tuple] = (
    ("CS101", "Introduction to Programming", 3, "Computer Science"),
    ("CS201", "Data Structures & Algorithms", 4, "Computer Science"),
    ("CS301", "Database Systems", 3, "Computer Science"),
    ("CS401", "Operating Systems", 3, "Computer Science"),
    ("CS402", "Artificial Intelligence", 3, "Computer Science"),
    ("SE201", "Software Design Patterns", 3, "Software Engineering"),
    ("SE301", "Software Project Management", 3, "Software Engineering"),
    ("SE401", "DevOps & Cloud Computing", 3, "Software Engineering"),
    ("DS201", "Statistics for Data Science", 3, "Data Science"),
    ("DS301", "Machine Learning", 4, "Data Science"),
    ("DS401", "Deep Learning & Neural Networks", 3, "Data Science"),
    ("EE101", "Circuit Analysis", 4, "Electrical Engineering"),
    ("EE201", "Digital Logic Design", 3, "Electrical Engineering"),
    ("EE301", "Signals & Systems", 3, "Electrical Engineering"),
    ("IT201", "Web Technologies", 3, "Information Technology"),
    ("IT301", "Network Security", 3, "Information Technology"),
    ("IT401", "Cloud Infrastructure", 3, "Information Technology"),
    ("BA201", "Principles of Marketing", 3, "Business Administration"),
    ("BA301", "Financial Accounting", 3, "Business Administration"),
    ("BA401", "Business Analytics", 3, "Business Administration"),
)

# Weighted pools: repeats make a grade or status more likely.
GRADE_POOL = ("A+", "A", "A", "A-", "B+", "B+", "B", "B", "B-", "C+", "C", "C-", "D", "F", None, None)
SEMESTERS = ("Fall 2024", "Spring 2025", "Fall 2025", "Spring 2026")
STATUS_POOL = ("completed", "completed", "completed", "enrolled", "enrolled")


class AlreadySeededError(RecordsError):
    """Raised when the account already holds more than a handful of students."""


def demo_students() -> List[Dict[str, Any]]:
    return [
        {"name": name, "email": email, "course": program}
        for name, email, program in DEMO_STUDENTS
    ]


def demo_courses() -> List[Dict[str, Any]]:
    return [
        {"code": code, "name": name, "credits": credits, "department": department}
        for code, name, credits, department in DEMO_COURSES
    ]


def build_enrollments(
    students: Sequence[Dict[str, Any]], courses: Sequence[Dict[str, Any]], rng: Random
) -> List[Dict[str, Any]]:
    """Give every student two to four distinct courses.

    Completed enrollments always carry a grade; ongoing ones
    occasionally have one.
    """

    enrollments: List[Dict[str, Any]] = []
    used = set()

    for student in students:
        count = rng.randint(2, 4)
        picks = rng.sample(list(courses), min(count, len(courses)))
        for course in picks:
            semester = rng.choice(SEMESTERS)
            key = (student["id"], course["id"], semester)
            if key in used:
                continue
            used.add(key)

            status = rng.choice(STATUS_POOL)
            if status == "completed":
                grade = rng.choice(GRADE_POOL[:-2])
            elif rng.random() > 0.7:
                grade = rng.choice(GRADE_POOL)
            else:
                grade = None

            enrollments.append(
                {
                    "student_id": student["id"],
                    "course_id": course["id"],
                    "semester": semester,
                    "grade": grade,
                    "status": status,
                }
            )
    return enrollments


def seed_demo_data(store: RecordStore, *, seed: int | None = DEFAULT_SEED) -> Dict[str, int]:
    """Insert demo students, courses and enrollments for the store's tenant."""

    existing = store.count(STUDENTS)
    if existing > SEED_STUDENT_LIMIT:
        raise AlreadySeededError(
            "Database already has data. Clear it first or use the existing data."
        )

    logger.info("Seeding demo data for tenant %s", store.tenant.id)
    students = store.insert(STUDENTS, demo_students())
    courses = store.insert(COURSES, demo_courses())
    enrollments = build_enrollments(students, courses, Random(seed))
    store.insert(ENROLLMENTS, enrollments)

    counts = {
        "students": len(students),
        "courses": len(courses),
        "enrollments": len(enrollments),
    }
    logger.info(
        "Seeded %(students)d students, %(courses)d courses, %(enrollments)d enrollments",
        counts,
    )
    return counts


def clear_data(store: RecordStore) -> None:
    """Delete every enrollment, course and student of the store's tenant."""

    for collection in (ENROLLMENTS, COURSES, STUDENTS):
        store.delete_all(collection)
    logger.info("Cleared all data for tenant %s", store.tenant.id)


__all__ = [
    "SEED_STUDENT_LIMIT",
    "AlreadySeededError",
    "demo_students",
    "demo_courses",
    "build_enrollments",
    "seed_demo_data",
    "clear_data",
]
