"""Dashboard statistics computed from already-fetched rows.

Every function here is pure: it reads the rows it is handed and returns new
values. ``None`` is accepted anywhere a list of rows is expected.
"""

from __future__ import annotations

from collections import Counter
from typing import Any, Dict, Iterable, List, Mapping

from .grades import GRADE_ORDER, STATUS_VALUES, grade_points

DEFAULT_CREDITS = 3
RECENT_ACTIVITY_LIMIT = 5
PENDING_GRADE = "Pending"

Row = Mapping[str, Any]


def _rows(rows: Iterable[Row] | None) -> List[Row]:
    return list(rows) if rows else []


def _credits(value: Any) -> int:
    try:
        credits = int(value)
    except (TypeError, ValueError):
        return DEFAULT_CREDITS
    return credits if credits > 0 else DEFAULT_CREDITS


def _sorted_counts(counter: Counter) -> Dict[str, int]:
    ordered = sorted(counter.items(), key=lambda item: (-item[1], str(item[0])))
    return {key: count for key, count in ordered}


def weighted_gpa(enrollments: Iterable[Row] | None) -> float | None:
    """Credit-weighted GPA over graded enrollments.

    Returns ``None`` when no recognized grade carries any credits, so that
    "nothing graded yet" never reads as a 0.00 GPA.
    """

    total_credits = 0
    total_points = 0.0

    for row in _rows(enrollments):
        points = grade_points(row.get("grade"))
        if points is None:
            continue
        credits = _credits(row.get("course_credits"))
        total_credits += credits
        total_points += points * credits

    if total_credits == 0:
        return None
    return round(total_points / total_credits, 2)


def grade_distribution(enrollments: Iterable[Row] | None) -> Dict[str, int]:
    counts: Counter = Counter()
    for row in _rows(enrollments):
        grade = row.get("grade")
        if grade_points(grade) is not None:
            counts[grade] += 1
    return {grade: counts[grade] for grade in GRADE_ORDER if counts[grade]}


def course_popularity(enrollments: Iterable[Row] | None) -> Dict[str, int]:
    counts: Counter = Counter()
    for row in _rows(enrollments):
        code = row.get("course_code")
        if code is not None:
            counts[code] += 1
    return _sorted_counts(counts)


def department_counts(courses: Iterable[Row] | None) -> Dict[str, int]:
    counts: Counter = Counter(row.get("department") for row in _rows(courses))
    counts.pop(None, None)
    return _sorted_counts(counts)


def program_counts(students: Iterable[Row] | None) -> Dict[str, int]:
    """Number of students per program label, for the legacy stats shape."""

    counts: Counter = Counter(row.get("course") for row in _rows(students))
    counts.pop(None, None)
    return _sorted_counts(counts)


def status_counts(enrollments: Iterable[Row] | None) -> Dict[str, int]:
    counts = {status: 0 for status in STATUS_VALUES}
    for row in _rows(enrollments):
        status = row.get("status")
        if status in counts:
            counts[status] += 1
    return counts


def recent_activity(
    recent: Iterable[Row] | None, *, limit: int = RECENT_ACTIVITY_LIMIT
) -> List[Dict[str, Any]]:
    """Project the newest enrollments (already ordered) for the activity feed."""

    activity: List[Dict[str, Any]] = []
    for row in _rows(recent)[:limit]:
        activity.append(
            {
                "student": row.get("student_name"),
                "course": f"{row.get('course_code')} — {row.get('course_name')}",
                "grade": row.get("grade") or PENDING_GRADE,
                "semester": row.get("semester"),
                "date": row.get("enrolled_at"),
            }
        )
    return activity


def build_dashboard(
    *,
    total_students: int | None,
    total_courses: int | None,
    total_enrollments: int | None,
    enrollments: Iterable[Row] | None,
    courses: Iterable[Row] | None,
    recent: Iterable[Row] | None,
) -> Dict[str, Any]:
    enrollment_rows = _rows(enrollments)
    return {
        "total_students": total_students or 0,
        "total_courses": total_courses or 0,
        "total_enrollments": total_enrollments or 0,
        "gpa": weighted_gpa(enrollment_rows),
        "grade_distribution": grade_distribution(enrollment_rows),
        "course_popularity": course_popularity(enrollment_rows),
        "department_counts": department_counts(courses),
        "status_counts": status_counts(enrollment_rows),
        "recent_activity": recent_activity(recent),
    }


__all__ = [
    "DEFAULT_CREDITS",
    "RECENT_ACTIVITY_LIMIT",
    "PENDING_GRADE",
    "weighted_gpa",
    "grade_distribution",
    "course_popularity",
    "department_counts",
    "program_counts",
    "status_counts",
    "recent_activity",
    "build_dashboard",
]
