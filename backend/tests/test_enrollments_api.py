from __future__ import annotations

import sys
import unittest
from pathlib import Path

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from fakes import ApiTestCase
from records.queries import ENROLLMENT_FIELDS, ENROLLMENTS


class EnrollmentApiTestCase(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.ada = self.create_student("Ada Lovelace")
        self.grace = self.create_student("Grace Hopper")
        self.intro = self.create_course("CS101", "Intro to Programming", credits=3)
        self.calc = self.create_course("MA101", "Calculus", credits=4, department="Mathematics")

    def test_create_defaults_to_enrolled_without_grade(self) -> None:
        response = self.enroll(self.ada["id"], self.intro["id"])
        self.assertEqual(201, response.status_code)
        enrollment = response.get_json()["enrollment"]
        self.assertEqual("Enrollment added successfully!", response.get_json()["message"])
        self.assertEqual("enrolled", enrollment["status"])
        self.assertIsNone(enrollment["grade"])

    def test_listing_rows_are_flat(self) -> None:
        self.enroll(self.ada["id"], self.intro["id"], grade="a-", status="completed")
        row = self.get("/api/enrollments").get_json()["enrollments"][0]
        self.assertEqual(set(ENROLLMENT_FIELDS), set(row))
        self.assertEqual("Ada Lovelace", row["student_name"])
        self.assertEqual("CS101", row["course_code"])
        self.assertEqual(3, row["course_credits"])
        self.assertEqual("A-", row["grade"])

    def test_duplicate_enrollment_conflicts_and_keeps_first(self) -> None:
        first = self.enroll(self.ada["id"], self.intro["id"], grade="B")
        second = self.enroll(self.ada["id"], self.intro["id"], grade="A")

        self.assertEqual(201, first.status_code)
        self.assertEqual(409, second.status_code)
        self.assertIn("already enrolled", second.get_json()["error"])
        self.assertEqual(1, len(self.db.tables[ENROLLMENTS]))
        self.assertEqual("B", self.db.tables[ENROLLMENTS][0]["grade"])

    def test_same_course_in_another_semester_is_allowed(self) -> None:
        self.enroll(self.ada["id"], self.intro["id"], semester="Fall 2024")
        response = self.enroll(self.ada["id"], self.intro["id"], semester="Spring 2025")
        self.assertEqual(201, response.status_code)

    def test_unknown_grade_or_status_is_rejected(self) -> None:
        response = self.enroll(self.ada["id"], self.intro["id"], grade="E", status="paused")
        self.assertEqual(400, response.status_code)
        self.assertEqual({"grade", "status"}, set(response.get_json()["details"]))
        self.assertEqual([], self.db.tables[ENROLLMENTS])

    def test_references_must_belong_to_caller(self) -> None:
        outsider = self.create_student("Mallory", token=self.other_token)
        response = self.enroll(outsider["id"], self.intro["id"])
        self.assertEqual(404, response.status_code)
        self.assertEqual("Student not found.", response.get_json()["error"])

        response = self.enroll(self.ada["id"], 9999)
        self.assertEqual(404, response.status_code)
        self.assertEqual("Course not found.", response.get_json()["error"])

    def test_filters(self) -> None:
        self.enroll(self.ada["id"], self.intro["id"], grade="A", status="completed")
        self.enroll(self.grace["id"], self.intro["id"], semester="Spring 2025")
        self.enroll(self.grace["id"], self.calc["id"], grade="B", status="completed")

        completed = self.get("/api/enrollments?status=completed").get_json()
        self.assertEqual(2, completed["total"])

        graded_a = self.get("/api/enrollments?grade=a").get_json()
        self.assertEqual(["Ada Lovelace"], [row["student_name"] for row in graded_a["enrollments"]])

        spring = self.get("/api/enrollments?semester=Spring%202025").get_json()
        self.assertEqual(1, spring["total"])

    def test_invalid_filter_is_rejected(self) -> None:
        response = self.get("/api/enrollments?status=paused")
        self.assertEqual(400, response.status_code)
        self.assertEqual("Invalid filter.", response.get_json()["error"])

    def test_search_spans_student_and_course(self) -> None:
        self.enroll(self.ada["id"], self.intro["id"])
        self.enroll(self.grace["id"], self.calc["id"])

        by_student = self.get("/api/enrollments?search=grace").get_json()
        by_course = self.get("/api/enrollments?search=cs1").get_json()
        by_course_name = self.get("/api/enrollments?search=calculus").get_json()

        self.assertEqual(1, by_student["total"])
        self.assertEqual("MA101", by_student["enrollments"][0]["course_code"])
        self.assertEqual("Ada Lovelace", by_course["enrollments"][0]["student_name"])
        self.assertEqual(1, by_course_name["total"])

    def test_update_grade_and_clear_it(self) -> None:
        created = self.enroll(self.ada["id"], self.intro["id"]).get_json()["enrollment"]
        path = f"/api/enrollments/{created['id']}"

        graded = self.put(path, {"grade": "B+", "status": "completed"})
        self.assertEqual(200, graded.status_code)
        self.assertEqual("B+", graded.get_json()["enrollment"]["grade"])

        cleared = self.put(path, {"grade": ""})
        self.assertIsNone(cleared.get_json()["enrollment"]["grade"])
        self.assertEqual("completed", cleared.get_json()["enrollment"]["status"])

    def test_update_semester_into_existing_triple_conflicts(self) -> None:
        self.enroll(self.ada["id"], self.intro["id"], semester="Fall 2024")
        other = self.enroll(self.ada["id"], self.intro["id"], semester="Spring 2025").get_json()
        response = self.put(
            f"/api/enrollments/{other['enrollment']['id']}", {"semester": "Fall 2024"}
        )
        self.assertEqual(409, response.status_code)

    def test_update_cannot_move_enrollment(self) -> None:
        created = self.enroll(self.ada["id"], self.intro["id"]).get_json()["enrollment"]
        response = self.put(f"/api/enrollments/{created['id']}", {"course_id": self.calc["id"]})
        self.assertEqual(400, response.status_code)
        self.assertIn("course_id", response.get_json()["details"])

    def test_cross_tenant_update_and_delete_look_missing(self) -> None:
        created = self.enroll(self.ada["id"], self.intro["id"]).get_json()["enrollment"]
        path = f"/api/enrollments/{created['id']}"

        update = self.put(path, {"grade": "F"}, token=self.other_token)
        delete = self.delete(path, token=self.other_token)

        self.assertEqual(404, update.status_code)
        self.assertEqual(404, delete.status_code)
        self.assertEqual("Enrollment not found.", update.get_json()["error"])
        self.assertIsNone(self.db.tables[ENROLLMENTS][0]["grade"])

    def test_delete(self) -> None:
        created = self.enroll(self.ada["id"], self.intro["id"]).get_json()["enrollment"]
        response = self.delete(f"/api/enrollments/{created['id']}")
        self.assertEqual("Enrollment deleted successfully!", response.get_json()["message"])
        self.assertEqual([], self.db.tables[ENROLLMENTS])

    def test_semesters(self) -> None:
        self.enroll(self.ada["id"], self.intro["id"], semester="Spring 2025")
        self.enroll(self.grace["id"], self.intro["id"], semester="Fall 2024")
        self.enroll(self.grace["id"], self.calc["id"], semester="Fall 2024")
        self.assertEqual(["Fall 2024", "Spring 2025"], self.get("/api/semesters").get_json())


if __name__ == "__main__":
    unittest.main()
