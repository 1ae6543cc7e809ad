from __future__ import annotations

import sys
import unittest
from pathlib import Path

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from records.validation import (
    validate_course_payload,
    validate_enrollment_payload,
    validate_student_payload,
)


class StudentPayloadTestCase(unittest.TestCase):
    def test_valid_payload_is_cleaned(self) -> None:
        cleaned, errors = validate_student_payload(
            {"name": " Ada ", "email": "Ada@Example.EDU", "course": "CS"}, require_all=True
        )
        self.assertEqual({}, errors)
        self.assertEqual({"name": "Ada", "email": "ada@example.edu", "course": "CS"}, cleaned)

    def test_missing_fields_are_reported(self) -> None:
        _, errors = validate_student_payload({"name": ""}, require_all=True)
        self.assertEqual({"name", "email", "course"}, set(errors))

    def test_invalid_email(self) -> None:
        for email in ("ada", "ada@example", "@"):
            with self.subTest(email=email):
                _, errors = validate_student_payload({"email": email}, require_all=False)
                self.assertIn("email", errors)

    def test_partial_update_checks_supplied_fields_only(self) -> None:
        cleaned, errors = validate_student_payload({"course": "EE"}, require_all=False)
        self.assertEqual({}, errors)
        self.assertEqual({"course": "EE"}, cleaned)

    def test_non_object_body(self) -> None:
        _, errors = validate_student_payload(None, require_all=True)
        self.assertEqual({"_global": "Request body must be JSON."}, errors)


class CoursePayloadTestCase(unittest.TestCase):
    def test_credits_must_be_positive_integer(self) -> None:
        for credits in (0, -1, "3.5", "three"):
            with self.subTest(credits=credits):
                _, errors = validate_course_payload({"credits": credits}, require_all=False)
                self.assertIn("credits", errors)

    def test_numeric_string_credits_are_accepted(self) -> None:
        cleaned, errors = validate_course_payload(
            {"code": "CS101", "name": "Intro", "credits": "4", "department": "CS"},
            require_all=True,
        )
        self.assertEqual({}, errors)
        self.assertEqual(4, cleaned["credits"])


class EnrollmentPayloadTestCase(unittest.TestCase):
    def test_create_defaults(self) -> None:
        cleaned, errors = validate_enrollment_payload(
            {"student_id": 1, "course_id": 2, "semester": "Fall 2024"}, require_all=True
        )
        self.assertEqual({}, errors)
        self.assertIsNone(cleaned["grade"])
        self.assertEqual("enrolled", cleaned["status"])
        self.assertEqual("1", cleaned["student_id"])

    def test_create_requires_references_and_semester(self) -> None:
        _, errors = validate_enrollment_payload({}, require_all=True)
        self.assertEqual({"student_id", "course_id", "semester"}, set(errors))

    def test_grade_and_status_must_be_known(self) -> None:
        _, errors = validate_enrollment_payload(
            {"grade": "E", "status": "paused"}, require_all=False
        )
        self.assertEqual({"grade", "status"}, set(errors))

    def test_update_cannot_change_references(self) -> None:
        _, errors = validate_enrollment_payload({"student_id": 3}, require_all=False)
        self.assertIn("student_id", errors)

    def test_update_with_empty_grade_clears_it(self) -> None:
        cleaned, errors = validate_enrollment_payload({"grade": ""}, require_all=False)
        self.assertEqual({}, errors)
        self.assertEqual({"grade": None}, cleaned)

    def test_update_with_empty_status_is_rejected(self) -> None:
        _, errors = validate_enrollment_payload({"status": " "}, require_all=False)
        self.assertIn("status", errors)


if __name__ == "__main__":
    unittest.main()
