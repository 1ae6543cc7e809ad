"""Request payload validation for students, courses and enrollments.

Each validator returns ``(cleaned, errors)``. With ``require_all`` every
required field must be present and non-empty; otherwise only the fields that
were supplied are checked and returned.
"""

from __future__ import annotations

from typing import Any, Dict, Tuple

from .grades import DEFAULT_STATUS, parse_grade, parse_status
from .http import clean_string

Cleaned = Dict[str, Any]
Errors = Dict[str, str]


def _require(payload: Dict[str, Any], errors: Errors, field: str, message: str) -> str | None:
    value = clean_string(payload.get(field))
    if field not in payload or value == "":
        errors[field] = message
        return None
    return value


def _valid_email(email: str) -> bool:
    return "@" in email and "." in email.split("@")[-1]


def validate_student_payload(
    payload: Dict[str, Any] | None, *, require_all: bool
) -> Tuple[Cleaned, Errors]:
    if not isinstance(payload, dict):
        return {}, {"_global": "Request body must be JSON."}

    errors: Errors = {}
    cleaned: Cleaned = {}

    if require_all or "name" in payload:
        name = _require(payload, errors, "name", "Name is required.")
        if name is not None:
            cleaned["name"] = name

    if require_all or "email" in payload:
        email = _require(payload, errors, "email", "Email is required.")
        if email is not None:
            if _valid_email(email):
                cleaned["email"] = email.lower()
            else:
                errors["email"] = "Enter a valid email address."

    if require_all or "course" in payload:
        course = _require(payload, errors, "course", "Course of study is required.")
        if course is not None:
            cleaned["course"] = course

    return cleaned, errors


def validate_course_payload(
    payload: Dict[str, Any] | None, *, require_all: bool
) -> Tuple[Cleaned, Errors]:
    if not isinstance(payload, dict):
        return {}, {"_global": "Request body must be JSON."}

    errors: Errors = {}
    cleaned: Cleaned = {}

    if require_all or "code" in payload:
        code = _require(payload, errors, "code", "Course code is required.")
        if code is not None:
            cleaned["code"] = code

    if require_all or "name" in payload:
        name = _require(payload, errors, "name", "Course name is required.")
        if name is not None:
            cleaned["name"] = name

    if require_all or "credits" in payload:
        raw_credits = _require(payload, errors, "credits", "Credits are required.")
        if raw_credits is not None:
            try:
                credits_value = int(float(raw_credits))
                if credits_value <= 0 or credits_value != float(raw_credits):
                    raise ValueError
                cleaned["credits"] = credits_value
            except (TypeError, ValueError):
                errors["credits"] = "Credits must be a positive integer."

    if require_all or "department" in payload:
        department = _require(payload, errors, "department", "Department is required.")
        if department is not None:
            cleaned["department"] = department

    return cleaned, errors


def validate_enrollment_payload(
    payload: Dict[str, Any] | None, *, require_all: bool
) -> Tuple[Cleaned, Errors]:
    """Validate an enrollment create (``require_all``) or update payload.

    Student and course are fixed once the enrollment exists. On update an
    explicitly empty ``grade`` clears the grade.
    """

    if not isinstance(payload, dict):
        return {}, {"_global": "Request body must be JSON."}

    errors: Errors = {}
    cleaned: Cleaned = {}

    if require_all:
        student_id = _require(payload, errors, "student_id", "Student is required.")
        if student_id is not None:
            cleaned["student_id"] = student_id
        course_id = _require(payload, errors, "course_id", "Course is required.")
        if course_id is not None:
            cleaned["course_id"] = course_id
    else:
        if "student_id" in payload:
            errors["student_id"] = "Student cannot be changed."
        if "course_id" in payload:
            errors["course_id"] = "Course cannot be changed."

    if require_all or "semester" in payload:
        semester = _require(payload, errors, "semester", "Semester is required.")
        if semester is not None:
            cleaned["semester"] = semester

    if "grade" in payload:
        try:
            cleaned["grade"] = parse_grade(payload.get("grade"))
        except ValueError as exc:
            errors["grade"] = str(exc)
    elif require_all:
        cleaned["grade"] = None

    if clean_string(payload.get("status")):
        try:
            cleaned["status"] = parse_status(payload.get("status")).value
        except ValueError as exc:
            errors["status"] = str(exc)
    elif require_all:
        cleaned["status"] = DEFAULT_STATUS.value
    elif "status" in payload:
        errors["status"] = "Status cannot be empty."

    return cleaned, errors


__all__ = [
    "validate_student_payload",
    "validate_course_payload",
    "validate_enrollment_payload",
]
