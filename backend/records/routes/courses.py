"""Course endpoints."""

from __future__ import annotations

from flask import Blueprint, request

from ..context import require_auth
from ..http import json_error, validation_failed
from ..queries import COURSES
from ..validation import validate_course_payload
from ._crud import create_record, delete_record, distinct_field, list_records, update_record

courses_bp = Blueprint("courses", __name__)


@courses_bp.get("/api/courses")
@require_auth
def list_courses():
    return list_records(COURSES)


@courses_bp.post("/api/courses")
@require_auth
def create_course():
    cleaned, errors = validate_course_payload(request.get_json(silent=True), require_all=True)
    if errors:
        return validation_failed(errors)
    return create_record(COURSES, "course", cleaned)


@courses_bp.put("/api/courses/<course_id>")
@require_auth
def update_course(course_id: str):
    cleaned, errors = validate_course_payload(request.get_json(silent=True), require_all=False)
    if errors:
        return validation_failed(errors)
    if not cleaned:
        return json_error("No changes supplied.", 400)
    return update_record(COURSES, "course", course_id, cleaned)


@courses_bp.delete("/api/courses/<course_id>")
@require_auth
def delete_course(course_id: str):
    # Enrollments for the course are removed by the store's cascade.
    return delete_record(COURSES, "course", course_id)


@courses_bp.get("/api/departments")
@require_auth
def list_departments():
    return distinct_field(COURSES, "department")


__all__ = ["courses_bp"]
