"""Enrollment endpoints.

Listings join each enrollment to its student and course and return flat rows.
"""

from __future__ import annotations

from flask import Blueprint, request

from ..context import current_context, require_auth
from ..errors import UpstreamError
from ..http import handle_upstream_error, json_error, validation_failed
from ..queries import COURSES, ENROLLMENTS, STUDENTS
from ..validation import validate_enrollment_payload
from ._crud import create_record, delete_record, distinct_field, list_records, update_record

enrollments_bp = Blueprint("enrollments", __name__)


@enrollments_bp.get("/api/enrollments")
@require_auth
def list_enrollments():
    return list_records(ENROLLMENTS)


@enrollments_bp.post("/api/enrollments")
@require_auth
def create_enrollment():
    cleaned, errors = validate_enrollment_payload(
        request.get_json(silent=True), require_all=True
    )
    if errors:
        return validation_failed(errors)

    store = current_context().store
    try:
        if store.find(STUDENTS, cleaned["student_id"]) is None:
            return json_error("Student not found.", 404, {"student_id": "Select an existing student."})
        if store.find(COURSES, cleaned["course_id"]) is None:
            return json_error("Course not found.", 404, {"course_id": "Select an existing course."})
    except UpstreamError as exc:
        return handle_upstream_error("Failed to create enrollment", exc)

    return create_record(ENROLLMENTS, "enrollment", cleaned)


@enrollments_bp.put("/api/enrollments/<enrollment_id>")
@require_auth
def update_enrollment(enrollment_id: str):
    cleaned, errors = validate_enrollment_payload(
        request.get_json(silent=True), require_all=False
    )
    if errors:
        return validation_failed(errors)
    if not cleaned:
        return json_error("No changes supplied.", 400)
    return update_record(ENROLLMENTS, "enrollment", enrollment_id, cleaned)


@enrollments_bp.delete("/api/enrollments/<enrollment_id>")
@require_auth
def delete_enrollment(enrollment_id: str):
    return delete_record(ENROLLMENTS, "enrollment", enrollment_id)


@enrollments_bp.get("/api/semesters")
@require_auth
def list_semesters():
    return distinct_field(ENROLLMENTS, "semester")


__all__ = ["enrollments_bp"]
