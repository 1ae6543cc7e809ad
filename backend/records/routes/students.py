"""Student endpoints."""

from __future__ import annotations

from flask import Blueprint, request

from ..context import require_auth
from ..http import json_error, validation_failed
from ..queries import STUDENTS
from ..validation import validate_student_payload
from ._crud import create_record, delete_record, list_records, update_record

students_bp = Blueprint("students", __name__)


@students_bp.get("/api/students")
@require_auth
def list_students():
    return list_records(STUDENTS)


@students_bp.post("/api/students")
@require_auth
def create_student():
    cleaned, errors = validate_student_payload(request.get_json(silent=True), require_all=True)
    if errors:
        return validation_failed(errors)
    return create_record(STUDENTS, "student", cleaned)


@students_bp.put("/api/students/<student_id>")
@require_auth
def update_student(student_id: str):
    cleaned, errors = validate_student_payload(request.get_json(silent=True), require_all=False)
    if errors:
        return validation_failed(errors)
    if not cleaned:
        return json_error("No changes supplied.", 400)
    return update_record(STUDENTS, "student", student_id, cleaned)


@students_bp.delete("/api/students/<student_id>")
@require_auth
def delete_student(student_id: str):
    return delete_record(STUDENTS, "student", student_id)


__all__ = ["students_bp"]
