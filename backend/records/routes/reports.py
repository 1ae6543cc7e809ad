"""Dashboard, statistics and CSV export endpoints."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, TypeVar

from flask import Blueprint, Response, jsonify

from ..aggregator import RECENT_ACTIVITY_LIMIT, build_dashboard, program_counts
from ..context import current_context, require_auth
from ..csv_export import enrollments_csv, students_csv
from ..errors import UpstreamError
from ..queries import COURSES, ENROLLMENTS, STUDENTS

reports_bp = Blueprint("reports", __name__, url_prefix="/api")

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


def _or_default(fetch: Callable[[], _T], default: _T, what: str) -> _T:
    """Run one sub-fetch; a failure degrades to ``default`` instead of failing the response."""

    try:
        return fetch()
    except UpstreamError:
        logger.warning("Treating %s as empty after store failure", what)
        return default


def _csv_response(content: str, filename: str) -> Response:
    response = Response(content, mimetype="text/csv")
    response.headers["Content-Disposition"] = f'attachment; filename="{filename}"'
    return response


@reports_bp.get("/dashboard")
@require_auth
def dashboard():
    store = current_context().store

    enrollments = _or_default(
        lambda: store.fetch_all(ENROLLMENTS, order_by="enrolled_at", descending=True),
        [],
        "enrollments",
    )
    payload = build_dashboard(
        total_students=_or_default(lambda: store.count(STUDENTS), 0, "student count"),
        total_courses=_or_default(lambda: store.count(COURSES), 0, "course count"),
        total_enrollments=_or_default(lambda: store.count(ENROLLMENTS), 0, "enrollment count"),
        enrollments=enrollments,
        courses=_or_default(
            lambda: store.fetch_all(COURSES, columns=("id", "department")), [], "courses"
        ),
        recent=enrollments[:RECENT_ACTIVITY_LIMIT],
    )
    return jsonify(payload)


@reports_bp.get("/stats")
@require_auth
def legacy_stats():
    """Older statistics shape, kept for existing clients."""

    store = current_context().store
    total = _or_default(lambda: store.count(STUDENTS), 0, "student count")
    students = _or_default(
        lambda: store.fetch_all(STUDENTS, order_by="created_at", descending=True),
        [],
        "students",
    )
    counts = program_counts(students)
    payload: Dict[str, Any] = {
        "total": total,
        "course_counts": counts,
        "courses": list(counts),
        "recent": students[:RECENT_ACTIVITY_LIMIT],
    }
    return jsonify(payload)


@reports_bp.get("/export/students")
@require_auth
def export_students():
    store = current_context().store
    rows = _or_default(
        lambda: store.fetch_all(
            STUDENTS, columns=("id", "name", "email", "course", "created_at")
        ),
        [],
        "student export",
    )
    return _csv_response(students_csv(rows), "students_export.csv")


@reports_bp.get("/export/enrollments")
@require_auth
def export_enrollments():
    store = current_context().store
    rows = _or_default(lambda: store.fetch_all(ENROLLMENTS), [], "enrollment export")
    return _csv_response(enrollments_csv(rows), "enrollments_export.csv")


__all__ = ["reports_bp"]
