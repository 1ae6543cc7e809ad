"""Demo data endpoints."""

from __future__ import annotations

from flask import Blueprint, jsonify

from ..context import current_context, require_auth
from ..errors import DuplicateEnrollmentError, UpstreamError
from ..http import handle_upstream_error, json_error
from ..seeding import AlreadySeededError, clear_data, seed_demo_data

seed_bp = Blueprint("seed", __name__, url_prefix="/api")


@seed_bp.post("/seed")
@require_auth
def seed():
    try:
        counts = seed_demo_data(current_context().store)
    except AlreadySeededError as exc:
        return json_error(str(exc), 400)
    except (DuplicateEnrollmentError, UpstreamError) as exc:
        return handle_upstream_error("Failed to seed database", exc)

    message = (
        f"Database seeded! Added {counts['students']} students, "
        f"{counts['courses']} courses, and {counts['enrollments']} enrollments."
    )
    return jsonify({"message": message, "counts": counts})


@seed_bp.post("/clear")
@require_auth
def clear():
    try:
        clear_data(current_context().store)
    except UpstreamError as exc:
        return handle_upstream_error("Failed to clear database", exc)
    return jsonify({"message": "All data cleared successfully."})


__all__ = ["seed_bp"]
