"""Listing and mutation flow shared by the student, course and enrollment routes."""

from __future__ import annotations

import logging
from typing import Any, Dict

from flask import jsonify, request

from ..context import current_context
from ..errors import DuplicateEnrollmentError, NotFoundError, UpstreamError, ValidationError
from ..http import handle_upstream_error, handle_validation_error, json_error
from ..queries import LISTINGS, build_listing_query, is_all_request, page_payload

logger = logging.getLogger(__name__)


def list_records(collection: str):
    store = current_context().store
    spec = LISTINGS[collection]

    try:
        if is_all_request(request.args):
            rows = store.fetch_all(
                collection, columns=spec.all_columns, order_by=spec.all_order
            )
            return jsonify({collection: rows})

        query = build_listing_query(collection, request.args)
        page = store.fetch_page(query)
    except ValidationError as exc:
        return handle_validation_error(exc)
    except UpstreamError as exc:
        return handle_upstream_error(f"Failed to fetch {collection}", exc)

    return jsonify(page_payload(collection, query, page))


def create_record(collection: str, label: str, cleaned: Dict[str, Any]):
    store = current_context().store
    try:
        rows = store.insert(collection, [cleaned])
    except DuplicateEnrollmentError as exc:
        return json_error(str(exc), 409)
    except UpstreamError as exc:
        return handle_upstream_error(f"Failed to add {label}", exc)

    return (
        jsonify(
            {
                "message": f"{label.capitalize()} added successfully!",
                label: rows[0] if rows else None,
            }
        ),
        201,
    )


def update_record(collection: str, label: str, record_id: str, cleaned: Dict[str, Any]):
    """Update a record after confirming it exists for the caller.

    A record owned by another tenant is reported exactly like a missing one.
    """

    store = current_context().store
    not_found = f"{label.capitalize()} not found."
    try:
        if store.find(collection, record_id) is None:
            return json_error(not_found, 404)
        updated = store.update(collection, record_id, cleaned)
    except NotFoundError:
        return json_error(not_found, 404)
    except DuplicateEnrollmentError as exc:
        return json_error(str(exc), 409)
    except UpstreamError as exc:
        return handle_upstream_error(f"Failed to update {label}", exc)

    return jsonify({"message": f"{label.capitalize()} updated successfully!", label: updated})


def delete_record(collection: str, label: str, record_id: str):
    store = current_context().store
    not_found = f"{label.capitalize()} not found."
    try:
        if store.find(collection, record_id) is None:
            return json_error(not_found, 404)
        store.delete(collection, record_id)
    except NotFoundError:
        return json_error(not_found, 404)
    except UpstreamError as exc:
        return handle_upstream_error(f"Failed to delete {label}", exc)

    logger.info("Deleted %s %s for tenant %s", label, record_id, current_context().tenant.id)
    return jsonify({"message": f"{label.capitalize()} deleted successfully!"})


def distinct_field(collection: str, field: str):
    store = current_context().store
    try:
        values = store.distinct_values(collection, field)
    except UpstreamError as exc:
        return handle_upstream_error(f"Failed to fetch {field} values", exc)
    return jsonify(values)


__all__ = [
    "list_records",
    "create_record",
    "update_record",
    "delete_record",
    "distinct_field",
]
