"""Response helpers shared by the route modules."""

from __future__ import annotations

import logging
from typing import Any, Dict

from flask import jsonify

from .config import ConfigError
from .errors import UpstreamError, ValidationError

logger = logging.getLogger(__name__)


def json_error(message: str, status: int, details: Dict[str, str] | None = None):
    payload: Dict[str, Any] = {"error": message}
    if details:
        payload["details"] = details
    return jsonify(payload), status


def clean_string(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def handle_validation_error(exc: ValidationError):
    return json_error(exc.message, 400, exc.details or None)


def validation_failed(errors: Dict[str, str]):
    details = {k: v for k, v in errors.items() if k != "_global"}
    message = errors.get("_global", "Validation failed.")
    return json_error(message, 400, details if details else None)


def handle_config_error(exc: ConfigError):
    logger.exception("Missing configuration")
    return json_error(str(exc), 500)


def handle_upstream_error(action: str, exc: UpstreamError):
    # The store already logged the underlying cause.
    logger.warning("%s: %s", action, exc)
    return json_error(f"{action}.", 503)


__all__ = [
    "json_error",
    "clean_string",
    "handle_validation_error",
    "validation_failed",
    "handle_config_error",
    "handle_upstream_error",
]
