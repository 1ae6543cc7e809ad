"""Account endpoints backed by the identity provider."""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from ..config import ConfigError
from ..context import current_context, get_identity_provider, require_auth
from ..errors import AuthenticationError, UpstreamError, ValidationError
from ..http import clean_string, handle_config_error, handle_upstream_error, json_error
from ..identity import MIN_PASSWORD_LENGTH

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _credentials():
    payload = request.get_json(silent=True) or {}
    email = clean_string(payload.get("email"))
    password = str(payload.get("password") or "")
    return email, password


@auth_bp.post("/signup")
def signup():
    email, password = _credentials()
    if not email or not password:
        return json_error("Email and password are required.", 400)
    if len(password) < MIN_PASSWORD_LENGTH:
        return json_error(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters.", 400
        )

    try:
        session = get_identity_provider().sign_up(email, password)
    except ValidationError as exc:
        return json_error(exc.message, 400)
    except ConfigError as exc:
        return handle_config_error(exc)
    except UpstreamError as exc:
        return handle_upstream_error("Failed to create account", exc)

    return jsonify({"message": "Account created successfully!", "session": session}), 201


@auth_bp.post("/login")
def login():
    email, password = _credentials()
    if not email or not password:
        return json_error("Email and password are required.", 400)

    try:
        session = get_identity_provider().sign_in(email, password)
    except AuthenticationError as exc:
        return json_error(str(exc) or "Invalid login credentials.", 401)
    except ConfigError as exc:
        return handle_config_error(exc)
    except UpstreamError as exc:
        return handle_upstream_error("Failed to sign in", exc)

    return jsonify({"message": "Login successful!", "session": session})


@auth_bp.post("/logout")
@require_auth
def logout():
    try:
        get_identity_provider().sign_out(current_context().token)
    except UpstreamError as exc:
        return handle_upstream_error("Failed to sign out", exc)
    return jsonify({"message": "Logged out successfully."})


@auth_bp.get("/me")
@require_auth
def me():
    tenant = current_context().tenant
    return jsonify({"id": tenant.id, "email": tenant.email})


__all__ = ["auth_bp"]
