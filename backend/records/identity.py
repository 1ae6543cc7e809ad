"""Identity provider capability and its Supabase Auth implementation."""

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass
from typing import Any, Dict

from supabase import AuthApiError, AuthError, Client, create_client

from .config import get_supabase_key, get_supabase_url
from .errors import AuthenticationError, UpstreamError, ValidationError

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True)
class Tenant:
    """The account whose rows a request may see."""

    id: str
    email: str | None = None


class IdentityProvider(abc.ABC):
    @abc.abstractmethod
    def resolve(self, token: str) -> Tenant:
        """Return the tenant for ``token`` or raise ``AuthenticationError``."""

    @abc.abstractmethod
    def sign_up(self, email: str, password: str) -> Dict[str, Any] | None:
        """Create an account; returns the session when one is issued."""

    @abc.abstractmethod
    def sign_in(self, email: str, password: str) -> Dict[str, Any]: ...

    @abc.abstractmethod
    def sign_out(self, token: str) -> None: ...


def _serialize_session(session: Any) -> Dict[str, Any] | None:
    if session is None:
        return None
    user = getattr(session, "user", None)
    return {
        "access_token": session.access_token,
        "refresh_token": session.refresh_token,
        "token_type": getattr(session, "token_type", "bearer"),
        "expires_in": getattr(session, "expires_in", None),
        "expires_at": getattr(session, "expires_at", None),
        "user": {"id": user.id, "email": user.email} if user else None,
    }


class SupabaseIdentityProvider(IdentityProvider):
    """Delegates every decision to Supabase Auth."""

    def __init__(self, url: str | None = None, key: str | None = None):
        self._url = url or get_supabase_url()
        self._key = key or get_supabase_key()

    def _client(self) -> Client:
        # Auth calls mutate the client's session, so each call gets its own.
        return create_client(self._url, self._key)

    def resolve(self, token: str) -> Tenant:
        try:
            response = self._client().auth.get_user(token)
        except AuthApiError as exc:
            raise AuthenticationError(str(exc)) from exc
        except AuthError as exc:
            logger.exception("Identity provider failed to resolve token")
            raise UpstreamError("Identity provider unavailable.") from exc

        user = getattr(response, "user", None) if response else None
        if user is None:
            raise AuthenticationError("Invalid or expired token.")
        return Tenant(id=str(user.id), email=user.email)

    def sign_up(self, email: str, password: str) -> Dict[str, Any] | None:
        try:
            response = self._client().auth.sign_up({"email": email, "password": password})
        except AuthError as exc:
            logger.warning("Signup rejected: %s", exc)
            raise ValidationError(str(exc)) from exc
        return _serialize_session(response.session)

    def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        try:
            response = self._client().auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthError as exc:
            logger.warning("Login rejected: %s", exc)
            raise AuthenticationError(str(exc)) from exc

        session = _serialize_session(response.session)
        if session is None:
            raise AuthenticationError("Invalid login credentials.")
        return session

    def sign_out(self, token: str) -> None:
        try:
            self._client().auth.admin.sign_out(token)
        except AuthError as exc:
            logger.exception("Failed to revoke session")
            raise UpstreamError("Identity provider unavailable.") from exc


__all__ = [
    "MIN_PASSWORD_LENGTH",
    "Tenant",
    "IdentityProvider",
    "SupabaseIdentityProvider",
]
