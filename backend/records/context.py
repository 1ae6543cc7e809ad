"""Per-request authentication context."""

from __future__ import annotations

from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, TypeVar, cast

from flask import Flask, current_app, g, request

from .config import ConfigError
from .errors import AuthenticationError, UpstreamError
from .http import handle_config_error, handle_upstream_error, json_error
from .identity import IdentityProvider, SupabaseIdentityProvider, Tenant
from .stores import RecordStore, StoreFactory, open_store

EXTENSION_KEY = "records"

_F = TypeVar("_F", bound=Callable[..., Any])


@dataclass
class Services:
    identity_provider: IdentityProvider | None = None
    store_factory: StoreFactory = open_store


@dataclass
class RequestContext:
    """Who is calling and the store opened on their behalf."""

    tenant: Tenant
    token: str
    store: RecordStore


def init_services(
    app: Flask,
    *,
    identity_provider: IdentityProvider | None = None,
    store_factory: StoreFactory | None = None,
) -> Services:
    services = Services(
        identity_provider=identity_provider,
        store_factory=store_factory or open_store,
    )
    app.extensions[EXTENSION_KEY] = services
    return services


def _services() -> Services:
    return current_app.extensions[EXTENSION_KEY]


def get_identity_provider() -> IdentityProvider:
    """Return the configured identity provider, building the default lazily."""

    services = _services()
    if services.identity_provider is None:
        services.identity_provider = SupabaseIdentityProvider()
    return services.identity_provider


def bearer_token() -> str | None:
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    token = header[len("Bearer "):].strip()
    return token or None


def current_context() -> RequestContext:
    return g.records_ctx


def require_auth(func: _F) -> _F:
    """Resolve the bearer token to a tenant and open a store for this request."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        token = bearer_token()
        if token is None:
            return json_error("Not authenticated. Please log in.", 401)

        try:
            tenant = get_identity_provider().resolve(token)
            store = _services().store_factory(tenant, token)
        except AuthenticationError:
            return json_error("Invalid or expired token.", 401)
        except ConfigError as exc:
            return handle_config_error(exc)
        except UpstreamError as exc:
            return handle_upstream_error("Failed to authenticate request", exc)

        g.records_ctx = RequestContext(tenant=tenant, token=token, store=store)
        try:
            return func(*args, **kwargs)
        finally:
            g.pop("records_ctx", None)
            store.close()

    return cast(_F, wrapper)


__all__ = [
    "Services",
    "RequestContext",
    "init_services",
    "get_identity_provider",
    "bearer_token",
    "current_context",
    "require_auth",
]
