"""Record store implementations."""

from __future__ import annotations

from typing import Callable

from ..config import get_store_backend
from ..identity import Tenant
from .base import RecordStore
from .mongo_store import MongoRecordStore
from .supabase_store import SupabaseRecordStore

StoreFactory = Callable[[Tenant, str], RecordStore]


def open_store(tenant: Tenant, token: str) -> RecordStore:
    """Open the configured store for one request."""

    if get_store_backend() == "mongo":
        return MongoRecordStore(tenant)
    return SupabaseRecordStore(tenant, token)


__all__ = [
    "RecordStore",
    "StoreFactory",
    "MongoRecordStore",
    "SupabaseRecordStore",
    "open_store",
]
