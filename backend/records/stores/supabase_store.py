"""Record store backed by Supabase (PostgREST with row-level security)."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Sequence

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from ..config import get_supabase_key, get_supabase_url
from ..errors import DuplicateEnrollmentError, NotFoundError, RecordsError, UpstreamError
from ..identity import Tenant
from ..queries import ENROLLMENTS, ListingQuery, Page, distinct_sorted, flatten_enrollment
from .base import RecordStore

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
# PostgREST answers 416 with this code when the offset is past the last row.
RANGE_NOT_SATISFIABLE = "PGRST103"

ENROLLMENT_SELECT = (
    "id, grade, semester, status, enrolled_at, user_id, student_id, course_id, "
    "students!inner(id, name, email), courses!inner(id, code, name, credits)"
)

# Flattened enrollment field -> PostgREST path on the joined select.
ENROLLMENT_SEARCH_PATHS = {
    "student_name": "students.name",
    "course_code": "courses.code",
    "course_name": "courses.name",
}


def _record_id(value: Any) -> int | None:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def _ilike_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace('"', '\\"')
    return f'"%{escaped}%"'


def search_filter(fields: Sequence[str], term: str) -> str:
    """Build the PostgREST ``or`` expression for a substring search."""

    pattern = _ilike_pattern(term)
    return ",".join(f"{field}.ilike.{pattern}" for field in fields)


def _is_unique_violation(exc: APIError) -> bool:
    if getattr(exc, "code", None) == UNIQUE_VIOLATION:
        return True
    message = (getattr(exc, "message", None) or str(exc)).lower()
    return "duplicate" in message or "unique" in message


class SupabaseRecordStore(RecordStore):
    """Runs every query with the caller's bearer token.

    Tenant isolation is enforced by the database policies; the explicit
    ``user_id`` filters below only keep the queries cheap.
    """

    def __init__(self, tenant: Tenant, token: str, client: Client | None = None):
        super().__init__(tenant)
        if client is None:
            client = create_client(get_supabase_url(), get_supabase_key())
        client.postgrest.auth(token)
        self._client = client

    def _table(self, collection: str):
        return self._client.table(collection)

    def _translate(self, exc: Exception, action: str, collection: str | None = None) -> RecordsError:
        if isinstance(exc, APIError):
            if collection == ENROLLMENTS and _is_unique_violation(exc):
                return DuplicateEnrollmentError(
                    "Student is already enrolled in this course for this semester."
                )
            logger.exception("Supabase error while trying to %s", action)
        else:
            logger.exception("Supabase unreachable while trying to %s", action)
        return UpstreamError(f"Failed to {action}.")

    def _execute(self, builder, action: str, collection: str | None = None):
        try:
            return builder.execute()
        except (APIError, httpx.HTTPError) as exc:
            raise self._translate(exc, action, collection) from exc

    def _listing(self, query: ListingQuery):
        """Filtered select for a listing, with an exact count of matching rows."""

        collection = query.collection
        columns = ENROLLMENT_SELECT if collection == ENROLLMENTS else "*"
        builder = (
            self._table(collection)
            .select(columns, count="exact")
            .eq("user_id", self.tenant.id)
        )

        if query.search:
            fields = query.spec.search_fields
            if collection == ENROLLMENTS:
                fields = tuple(ENROLLMENT_SEARCH_PATHS[field] for field in fields)
            builder = builder.or_(search_filter(fields, query.search))

        for field, value in query.filters.items():
            builder = builder.eq(field, value)
        return builder

    def fetch_page(self, query: ListingQuery) -> Page:
        collection = query.collection
        action = f"fetch {collection}"
        builder = (
            self._listing(query)
            .order("id", desc=True)
            .range(query.paging.offset, query.paging.last_index)
        )

        try:
            response = builder.execute()
        except APIError as exc:
            if getattr(exc, "code", None) != RANGE_NOT_SATISFIABLE:
                raise self._translate(exc, action) from exc
            # Page starts past the last match: no rows, but still the true total.
            counted = self._execute(self._listing(query).limit(1), action)
            return Page(rows=[], total=counted.count or 0)
        except httpx.HTTPError as exc:
            raise self._translate(exc, action) from exc

        rows = response.data or []
        if collection == ENROLLMENTS:
            rows = [flatten_enrollment(row) for row in rows]
        return Page(rows=rows, total=response.count or 0)

    def fetch_all(
        self,
        collection: str,
        *,
        columns: Sequence[str] = (),
        order_by: str = "id",
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        if collection == ENROLLMENTS:
            select = ENROLLMENT_SELECT
        else:
            select = ", ".join(columns) if columns else "*"

        builder = (
            self._table(collection)
            .select(select)
            .eq("user_id", self.tenant.id)
            .order(order_by, desc=descending)
        )

        response = self._execute(builder, f"fetch {collection}")
        rows = response.data or []
        if collection == ENROLLMENTS:
            rows = [flatten_enrollment(row) for row in rows]
        return rows

    def distinct_values(self, collection: str, field: str) -> List[Any]:
        builder = self._table(collection).select(field).eq("user_id", self.tenant.id)
        response = self._execute(builder, f"fetch {collection}")
        return distinct_sorted(row.get(field) for row in response.data or [])

    def count(self, collection: str) -> int:
        builder = (
            self._table(collection)
            .select("id", count="exact")
            .eq("user_id", self.tenant.id)
            .limit(1)
        )
        response = self._execute(builder, f"count {collection}")
        return response.count or 0

    def find(self, collection: str, record_id: str) -> Dict[str, Any] | None:
        key = _record_id(record_id)
        if key is None:
            return None
        builder = (
            self._table(collection)
            .select("*")
            .eq("id", key)
            .eq("user_id", self.tenant.id)
            .limit(1)
        )
        response = self._execute(builder, f"fetch {collection}")
        return response.data[0] if response.data else None

    def insert(self, collection: str, rows: Sequence[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        if not rows:
            return []
        owned = [{**row, "user_id": self.tenant.id} for row in rows]
        response = self._execute(
            self._table(collection).insert(owned), f"insert {collection}", collection
        )
        return response.data or []

    def update(self, collection: str, record_id: str, changes: Mapping[str, Any]) -> Dict[str, Any]:
        key = _record_id(record_id)
        if key is None:
            raise NotFoundError(f"{collection} {record_id} not found.")
        builder = (
            self._table(collection)
            .update(dict(changes))
            .eq("id", key)
            .eq("user_id", self.tenant.id)
        )
        response = self._execute(builder, f"update {collection}", collection)
        if not response.data:
            raise NotFoundError(f"{collection} {record_id} not found.")
        return response.data[0]

    def delete(self, collection: str, record_id: str) -> None:
        key = _record_id(record_id)
        if key is None:
            raise NotFoundError(f"{collection} {record_id} not found.")
        builder = (
            self._table(collection)
            .delete()
            .eq("id", key)
            .eq("user_id", self.tenant.id)
        )
        self._execute(builder, f"delete {collection}")

    def delete_all(self, collection: str) -> None:
        builder = self._table(collection).delete().eq("user_id", self.tenant.id)
        self._execute(builder, f"clear {collection}")


__all__ = ["SupabaseRecordStore", "search_filter"]
