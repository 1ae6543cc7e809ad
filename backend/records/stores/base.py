"""Record store capability interface."""

from __future__ import annotations

import abc
from typing import Any, Dict, List, Mapping, Sequence

from ..identity import Tenant
from ..queries import ListingQuery, Page


class RecordStore(abc.ABC):
    """Data access for a single tenant.

    A store instance is opened for one request and bound to the tenant that
    request resolved to. Every read and write it performs is limited to that
    tenant's rows. Enrollment rows are always returned flattened (see
    ``records.queries.ENROLLMENT_FIELDS``).

    Implementations raise ``UpstreamError`` when the backend fails and
    ``DuplicateEnrollmentError`` when an enrollment triple already exists.
    """

    def __init__(self, tenant: Tenant):
        self.tenant = tenant

    @abc.abstractmethod
    def fetch_page(self, query: ListingQuery) -> Page:
        """Filtered, newest-first page of rows plus the exact matching count."""

    @abc.abstractmethod
    def fetch_all(
        self,
        collection: str,
        *,
        columns: Sequence[str] = (),
        order_by: str = "id",
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        """Every row of ``collection``, unfiltered and ordered."""

    @abc.abstractmethod
    def distinct_values(self, collection: str, field: str) -> List[Any]:
        """Sorted unique non-null values of ``field``."""

    @abc.abstractmethod
    def count(self, collection: str) -> int: ...

    @abc.abstractmethod
    def find(self, collection: str, record_id: str) -> Dict[str, Any] | None:
        """Return the row when it exists and belongs to the tenant."""

    @abc.abstractmethod
    def insert(self, collection: str, rows: Sequence[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        """Insert rows owned by the tenant and return them as stored."""

    @abc.abstractmethod
    def update(self, collection: str, record_id: str, changes: Mapping[str, Any]) -> Dict[str, Any]:
        """Apply ``changes`` and return the stored row.

        Raises ``NotFoundError`` when nothing matched.
        """

    @abc.abstractmethod
    def delete(self, collection: str, record_id: str) -> None:
        """Delete one row; students and courses take their enrollments along."""

    @abc.abstractmethod
    def delete_all(self, collection: str) -> None: ...

    def close(self) -> None:
        """Release anything held for the request."""


__all__ = ["RecordStore"]
