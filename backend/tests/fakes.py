"""In-memory stand-ins for the identity provider and record store."""

from __future__ import annotations

import itertools
import sys
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from app import create_app
from records.errors import (
    AuthenticationError,
    DuplicateEnrollmentError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from records.identity import IdentityProvider, Tenant
from records.queries import COURSES, ENROLLMENTS, STUDENTS, ListingQuery, Page, distinct_sorted
from records.stores.base import RecordStore

_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)

TIMESTAMP_FIELDS = {
    STUDENTS: "created_at",
    COURSES: "created_at",
    ENROLLMENTS: "enrolled_at",
}


class FakeDatabase:
    """Rows for every tenant, with the uniqueness and cascade rules of the real schema."""

    def __init__(self) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = {
            STUDENTS: [],
            COURSES: [],
            ENROLLMENTS: [],
        }
        self.failing: set = set()
        self._ids = itertools.count(1)
        self._ticks = itertools.count(1)

    def next_id(self) -> int:
        return next(self._ids)

    def timestamp(self) -> str:
        return (_EPOCH + timedelta(minutes=next(self._ticks))).isoformat()


def _record_id(value: Any) -> int | None:
    try:
        return int(str(value))
    except (TypeError, ValueError):
        return None


def _sort_key(value: Any):
    return (value is None, value if value is not None else 0)


class FakeRecordStore(RecordStore):
    def __init__(self, db: FakeDatabase, tenant: Tenant):
        super().__init__(tenant)
        self.db = db
        self.closed = False

    def _check(self, collection: str) -> None:
        if collection in self.db.failing:
            raise UpstreamError(f"Failed to reach {collection}.")

    def _owned(self, collection: str) -> List[Dict[str, Any]]:
        return [row for row in self.db.tables[collection] if row["user_id"] == self.tenant.id]

    def _joined(self) -> List[Dict[str, Any]]:
        students = {row["id"]: row for row in self._owned(STUDENTS)}
        courses = {row["id"]: row for row in self._owned(COURSES)}
        rows = []
        for enrollment in self._owned(ENROLLMENTS):
            student = students.get(enrollment["student_id"])
            course = courses.get(enrollment["course_id"])
            if student is None or course is None:
                continue
            rows.append(
                {
                    "id": enrollment["id"],
                    "grade": enrollment.get("grade"),
                    "semester": enrollment["semester"],
                    "status": enrollment["status"],
                    "enrolled_at": enrollment["enrolled_at"],
                    "student_id": student["id"],
                    "student_name": student["name"],
                    "student_email": student["email"],
                    "course_id": course["id"],
                    "course_code": course["code"],
                    "course_name": course["name"],
                    "course_credits": course["credits"],
                }
            )
        return rows

    def _rows(self, collection: str) -> List[Dict[str, Any]]:
        if collection == ENROLLMENTS:
            return self._joined()
        return [dict(row) for row in self._owned(collection)]

    def _raw(self, collection: str, record_id: Any) -> Dict[str, Any] | None:
        key = _record_id(record_id)
        for row in self._owned(collection):
            if row["id"] == key:
                return row
        return None

    def _assert_unique(self, candidate: Mapping[str, Any], ignore_id: int | None = None) -> None:
        triple = (candidate["student_id"], candidate["course_id"], candidate["semester"])
        for row in self.db.tables[ENROLLMENTS]:
            if row["id"] == ignore_id:
                continue
            if (row["student_id"], row["course_id"], row["semester"]) == triple:
                raise DuplicateEnrollmentError(
                    "Student is already enrolled in this course for this semester."
                )

    def fetch_page(self, query: ListingQuery) -> Page:
        self._check(query.collection)
        rows = self._rows(query.collection)

        if query.search:
            needle = query.search.lower()
            rows = [
                row
                for row in rows
                if any(needle in str(row.get(field) or "").lower() for field in query.spec.search_fields)
            ]
        for field, value in query.filters.items():
            rows = [row for row in rows if row.get(field) == value]

        rows.sort(key=lambda row: row["id"], reverse=True)
        paging = query.paging
        return Page(rows=rows[paging.offset:paging.offset + paging.page_size], total=len(rows))

    def fetch_all(
        self,
        collection: str,
        *,
        columns: Sequence[str] = (),
        order_by: str = "id",
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        self._check(collection)
        rows = self._rows(collection)
        rows.sort(key=lambda row: _sort_key(row.get(order_by)), reverse=descending)
        if columns and collection != ENROLLMENTS:
            rows = [{column: row.get(column) for column in columns} for row in rows]
        return rows

    def distinct_values(self, collection: str, field: str) -> List[Any]:
        self._check(collection)
        return distinct_sorted(row.get(field) for row in self._owned(collection))

    def count(self, collection: str) -> int:
        self._check(collection)
        return len(self._owned(collection))

    def find(self, collection: str, record_id: str) -> Dict[str, Any] | None:
        self._check(collection)
        row = self._raw(collection, record_id)
        return dict(row) if row else None

    def insert(self, collection: str, rows: Sequence[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        self._check(collection)
        stored = []
        for row in rows:
            record = dict(row)
            if collection == ENROLLMENTS:
                record["student_id"] = _record_id(record["student_id"])
                record["course_id"] = _record_id(record["course_id"])
                self._assert_unique(record)
            record["id"] = self.db.next_id()
            record["user_id"] = self.tenant.id
            record.setdefault(TIMESTAMP_FIELDS[collection], self.db.timestamp())
            self.db.tables[collection].append(record)
            stored.append(dict(record))
        return stored

    def update(self, collection: str, record_id: str, changes: Mapping[str, Any]) -> Dict[str, Any]:
        self._check(collection)
        row = self._raw(collection, record_id)
        if row is None:
            raise NotFoundError(f"{collection} {record_id} not found.")
        if collection == ENROLLMENTS:
            self._assert_unique({**row, **changes}, ignore_id=row["id"])
        row.update(changes)
        return dict(row)

    def delete(self, collection: str, record_id: str) -> None:
        self._check(collection)
        row = self._raw(collection, record_id)
        if row is None:
            raise NotFoundError(f"{collection} {record_id} not found.")
        self.db.tables[collection].remove(row)

        reference = {STUDENTS: "student_id", COURSES: "course_id"}.get(collection)
        if reference:
            self.db.tables[ENROLLMENTS] = [
                enrollment
                for enrollment in self.db.tables[ENROLLMENTS]
                if enrollment[reference] != row["id"]
            ]

    def delete_all(self, collection: str) -> None:
        self._check(collection)
        self.db.tables[collection] = [
            row for row in self.db.tables[collection] if row["user_id"] != self.tenant.id
        ]

    def close(self) -> None:
        self.closed = True


class FakeIdentityProvider(IdentityProvider):
    def __init__(self) -> None:
        self.tokens: Dict[str, Tenant] = {}
        self.accounts: Dict[str, tuple] = {}
        self._ids = itertools.count(1)

    def add_account(self, email: str, password: str = "secret1") -> str:
        """Register an account and return a live token for it."""

        number = next(self._ids)
        tenant = Tenant(id=f"user-{number}", email=email)
        self.accounts[email] = (password, tenant)
        return self._issue(tenant)

    def _issue(self, tenant: Tenant) -> str:
        token = f"token-{tenant.id}-{len(self.tokens) + 1}"
        self.tokens[token] = tenant
        return token

    def _session(self, token: str) -> Dict[str, Any]:
        tenant = self.tokens[token]
        return {
            "access_token": token,
            "refresh_token": f"refresh-{token}",
            "token_type": "bearer",
            "user": {"id": tenant.id, "email": tenant.email},
        }

    def resolve(self, token: str) -> Tenant:
        tenant = self.tokens.get(token)
        if tenant is None:
            raise AuthenticationError("Invalid or expired token.")
        return tenant

    def sign_up(self, email: str, password: str) -> Dict[str, Any] | None:
        if email in self.accounts:
            raise ValidationError("User already registered")
        return self._session(self.add_account(email, password))

    def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise AuthenticationError("Invalid login credentials")
        return self._session(self._issue(account[1]))

    def sign_out(self, token: str) -> None:
        self.tokens.pop(token, None)


class ApiTestCase(unittest.TestCase):
    """Flask test client wired to fakes, with two separate accounts."""

    def setUp(self) -> None:
        self.db = FakeDatabase()
        self.identity = FakeIdentityProvider()
        self.opened: List[FakeRecordStore] = []

        def store_factory(tenant: Tenant, token: str) -> FakeRecordStore:
            store = FakeRecordStore(self.db, tenant)
            self.opened.append(store)
            return store

        self.app = create_app(identity_provider=self.identity, store_factory=store_factory)
        self.app.config["TESTING"] = True
        self.client = self.app.test_client()

        self.token = self.identity.add_account("alice@example.com")
        self.other_token = self.identity.add_account("bob@example.com")

    def headers(self, token: str | None = None) -> Dict[str, str]:
        return {"Authorization": f"Bearer {token or self.token}"}

    def get(self, path: str, token: str | None = None, **kwargs):
        return self.client.get(path, headers=self.headers(token), **kwargs)

    def post(self, path: str, payload: Any = None, token: str | None = None):
        return self.client.post(path, json=payload, headers=self.headers(token))

    def put(self, path: str, payload: Any = None, token: str | None = None):
        return self.client.put(path, json=payload, headers=self.headers(token))

    def delete(self, path: str, token: str | None = None):
        return self.client.delete(path, headers=self.headers(token))

    def create_student(self, name: str = "Ada Lovelace", email: str | None = None,
                       course: str = "Computer Science", token: str | None = None) -> Dict[str, Any]:
        email = email or f"{name.split()[0].lower()}@example.edu"
        response = self.post(
            "/api/students", {"name": name, "email": email, "course": course}, token
        )
        self.assertEqual(201, response.status_code, response.get_json())
        return response.get_json()["student"]

    def create_course(self, code: str = "CS101", name: str = "Intro to Programming",
                      credits: int = 3, department: str = "Computer Science",
                      token: str | None = None) -> Dict[str, Any]:
        response = self.post(
            "/api/courses",
            {"code": code, "name": name, "credits": credits, "department": department},
            token,
        )
        self.assertEqual(201, response.status_code, response.get_json())
        return response.get_json()["course"]

    def enroll(self, student_id: Any, course_id: Any, semester: str = "Fall 2024",
               token: str | None = None, **extra: Any):
        payload = {"student_id": student_id, "course_id": course_id, "semester": semester}
        payload.update(extra)
        return self.post("/api/enrollments", payload, token)
