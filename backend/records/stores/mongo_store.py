"""Record store backed by MongoDB.

MongoDB has no row-level policies or foreign keys, so this store applies the
tenant filter to every query itself, keeps the enrollment triple unique with
an index and removes dependent enrollments when a student or course goes.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Sequence

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, IndexModel, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import BulkWriteError, DuplicateKeyError, PyMongoError

from ..config import get_db_name, get_mongo_uri
from ..errors import DuplicateEnrollmentError, NotFoundError, UpstreamError
from ..identity import Tenant
from ..queries import COURSES, ENROLLMENTS, STUDENTS, ListingQuery, Page, distinct_sorted
from .base import RecordStore

logger = logging.getLogger(__name__)

_MONGO_CLIENT = None
_MONGO_DB = None
_INDEXED_DATABASES: set = set()

TIMESTAMP_FIELDS = {
    STUDENTS: "created_at",
    COURSES: "created_at",
    ENROLLMENTS: "enrolled_at",
}

REFERENCE_FIELDS = ("student_id", "course_id")

DUPLICATE_KEY = 11000

ALREADY_ENROLLED = "Student is already enrolled in this course for this semester."


def _get_client():
    """Create (or reuse) a MongoDB client using the configured URI."""

    global _MONGO_CLIENT

    if _MONGO_CLIENT is None:
        _MONGO_CLIENT = MongoClient(get_mongo_uri(), serverSelectionTimeoutMS=5000)
    return _MONGO_CLIENT


def get_db() -> Database:
    """Return the application's MongoDB database instance."""

    global _MONGO_DB

    if _MONGO_DB is None:
        _MONGO_DB = _get_client()[get_db_name()]
    return _MONGO_DB


def ensure_indexes(db: Database) -> None:
    if db.name in _INDEXED_DATABASES:
        return

    db[STUDENTS].create_indexes(
        [
            IndexModel([("user_id", ASCENDING), ("_id", DESCENDING)], name="user_newest"),
            IndexModel([("user_id", ASCENDING), ("name", ASCENDING)], name="user_name"),
        ]
    )
    db[COURSES].create_indexes(
        [
            IndexModel([("user_id", ASCENDING), ("_id", DESCENDING)], name="user_newest"),
            IndexModel([("user_id", ASCENDING), ("code", ASCENDING)], name="user_code"),
        ]
    )
    db[ENROLLMENTS].create_indexes(
        [
            IndexModel([("user_id", ASCENDING), ("_id", DESCENDING)], name="user_newest"),
            IndexModel([("course_id", ASCENDING)], name="course_id_idx"),
            IndexModel(
                [
                    ("user_id", ASCENDING),
                    ("student_id", ASCENDING),
                    ("course_id", ASCENDING),
                    ("semester", ASCENDING),
                ],
                name="unique_student_course_semester",
                unique=True,
            ),
        ]
    )
    _INDEXED_DATABASES.add(db.name)


def _object_id(value: Any) -> ObjectId | None:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value).strip())
    except (InvalidId, TypeError):
        return None


def _serialize_value(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def serialize_document(document: Mapping[str, Any]) -> Dict[str, Any]:
    """Convert a raw document into a JSON-serialisable row with an ``id`` key."""

    row: Dict[str, Any] = {"id": _serialize_value(document.get("_id"))}
    for key, value in document.items():
        if key != "_id":
            row[key] = _serialize_value(value)
    return row


def _has_duplicate_key(exc: BulkWriteError) -> bool:
    write_errors = (exc.details or {}).get("writeErrors") or []
    return any(error.get("code") == DUPLICATE_KEY for error in write_errors)


def _regex(term: str) -> Dict[str, Any]:
    return {"$regex": re.escape(term), "$options": "i"}


def build_filter(tenant_id: str, query: ListingQuery) -> Dict[str, Any]:
    """Filter for students/courses listings."""

    filters: Dict[str, Any] = {"user_id": tenant_id}
    if query.search:
        filters["$or"] = [{field: _regex(query.search)} for field in query.spec.search_fields]
    filters.update(query.filters)
    return filters


def enrollment_pipeline(tenant_id: str, query: ListingQuery | None = None) -> List[Dict[str, Any]]:
    """Join enrollments to their student and course and flatten the result.

    Enrollments whose student or course is gone are dropped, matching an
    inner join.
    """

    match_stage: Dict[str, Any] = {"user_id": tenant_id}
    if query is not None:
        match_stage.update(query.filters)

    pipeline: List[Dict[str, Any]] = [
        {"$match": match_stage},
        {
            "$lookup": {
                "from": STUDENTS,
                "localField": "student_id",
                "foreignField": "_id",
                "as": "student",
            }
        },
        {"$unwind": {"path": "$student", "preserveNullAndEmptyArrays": False}},
        {
            "$lookup": {
                "from": COURSES,
                "localField": "course_id",
                "foreignField": "_id",
                "as": "course",
            }
        },
        {"$unwind": {"path": "$course", "preserveNullAndEmptyArrays": False}},
        {
            "$project": {
                "_id": 1,
                "grade": {"$ifNull": ["$grade", None]},
                "semester": 1,
                "status": 1,
                "enrolled_at": 1,
                "student_id": 1,
                "student_name": "$student.name",
                "student_email": "$student.email",
                "course_id": 1,
                "course_code": "$course.code",
                "course_name": "$course.name",
                "course_credits": "$course.credits",
            }
        },
    ]

    if query is not None and query.search:
        pipeline.append(
            {"$match": {"$or": [{field: _regex(query.search)} for field in query.spec.search_fields]}}
        )
    return pipeline


class MongoRecordStore(RecordStore):
    def __init__(self, tenant: Tenant, db: Database | None = None):
        super().__init__(tenant)
        self._db = db if db is not None else get_db()
        try:
            ensure_indexes(self._db)
        except PyMongoError as exc:
            raise self._fail("prepare indexes") from exc

    def _collection(self, collection: str) -> Collection:
        return self._db[collection]

    def _scope(self, **extra: Any) -> Dict[str, Any]:
        return {"user_id": self.tenant.id, **extra}

    def _fail(self, action: str) -> UpstreamError:
        logger.exception("Failed to %s due to MongoDB error", action)
        return UpstreamError(f"Failed to {action}.")

    def _prepare(self, row: Mapping[str, Any]) -> Dict[str, Any]:
        document = {key: value for key, value in row.items() if key != "id"}
        for field in REFERENCE_FIELDS:
            if field in document:
                document[field] = _object_id(document[field]) or document[field]
        return document

    def fetch_page(self, query: ListingQuery) -> Page:
        paging = query.paging
        try:
            if query.collection == ENROLLMENTS:
                pipeline = enrollment_pipeline(self.tenant.id, query)
                pipeline.extend(
                    [
                        {"$sort": {"_id": DESCENDING}},
                        {
                            "$facet": {
                                "total": [{"$count": "count"}],
                                "rows": [{"$skip": paging.offset}, {"$limit": paging.page_size}],
                            }
                        },
                    ]
                )
                result = list(self._collection(ENROLLMENTS).aggregate(pipeline))
                facet = result[0] if result else {}
                total_docs = facet.get("total") or [{}]
                total = int(total_docs[0].get("count", 0) or 0)
                documents = facet.get("rows", [])
            else:
                collection = self._collection(query.collection)
                filters = build_filter(self.tenant.id, query)
                total = collection.count_documents(filters)
                documents = (
                    collection.find(filters)
                    .sort([("_id", DESCENDING)])
                    .skip(paging.offset)
                    .limit(paging.page_size)
                )
            return Page(rows=[serialize_document(doc) for doc in documents], total=total)
        except PyMongoError as exc:
            raise self._fail(f"fetch {query.collection}") from exc

    def fetch_all(
        self,
        collection: str,
        *,
        columns: Sequence[str] = (),
        order_by: str = "id",
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        sort_field = "_id" if order_by == "id" else order_by
        direction = DESCENDING if descending else ASCENDING
        try:
            if collection == ENROLLMENTS:
                pipeline = enrollment_pipeline(self.tenant.id)
                pipeline.append({"$sort": {sort_field: direction}})
                documents = self._collection(ENROLLMENTS).aggregate(pipeline)
            else:
                projection = {column: 1 for column in columns if column != "id"} or None
                documents = self._collection(collection).find(
                    self._scope(), projection=projection
                ).sort([(sort_field, direction)])
            return [serialize_document(doc) for doc in documents]
        except PyMongoError as exc:
            raise self._fail(f"fetch {collection}") from exc

    def distinct_values(self, collection: str, field: str) -> List[Any]:
        try:
            values = self._collection(collection).distinct(field, self._scope())
        except PyMongoError as exc:
            raise self._fail(f"fetch {collection}") from exc
        return distinct_sorted(values)

    def count(self, collection: str) -> int:
        try:
            return self._collection(collection).count_documents(self._scope())
        except PyMongoError as exc:
            raise self._fail(f"count {collection}") from exc

    def find(self, collection: str, record_id: str) -> Dict[str, Any] | None:
        key = _object_id(record_id)
        if key is None:
            return None
        try:
            document = self._collection(collection).find_one(self._scope(_id=key))
        except PyMongoError as exc:
            raise self._fail(f"fetch {collection}") from exc
        return serialize_document(document) if document else None

    def insert(self, collection: str, rows: Sequence[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        if not rows:
            return []
        now = datetime.now(timezone.utc)
        timestamp_field = TIMESTAMP_FIELDS[collection]
        documents = []
        for row in rows:
            document = self._prepare(row)
            document["user_id"] = self.tenant.id
            document.setdefault(timestamp_field, now)
            documents.append(document)

        try:
            self._collection(collection).insert_many(documents, ordered=True)
        except BulkWriteError as exc:
            if _has_duplicate_key(exc):
                raise DuplicateEnrollmentError(ALREADY_ENROLLED) from exc
            raise self._fail(f"insert {collection}") from exc
        except PyMongoError as exc:
            raise self._fail(f"insert {collection}") from exc
        # insert_many sets _id on each document in place.
        return [serialize_document(document) for document in documents]

    def update(self, collection: str, record_id: str, changes: Mapping[str, Any]) -> Dict[str, Any]:
        key = _object_id(record_id)
        if key is None:
            raise NotFoundError(f"{collection} {record_id} not found.")

        document = self._prepare(changes)

        try:
            collection_handle = self._collection(collection)
            if document:
                result = collection_handle.update_one(self._scope(_id=key), {"$set": document})
                if result.matched_count == 0:
                    raise NotFoundError(f"{collection} {record_id} not found.")
            updated = collection_handle.find_one(self._scope(_id=key))
        except DuplicateKeyError as exc:
            raise DuplicateEnrollmentError(ALREADY_ENROLLED) from exc
        except PyMongoError as exc:
            raise self._fail(f"update {collection}") from exc

        if updated is None:
            raise NotFoundError(f"{collection} {record_id} not found.")
        return serialize_document(updated)

    def delete(self, collection: str, record_id: str) -> None:
        key = _object_id(record_id)
        if key is None:
            raise NotFoundError(f"{collection} {record_id} not found.")
        try:
            result = self._collection(collection).delete_one(self._scope(_id=key))
            if result.deleted_count == 0:
                raise NotFoundError(f"{collection} {record_id} not found.")
            if collection == STUDENTS:
                self._collection(ENROLLMENTS).delete_many(self._scope(student_id=key))
            elif collection == COURSES:
                self._collection(ENROLLMENTS).delete_many(self._scope(course_id=key))
        except PyMongoError as exc:
            raise self._fail(f"delete {collection}") from exc

    def delete_all(self, collection: str) -> None:
        try:
            self._collection(collection).delete_many(self._scope())
        except PyMongoError as exc:
            raise self._fail(f"clear {collection}") from exc


__all__ = [
    "get_db",
    "ensure_indexes",
    "serialize_document",
    "build_filter",
    "enrollment_pipeline",
    "MongoRecordStore",
]
