"""Translate request arguments into tenant-scoped listing queries."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .errors import ValidationError
from .grades import parse_grade, parse_status
from .utils.paging import PagingParamError, PagingParams, parse_paging_params, total_pages

STUDENTS = "students"
COURSES = "courses"
ENROLLMENTS = "enrollments"


@dataclass(frozen=True)
class ListingSpec:
    """How one collection is searched, filtered and listed.

    ``search_fields`` are matched case-insensitively as substrings and OR'd
    together. For enrollments they refer to the joined student and course
    (``student_name``, ``course_code``, ``course_name``).
    """

    collection: str
    search_fields: Tuple[str, ...]
    filter_fields: Tuple[str, ...]
    all_columns: Tuple[str, ...]
    all_order: str
    filter_parsers: Mapping[str, Callable[[str], Any]] = field(default_factory=dict)


def _grade_filter(value: str) -> str:
    grade = parse_grade(value)
    if grade is None:
        raise ValueError("Grade filter cannot be empty.")
    return grade


LISTINGS: Dict[str, ListingSpec] = {
    STUDENTS: ListingSpec(
        collection=STUDENTS,
        search_fields=("name", "email"),
        filter_fields=("course",),
        all_columns=("id", "name", "email"),
        all_order="name",
    ),
    COURSES: ListingSpec(
        collection=COURSES,
        search_fields=("code", "name"),
        filter_fields=("department",),
        all_columns=("id", "code", "name", "credits"),
        all_order="code",
    ),
    ENROLLMENTS: ListingSpec(
        collection=ENROLLMENTS,
        search_fields=("student_name", "course_code", "course_name"),
        filter_fields=("semester", "grade", "status"),
        all_columns=(),
        all_order="id",
        filter_parsers={
            "grade": _grade_filter,
            "status": lambda value: parse_status(value).value,
        },
    ),
}

# Flattened shape of an enrollment joined with its student and course.
ENROLLMENT_FIELDS = (
    "id",
    "grade",
    "semester",
    "status",
    "enrolled_at",
    "student_id",
    "student_name",
    "student_email",
    "course_id",
    "course_code",
    "course_name",
    "course_credits",
)


@dataclass(frozen=True)
class ListingQuery:
    spec: ListingSpec
    paging: PagingParams
    search: Optional[str] = None
    filters: Mapping[str, Any] = field(default_factory=dict)

    @property
    def collection(self) -> str:
        return self.spec.collection


@dataclass
class Page:
    rows: List[Dict[str, Any]]
    total: int


def _clean_string(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def is_all_request(args: Mapping[str, str]) -> bool:
    return _clean_string(args.get("all")).lower() == "true"


def build_listing_query(collection: str, args: Mapping[str, str]) -> ListingQuery:
    """Build a paginated query from request args.

    Raises ``ValidationError`` for a non-integer page or an unrecognized
    grade/status filter.
    """

    spec = LISTINGS[collection]

    try:
        paging = parse_paging_params(args)
    except PagingParamError as exc:
        raise ValidationError(str(exc), {"page": str(exc)}) from None

    filters: Dict[str, Any] = {}
    errors: Dict[str, str] = {}
    for name in spec.filter_fields:
        raw = _clean_string(args.get(name))
        if not raw:
            continue
        parser = spec.filter_parsers.get(name)
        if parser is None:
            filters[name] = raw
            continue
        try:
            filters[name] = parser(raw)
        except ValueError as exc:
            errors[name] = str(exc)

    if errors:
        raise ValidationError("Invalid filter.", errors)

    search = _clean_string(args.get("search")) or None
    return ListingQuery(spec=spec, paging=paging, search=search, filters=filters)


def flatten_enrollment(row: Mapping[str, Any]) -> Dict[str, Any]:
    """Flatten an enrollment row with nested ``students``/``courses`` objects."""

    student = row.get("students") or {}
    course = row.get("courses") or {}
    return {
        "id": row.get("id"),
        "grade": row.get("grade"),
        "semester": row.get("semester"),
        "status": row.get("status"),
        "enrolled_at": row.get("enrolled_at"),
        "student_id": student.get("id", row.get("student_id")),
        "student_name": student.get("name"),
        "student_email": student.get("email"),
        "course_id": course.get("id", row.get("course_id")),
        "course_code": course.get("code"),
        "course_name": course.get("name"),
        "course_credits": course.get("credits"),
    }


def page_payload(key: str, query: ListingQuery, page: Page) -> Dict[str, Any]:
    pages = total_pages(page.total, query.paging.page_size)
    current = query.paging.page
    return {
        key: page.rows,
        "total": page.total,
        "page": current,
        "page_size": query.paging.page_size,
        "total_pages": pages,
        "has_next": current < pages,
        "has_prev": current > 1,
    }


def distinct_sorted(values) -> List[Any]:
    """Sorted unique non-null values."""

    return sorted({value for value in values if value is not None})


__all__ = [
    "STUDENTS",
    "COURSES",
    "ENROLLMENTS",
    "ListingSpec",
    "LISTINGS",
    "ENROLLMENT_FIELDS",
    "ListingQuery",
    "Page",
    "is_all_request",
    "build_listing_query",
    "flatten_enrollment",
    "page_payload",
    "distinct_sorted",
]
