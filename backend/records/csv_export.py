"""CSV export of student and enrollment rows.

Text fields are wrapped in double quotes as-is. Embedded quotes and commas are
not escaped, so values containing them produce rows that spreadsheet tools
will split differently.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence, Tuple

# (row key, quoted)
Column = Tuple[str, bool]

STUDENTS_HEADER = "ID,Name,Email,Course,Created At"
STUDENT_COLUMNS: Tuple[Column, ...] = (
    ("id", False),
    ("name", True),
    ("email", True),
    ("course", True),
    ("created_at", True),
)

ENROLLMENTS_HEADER = (
    "ID,Student Name,Student Email,Course Code,Course Name,Credits,"
    "Grade,Semester,Status,Enrolled At"
)
ENROLLMENT_COLUMNS: Tuple[Column, ...] = (
    ("id", False),
    ("student_name", True),
    ("student_email", True),
    ("course_code", True),
    ("course_name", True),
    ("course_credits", False),
    ("grade", True),
    ("semester", True),
    ("status", True),
    ("enrolled_at", True),
)


def _field(value: Any, quoted: bool) -> str:
    text = "" if value is None else str(value)
    return f'"{text}"' if quoted else text


def format_csv(
    header: str, rows: Iterable[Mapping[str, Any]] | None, columns: Sequence[Column]
) -> str:
    lines = [header]
    for row in rows or []:
        lines.append(",".join(_field(row.get(key), quoted) for key, quoted in columns))
    return "\n".join(lines)


def students_csv(rows: Iterable[Mapping[str, Any]] | None) -> str:
    return format_csv(STUDENTS_HEADER, rows, STUDENT_COLUMNS)


def enrollments_csv(rows: Iterable[Mapping[str, Any]] | None) -> str:
    return format_csv(ENROLLMENTS_HEADER, rows, ENROLLMENT_COLUMNS)


__all__ = [
    "STUDENTS_HEADER",
    "STUDENT_COLUMNS",
    "ENROLLMENTS_HEADER",
    "ENROLLMENT_COLUMNS",
    "format_csv",
    "students_csv",
    "enrollments_csv",
]
