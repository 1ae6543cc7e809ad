"""Letter grade scale and enrollment status vocabulary."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Tuple

GRADE_POINTS: Dict[str, float] = {
    "A+": 4.0,
    "A": 4.0,
    "A-": 3.7,
    "B+": 3.3,
    "B": 3.0,
    "B-": 2.7,
    "C+": 2.3,
    "C": 2.0,
    "C-": 1.7,
    "D+": 1.3,
    "D": 1.0,
    "D-": 0.7,
    "F": 0.0,
}

GRADE_ORDER: Tuple[str, ...] = tuple(GRADE_POINTS)


class Status(str, Enum):
    ENROLLED = "enrolled"
    COMPLETED = "completed"
    DROPPED = "dropped"


STATUS_VALUES: Tuple[str, ...] = tuple(status.value for status in Status)

DEFAULT_STATUS = Status.ENROLLED


def grade_points(grade: Any) -> float | None:
    """Return the point value of ``grade`` or ``None`` when it is not on the scale."""

    if not isinstance(grade, str):
        return None
    return GRADE_POINTS.get(grade)


def parse_grade(value: Any) -> str | None:
    """Validate a submitted grade.

    Empty values mean "not graded yet" and come back as ``None``. Anything
    else must match the scale exactly, otherwise ``ValueError`` is raised.
    """

    if value is None:
        return None
    cleaned = str(value).strip()
    if not cleaned:
        return None
    if cleaned.upper() in GRADE_POINTS:
        return cleaned.upper()
    raise ValueError("Grade must be one of: " + ", ".join(GRADE_ORDER) + ".")


def parse_status(value: Any) -> Status:
    cleaned = str(value).strip().lower() if value is not None else ""
    try:
        return Status(cleaned)
    except ValueError:
        raise ValueError(
            "Status must be one of: " + ", ".join(STATUS_VALUES) + "."
        ) from None


__all__ = [
    "GRADE_POINTS",
    "GRADE_ORDER",
    "Status",
    "STATUS_VALUES",
    "DEFAULT_STATUS",
    "grade_points",
    "parse_grade",
    "parse_status",
]
