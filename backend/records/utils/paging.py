"""Utilities for parsing pagination query parameters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

PAGE_SIZE = 10


class PagingParamError(ValueError):
    """Raised when pagination query parameters are invalid."""


@dataclass(frozen=True)
class PagingParams:
    page: int
    page_size: int = PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def last_index(self) -> int:
        """Inclusive index of the last row on this page."""
        return self.offset + self.page_size - 1


def _parse_int_arg(
    raw_value: str | None,
    *,
    name: str,
    default: int,
    minimum: int | None = None,
) -> int:
    if raw_value in (None, ""):
        value = default
    else:
        try:
            value = int(str(raw_value).strip())
        except (TypeError, ValueError):
            raise PagingParamError(f"{name} must be an integer.") from None

    # Out-of-range values are clamped rather than rejected.
    if minimum is not None and value < minimum:
        value = minimum

    return value


def parse_paging_params(
    args: Mapping[str, str],
    *,
    default_page: int = 1,
    page_size: int = PAGE_SIZE,
) -> PagingParams:
    """Parse the 1-indexed ``page`` argument from a request args mapping."""

    page = _parse_int_arg(
        args.get("page"),
        name="page",
        default=default_page,
        minimum=1,
    )
    return PagingParams(page=page, page_size=page_size)


def total_pages(total: int, page_size: int = PAGE_SIZE) -> int:
    if total <= 0:
        return 0
    return (total + page_size - 1) // page_size


__all__ = [
    "PAGE_SIZE",
    "PagingParamError",
    "PagingParams",
    "parse_paging_params",
    "total_pages",
]
