"""Exception types shared by the stores, identity provider and routes."""

from __future__ import annotations

from typing import Dict


class RecordsError(Exception):
    """Base class for application errors."""


class ValidationError(RecordsError):
    """Raised when a request is missing fields or carries malformed values."""

    def __init__(self, message: str = "Validation failed.", details: Dict[str, str] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class AuthenticationError(RecordsError):
    """Raised when a bearer token is missing, invalid or expired."""


class NotFoundError(RecordsError):
    """Raised when a record is absent or belongs to another tenant."""


class DuplicateEnrollmentError(RecordsError):
    """Raised when the (student, course, semester) triple already exists."""


class UpstreamError(RecordsError):
    """Raised when the record store or identity provider fails."""


__all__ = [
    "RecordsError",
    "ValidationError",
    "AuthenticationError",
    "NotFoundError",
    "DuplicateEnrollmentError",
    "UpstreamError",
]
