from __future__ import annotations

from typing import Any, Optional


class DomainError(Exception):
    """Base exception for business rule violations.

    ``kind`` is the machine-checkable error class reported to callers,
    ``details`` carries structured per-item diagnostics when there are any.
    """

    kind = "domain_error"
    http_status = 400

    def __init__(self, message: str, *, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    kind = "invalid_argument"
    http_status = 400


class ConflictError(DomainError):
    """Raised when a write collides with a uniqueness rule."""

    kind = "conflict"
    http_status = 409


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist."""

    kind = "not_found"
    http_status = 404


class InternalError(DomainError):
    """Unexpected storage or infrastructure failure."""

    kind = "internal"
    http_status = 500
