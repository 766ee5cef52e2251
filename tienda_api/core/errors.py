"""Typed error hierarchy shared by repositories, services and the API layer.

Every error carries a ``kind``, a human readable ``message`` and structured
``context``. Only ``tienda_api.api.errors`` turns them into HTTP responses.
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    AUTHENTICATION = "authentication"
    CONFLICT = "conflict"
    INTERNAL = "internal"


class AppError(Exception):
    """Base class for every error the service raises on purpose."""

    kind: ErrorKind = ErrorKind.INTERNAL
    status_code: int = 500

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        return self.message


class ValidationError(AppError):
    """Missing or malformed input."""
    kind = ErrorKind.VALIDATION
    status_code = 400


class InsufficientStockError(ValidationError):
    """A stock reduction would leave the product below zero."""


class NotFoundError(AppError):
    """Absent or soft-deleted resource."""
    kind = ErrorKind.NOT_FOUND
    status_code = 404


class AuthenticationError(AppError):
    """Missing token or bad login credentials."""
    kind = ErrorKind.AUTHENTICATION
    status_code = 401


class TokenRejectedError(AuthenticationError):
    """Token present but malformed, tampered with or expired."""
    status_code = 403


class AccountDisabledError(AuthenticationError):
    """Credentials belong to a soft-deleted user."""
    status_code = 403


class ConflictError(AppError):
    """Duplicate email or a resource that is busy.

    Surfaced as 400, like the rest of the input errors.
    """
    kind = ErrorKind.CONFLICT
    status_code = 400


class InternalError(AppError):
    """Store or gateway failure."""
    kind = ErrorKind.INTERNAL
    status_code = 500
