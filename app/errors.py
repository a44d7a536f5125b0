"""
Application error types

Every failure the domain layer raises on purpose carries a machine-readable
kind plus a human message. The HTTP layer maps kinds to status codes in one
place (see main.py), so services never build HTTP responses themselves.
"""

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    REFERENTIAL_VIOLATION = "referential_violation"
    FATAL = "fatal"


HTTP_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.REFERENTIAL_VIOLATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.FATAL: 500,
}


class AppError(Exception):
    """Base class for domain errors"""

    kind = ErrorKind.FATAL

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def status_code(self) -> int:
        return HTTP_STATUS_BY_KIND[self.kind]

    def to_dict(self) -> dict:
        return {"detail": self.message, "kind": self.kind.value}


class ValidationError(AppError, ValueError):
    """
    Malformed or out-of-range input, raised before any I/O where possible.

    Also a ValueError so the same validators work inside pydantic field validators.
    """

    kind = ErrorKind.VALIDATION


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND


class ConflictError(AppError):
    """A uniqueness or overlap rule rejected the write"""

    kind = ErrorKind.CONFLICT


class ReferentialViolationError(AppError):
    """A foreign key target is missing"""

    kind = ErrorKind.REFERENTIAL_VIOLATION


# SQLSTATE codes reported by PostgreSQL drivers
EXCLUSION_VIOLATION = "23P01"
FOREIGN_KEY_VIOLATION = "23503"
UNIQUE_VIOLATION = "23505"


def integrity_error_code(exc: Exception):
    """
    Return the SQLSTATE for a wrapped DBAPI integrity error.

    psycopg exposes ``sqlstate``, psycopg2 ``pgcode``. SQLite has neither, so
    its messages are mapped onto the same codes.
    """
    orig = getattr(exc, "orig", exc)
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code:
        return code

    message = str(orig)
    if "FOREIGN KEY constraint failed" in message:
        return FOREIGN_KEY_VIOLATION
    if "UNIQUE constraint failed" in message:
        return UNIQUE_VIOLATION
    return None
