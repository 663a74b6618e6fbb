"""
core/errors.py -- Application error taxonomy.

Every failure the API can report to a client is an AppError subclass tagged
with an ErrorKind. The kind carries the HTTP status and the machine-readable
code, so the exception handlers in api/main.py never inspect message strings
to decide between a 4xx and a 5xx.

  ErrorKind.VALIDATION           400  malformed input, all violations listed
  ErrorKind.INVALID_CREDENTIALS  401  bad login (unknown email == wrong password)
  ErrorKind.UNAUTHENTICATED      401  no bearer token presented
  ErrorKind.FORBIDDEN            403  invalid/expired token, or not the owner
  ErrorKind.NOT_FOUND            404
  ErrorKind.CONFLICT             409  duplicate email
  ErrorKind.INTERNAL             500  storage or unexpected failure

Layer rule: core/ is the kernel. No imports from api/, auth/, or events/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation_error"
    INVALID_CREDENTIALS = "invalid_credentials"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTERNAL = "internal_error"

    @property
    def status_code(self) -> int:
        return _STATUS[self]

    @property
    def is_client_error(self) -> bool:
        return self.status_code < 500


_STATUS: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.INVALID_CREDENTIALS: 401,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INTERNAL: 500,
}


@dataclass(frozen=True)
class FieldViolation:
    """One failed input rule. field is the request body key."""

    field: str
    message: str


class AppError(Exception):
    """Base class for errors rendered into the API error envelope."""

    kind: ErrorKind = ErrorKind.INTERNAL
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return self.kind.status_code


class ValidationError(AppError):
    kind = ErrorKind.VALIDATION
    default_message = "Validation failed."

    def __init__(self, violations: list[FieldViolation], message: str | None = None) -> None:
        super().__init__(message)
        self.violations = list(violations)

    @property
    def fields(self) -> list[str]:
        return [v.field for v in self.violations]


class Conflict(AppError):
    kind = ErrorKind.CONFLICT
    default_message = "Conflict."


class InvalidCredentials(AppError):
    kind = ErrorKind.INVALID_CREDENTIALS
    default_message = "Invalid credentials"


class Unauthenticated(AppError):
    kind = ErrorKind.UNAUTHENTICATED
    default_message = "Access token required"


class Forbidden(AppError):
    kind = ErrorKind.FORBIDDEN
    default_message = "Forbidden"


class NotFound(AppError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Not found"


class InternalError(AppError):
    kind = ErrorKind.INTERNAL
