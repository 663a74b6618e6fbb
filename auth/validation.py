"""
auth/validation.py -- Input rules for registration, login and profile updates.

Every check collects FieldViolation entries instead of stopping at the first
failure, so a client gets the complete list of problems in one response.

Email policy: addresses are trimmed and lower-cased before any lookup or
insert. "Jane@Example.com" and "jane@example.com" are the same account.
"""

from __future__ import annotations

import re
from urllib.parse import urlparse

from auth.passwords import BCRYPT_MAX_BYTES
from core.errors import FieldViolation, ValidationError

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MAX_NAME_LENGTH = 100
MAX_EMAIL_LENGTH = 255
MAX_BIO_LENGTH = 2000
MAX_URI_LENGTH = 2048


def normalize_email(email: str) -> str:
    return email.strip().lower()


def is_encodable(value: str) -> bool:
    """False for strings holding lone surrogates, which JSON allows but UTF-8 does not."""
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def check_name(name: str | None, violations: list[FieldViolation]) -> None:
    if name is None or not name.strip():
        violations.append(FieldViolation("name", "Name is required."))
    elif not is_encodable(name):
        violations.append(FieldViolation("name", "Name contains invalid characters."))
    elif len(name.strip()) > MAX_NAME_LENGTH:
        violations.append(FieldViolation("name", f"Name must be at most {MAX_NAME_LENGTH} characters."))


def check_email(email: str | None, violations: list[FieldViolation]) -> None:
    if email is None or not email.strip():
        violations.append(FieldViolation("email", "Email is required."))
    elif not is_encodable(email):
        violations.append(FieldViolation("email", "Invalid email format."))
    elif len(email.strip()) > MAX_EMAIL_LENGTH or not EMAIL_RE.match(email.strip()):
        violations.append(FieldViolation("email", "Invalid email format."))


def check_password(password: str | None, min_length: int, violations: list[FieldViolation]) -> None:
    if not password:
        violations.append(FieldViolation("password", "Password is required."))
    elif not is_encodable(password):
        violations.append(FieldViolation("password", "Password contains invalid characters."))
    elif len(password) < min_length:
        violations.append(FieldViolation("password", f"Password must be at least {min_length} characters."))
    elif len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
        violations.append(FieldViolation("password", f"Password must be at most {BCRYPT_MAX_BYTES} bytes."))


def check_uri(field: str, value: str | None, violations: list[FieldViolation]) -> None:
    """Optional http(s) URI. None and empty string both mean "not provided"."""
    if not value:
        return
    if not is_encodable(value):
        violations.append(FieldViolation(field, "Must be a valid http(s) URL."))
        return
    parsed = urlparse(value)
    if len(value) > MAX_URI_LENGTH or parsed.scheme not in ("http", "https") or not parsed.netloc:
        violations.append(FieldViolation(field, "Must be a valid http(s) URL."))


def check_bio(bio: str | None, violations: list[FieldViolation]) -> None:
    if bio is not None and len(bio) > MAX_BIO_LENGTH:
        violations.append(FieldViolation("bio", f"Bio must be at most {MAX_BIO_LENGTH} characters."))
    elif bio is not None and not is_encodable(bio):
        violations.append(FieldViolation("bio", "Bio contains invalid characters."))


def raise_if_any(violations: list[FieldViolation]) -> None:
    if violations:
        raise ValidationError(violations)
