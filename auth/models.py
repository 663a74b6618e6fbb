"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in events/models.py -- dataclasses own domain shape; stores, services and
routes do the work.

Layer rule: no imports from api/ or events/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Account:
    """A registered identity in EventReg.

    email is stored trimmed and lower-cased (see auth.validation.normalize_email)
    so the UNIQUE constraint on the column is effectively case-insensitive.

    password_hash is the bcrypt record and must never leave the auth layer:
    API responses are built from explicit fields, never from this object's
    __dict__.

    id is None before the record is written to the database.
    """

    name: str
    email: str
    password_hash: str
    id: int | None = None
    avatar: str | None = None
    bio: str | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, as asserted by a verified token.

    This is the value the authentication dependency hands to route handlers.
    It is derived purely from token claims -- resolving it never touches
    storage, so name/email may be stale until the next login.
    """

    user_id: int
    name: str
    email: str


@dataclass(frozen=True)
class TokenClaims:
    """Verified claim set of a bearer token."""

    user_id: int
    name: str
    email: str
    issued_at: datetime
    expires_at: datetime

    @property
    def identity(self) -> Identity:
        return Identity(user_id=self.user_id, name=self.name, email=self.email)


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a successful registration or login."""

    account: Account
    token: str
