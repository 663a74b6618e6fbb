"""
auth/passwords.py -- bcrypt password hashing.

Bcrypt is the right choice for low-entropy secrets (passwords) because its
cost factor makes brute force expensive. The record returned by hash() is the
standard modular-crypt string ("$2b$10$<22 char salt><31 char digest>") so the
salt and cost travel with the digest and verify() needs nothing else.

Using bcrypt directly rather than passlib[bcrypt] because passlib's internal
wrap-bug detection creates a password longer than 72 bytes, which bcrypt 4.x
rejects with an explicit error.

72-byte limit: bcrypt only considers the first 72 bytes of input, and bcrypt
5.x raises ValueError for anything longer. Registration rejects such
passwords up front (auth.validation), and verify() reports them as a
non-match instead of raising.

Layer rule: no imports from api/ or events/.
"""

from __future__ import annotations

import re

import bcrypt

BCRYPT_MAX_BYTES = 72
DEFAULT_ROUNDS = 10

_RECORD_RE = re.compile(r"^\$2[abxy]?\$(\d{2})\$[./A-Za-z0-9]{53}$")


class InvalidRecord(ValueError):
    """The stored hash is not a bcrypt record."""


class PasswordHasher:
    """Salted, adaptive-cost one-way hashing of secrets.

    rounds is the bcrypt log2 cost factor. Each increment doubles the work
    for both legitimate verification and offline brute force.

    Usage:
        hasher = PasswordHasher(rounds=10)
        record = hasher.hash("secret123")
        hasher.verify("secret123", record)  # True
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        if not 4 <= rounds <= 31:
            raise ValueError("bcrypt rounds must be between 4 and 31")
        self.rounds = rounds
        self._dummy_record: str | None = None

    def hash(self, secret: str) -> str:
        """Return a bcrypt record for secret. Fresh salt on every call."""
        try:
            raw = secret.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise ValueError("secret is not encodable as UTF-8") from exc
        if len(raw) > BCRYPT_MAX_BYTES:
            raise ValueError(f"secret exceeds {BCRYPT_MAX_BYTES} bytes")
        return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=self.rounds)).decode("ascii")

    def verify(self, secret: str, record: str) -> bool:
        """Return True if secret matches record.

        Raises InvalidRecord if record is not a well-formed bcrypt string;
        any other mismatch, including a secret that cannot be encoded as
        UTF-8 or is longer than 72 bytes, is simply False.
        """
        if not isinstance(record, str) or not _RECORD_RE.match(record):
            raise InvalidRecord("stored password hash is not a bcrypt record")
        try:
            raw = secret.encode("utf-8")
        except UnicodeEncodeError:
            return False
        if len(raw) > BCRYPT_MAX_BYTES:
            return False
        try:
            return bcrypt.checkpw(raw, record.encode("ascii"))
        except ValueError as exc:
            raise InvalidRecord("stored password hash could not be parsed") from exc

    @property
    def dummy_record(self) -> str:
        """A throwaway record at the configured cost.

        Verifying against it when an account does not exist makes the
        unknown-email path cost the same as the wrong-password path, so
        response time does not reveal which emails are registered.
        """
        if self._dummy_record is None:
            self._dummy_record = self.hash("eventreg_timing_dummy")
        return self._dummy_record

    @staticmethod
    def cost_of(record: str) -> int:
        """Return the cost factor embedded in a bcrypt record."""
        match = _RECORD_RE.match(record) if isinstance(record, str) else None
        if match is None:
            raise InvalidRecord("stored password hash is not a bcrypt record")
        return int(match.group(1))
