"""
auth/store.py -- SQLAlchemy Core persistence layer for accounts.

Pattern: Repository + Data Mapper (same as events/store.py).
UserStore is the repository; _row_to_account is the mapper.
Service and route code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  UNIQUE(email) is the real guard against two concurrent registrations with
  the same address. The service layer checks for an existing account first
  for a friendly error, but that check is not atomic; create_user() turns
  the late IntegrityError into DuplicateEmailError so callers can map both
  paths to the same Conflict.

Layer rule: no imports from api/ or events/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.models import Account
from core.db import make_engine

# Columns callers may change through update_user(). id, email uniqueness and
# created_at are owned by the store.
_UPDATABLE_FIELDS = frozenset({"name", "email", "password_hash", "avatar", "bio"})

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(100), nullable=False),
    Column("email", String(255), nullable=False, unique=True),  # stored lower-cased
    Column("password_hash", Text, nullable=False),
    Column("avatar", Text),
    Column("bio", Text),
    Column("created_at", String(32), nullable=False),
)


class DuplicateEmailError(Exception):
    """Raised when an insert or update collides with an existing email."""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for Account entities.

    Usage:
        store = UserStore("sqlite:///:memory:")
        account = store.create_user(Account(name="Jane", email="jane@example.com", password_hash=record))
        store.get_user_by_email("jane@example.com")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        metadata.create_all(self.engine)

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    def create_user(self, account: Account) -> Account:
        """Insert a new account and return it as stored (id and created_at set).

        Raises DuplicateEmailError if the email is already registered.
        """
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _users.insert().values(
                        name=account.name,
                        email=account.email,
                        password_hash=account.password_hash,
                        avatar=account.avatar,
                        bio=account.bio,
                        created_at=_now_iso(),
                    )
                )
                conn.commit()
                user_id = result.inserted_primary_key[0]
        except IntegrityError as exc:
            raise DuplicateEmailError(account.email) from exc
        return self.get_user(user_id)

    def get_user(self, user_id: int) -> Account | None:
        """Look up an account by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_account(row) if row is not None else None

    def get_user_by_email(self, email: str) -> Account | None:
        """Look up an account by exact (already normalized) email."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_account(row) if row is not None else None

    def update_user(self, user_id: int, **fields) -> Account | None:
        """Apply a partial update and return the updated account.

        Accepted fields: name, email, password_hash, avatar, bio. Unknown keys
        raise ValueError rather than being silently ignored.

        Returns None if user_id was not found. Raises DuplicateEmailError if
        the new email belongs to another account.
        """
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown user fields: {sorted(unknown)!r}")
        if fields:
            try:
                with self.engine.connect() as conn:
                    result = conn.execute(_users.update().where(_users.c.id == user_id).values(**fields))
                    conn.commit()
            except IntegrityError as exc:
                raise DuplicateEmailError(fields.get("email", "")) from exc
            if result.rowcount == 0:
                return None
        return self.get_user(user_id)

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_account(row) -> Account:
    return Account(
        id=row.id,
        name=row.name,
        email=row.email,
        password_hash=row.password_hash,
        avatar=row.avatar,
        bio=row.bio,
        created_at=row.created_at,
    )
