"""
registrations/store.py -- SQLAlchemy-backed persistence layer for registrations.

Pattern: Repository + Data Mapper (same as events/store.py).
RegistrationStore is the repository; _row_to_registration is the mapper.

Registrations reference events and accounts by id only. Events may live in
another database, so there is no foreign key; delete_for_event() is called
when an event is removed.

Usage:
    store = RegistrationStore("sqlite:///:memory:")
    registration = store.create_registration(Registration(...))
    store.list_by_event(registration.event_id)
    store.close()
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table

from core.db import make_engine
from registrations.models import Registration

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_registrations = Table(
    "registrations",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("event_id", Integer, nullable=False, index=True),
    Column("user_id", Integer, nullable=False, index=True),
    Column("full_name", String(100), nullable=False),
    Column("email", String(255), nullable=False),
    Column("ticket_type", String(20), nullable=False),
    Column("registration_date", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class RegistrationStore:
    """Repository for Registration entities."""

    def __init__(self, db_url: str) -> None:
        self.engine = make_engine(db_url)
        metadata.create_all(self.engine)

    def create_registration(self, registration: Registration) -> Registration:
        """Insert a registration and return it with id and registration_date set."""
        registered_at = datetime.now(timezone.utc).isoformat(timespec="microseconds")
        with self.engine.connect() as conn:
            result = conn.execute(
                _registrations.insert().values(
                    event_id=registration.event_id,
                    user_id=registration.user_id,
                    full_name=registration.full_name,
                    email=registration.email,
                    ticket_type=registration.ticket_type,
                    registration_date=registered_at,
                )
            )
            conn.commit()
        return replace(registration, id=result.inserted_primary_key[0], registration_date=registered_at)

    def get_registration(self, registration_id: int) -> Registration | None:
        with self.engine.connect() as conn:
            row = conn.execute(_registrations.select().where(_registrations.c.id == registration_id)).fetchone()
        return _row_to_registration(row) if row is not None else None

    def list_by_user(self, user_id: int) -> list[Registration]:
        """Return one account's registrations, newest first."""
        return self._list(_registrations.c.user_id == user_id)

    def list_by_event(self, event_id: int) -> list[Registration]:
        """Return an event's registrations, newest first."""
        return self._list(_registrations.c.event_id == event_id)

    def delete_for_event(self, event_id: int) -> int:
        """Remove every registration for event_id. Returns the number removed."""
        with self.engine.connect() as conn:
            result = conn.execute(_registrations.delete().where(_registrations.c.event_id == event_id))
            conn.commit()
        return result.rowcount

    def close(self) -> None:
        self.engine.dispose()

    def _list(self, condition) -> list[Registration]:
        query = _registrations.select().where(condition)
        order = (_registrations.c.registration_date.desc(), _registrations.c.id.desc())
        with self.engine.connect() as conn:
            rows = conn.execute(query.order_by(*order)).fetchall()
        return [_row_to_registration(r) for r in rows]


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_registration(row) -> Registration:
    return Registration(
        id=row.id,
        event_id=row.event_id,
        user_id=row.user_id,
        full_name=row.full_name,
        email=row.email,
        ticket_type=row.ticket_type,
        registration_date=row.registration_date,
    )
