"""
events/store.py -- SQLAlchemy-backed persistence layer for events.

Uses SQLAlchemy Core (not ORM) so the Event dataclass in events/models.py
remains the authoritative domain representation.

Pattern: Repository + Data Mapper. EventStore is the repository;
_row_to_event is the mapper. Route handlers never touch SQL directly.

Security: all queries use bound parameters. No f-strings in SQL.

Ownership: organizer_id is written once on insert and excluded from the
updatable column set, so no update path can move an event to another owner.

Usage:
    store = EventStore("sqlite:///:memory:")
    event_id = store.create_event(event)
    store.list_events(public_only=True)
    store.update_event(event_id, title="New title")
    store.delete_event(event_id)
    store.close()
"""

from __future__ import annotations

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, or_

from core.db import make_engine
from events.models import Event

_UPDATABLE_FIELDS = frozenset({"title", "date", "location", "description", "price", "image", "category", "is_public"})

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_events = Table(
    "events",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(200), nullable=False),
    Column("date", String(64), nullable=False),
    Column("location", String(255), nullable=False),
    Column("description", Text, nullable=False),
    Column("price", String(50), nullable=False),
    Column("image", Text, nullable=False),
    Column("category", String(50), nullable=False),
    Column("organizer_id", Integer, nullable=False, index=True),
    Column("is_public", Integer, nullable=False, server_default="1"),  # boolean stored as 0/1
)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class EventStore:
    """Repository for Event entities."""

    def __init__(self, db_url: str) -> None:
        self.engine = make_engine(db_url)
        metadata.create_all(self.engine)

    def create_event(self, event: Event) -> int:
        """Insert a new event and return its assigned database ID."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _events.insert().values(
                    title=event.title,
                    date=event.date,
                    location=event.location,
                    description=event.description,
                    price=event.price,
                    image=event.image,
                    category=event.category,
                    organizer_id=event.organizer_id,
                    is_public=1 if event.is_public else 0,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_event(self, event_id: int) -> Event | None:
        """Look up an event by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_events.select().where(_events.c.id == event_id)).fetchone()
        return _row_to_event(row) if row is not None else None

    def list_events(self, public_only: bool = True, viewer_id: int | None = None) -> list[Event]:
        """Return events ordered by date, newest first.

        public_only=True returns public events only. public_only=False adds
        the private events owned by viewer_id; other organizers' private
        events are never listed.
        """
        query = _events.select()
        if public_only or viewer_id is None:
            query = query.where(_events.c.is_public == 1)
        else:
            query = query.where(or_(_events.c.is_public == 1, _events.c.organizer_id == viewer_id))
        with self.engine.connect() as conn:
            rows = conn.execute(query.order_by(_events.c.date.desc(), _events.c.id.desc())).fetchall()
        return [_row_to_event(r) for r in rows]

    def list_by_organizer(self, organizer_id: int, include_private: bool = False) -> list[Event]:
        """Return one organizer's events, newest first."""
        query = _events.select().where(_events.c.organizer_id == organizer_id)
        if not include_private:
            query = query.where(_events.c.is_public == 1)
        with self.engine.connect() as conn:
            rows = conn.execute(query.order_by(_events.c.date.desc(), _events.c.id.desc())).fetchall()
        return [_row_to_event(r) for r in rows]

    def update_event(self, event_id: int, **fields) -> Event | None:
        """Apply a partial update and return the updated event.

        organizer_id is not updatable. Unknown keys raise ValueError.
        Returns None if event_id was not found.
        """
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown event fields: {sorted(unknown)!r}")
        if "is_public" in fields:
            fields["is_public"] = 1 if fields["is_public"] else 0
        if fields:
            with self.engine.connect() as conn:
                result = conn.execute(_events.update().where(_events.c.id == event_id).values(**fields))
                conn.commit()
            if result.rowcount == 0:
                return None
        return self.get_event(event_id)

    def delete_event(self, event_id: int) -> bool:
        """Permanently delete an event. Returns True if deleted, False if not found.

        The ownership check is the caller's responsibility.
        """
        with self.engine.connect() as conn:
            result = conn.execute(_events.delete().where(_events.c.id == event_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_event(row) -> Event:
    return Event(
        id=row.id,
        title=row.title,
        date=row.date,
        location=row.location,
        description=row.description,
        price=row.price,
        image=row.image,
        category=row.category,
        organizer_id=row.organizer_id,
        is_public=bool(row.is_public),
    )
