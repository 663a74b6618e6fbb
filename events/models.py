"""
events/models.py -- Domain dataclass for published events.

Pure data container with zero logic. All persistence lives in
events/store.py; ownership checks live in the routes.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Event:
    """An event published by an organizer.

    organizer_id is the owning account. It is set from the authenticated
    identity when the event is created and is never reassigned -- the store
    refuses to update it.

    id is None before the record is written to the database.
    """

    title: str
    date: str  # free-form date/time string as entered by the organizer
    location: str
    description: str
    price: str  # display string, e.g. "Free" or "$25"
    image: str  # image URL
    category: str
    organizer_id: int
    is_public: bool = True
    id: int | None = None
