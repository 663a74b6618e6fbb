"""
registrations/models.py -- Domain dataclass for attendee registrations.
"""

from __future__ import annotations

from dataclasses import dataclass

TICKET_TYPES = ("standard", "vip", "student")


@dataclass
class Registration:
    """One account's sign-up for one event.

    user_id is the registering account, always taken from the verified token.
    full_name and email are the attendee details entered on the form and may
    differ from the account's own profile.

    id and registration_date are None until the record is stored.
    """

    event_id: int
    user_id: int
    full_name: str
    email: str
    ticket_type: str  # one of TICKET_TYPES
    id: int | None = None
    registration_date: str | None = None  # ISO-8601 UTC
