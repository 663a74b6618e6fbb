"""
api/routes/v1/events.py -- Event routes for the EventReg REST API.

Routes (in registration order to avoid FastAPI path capture conflicts):
  GET    /events                          -- list events (public_only=true by default)
  GET    /events/organizer/{organizer_id} -- one organizer's events
  POST   /events                          -- create; organizer is the caller
  GET    /events/{event_id}               -- event detail
  PUT    /events/{event_id}               -- partial update, organizer only
  DELETE /events/{event_id}               -- delete, organizer only

Ownership:
  Every mutating route loads the event first and calls auth.guard.authorize()
  against its organizer_id before writing. Creation takes the organizer from
  the verified identity; the request body has no organizer field.

Private events (is_public=false) are visible to their organizer only. Anyone
else gets the same 404 as for a missing id.

Deleting an event also removes its registrations.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response

from api.models import EventCreate, EventResponse, EventUpdate
from auth.dependencies import get_current_identity, get_optional_identity
from auth.guard import authorize
from auth.models import Identity
from core.errors import NotFound
from events.models import Event
from events.store import EventStore

logger = logging.getLogger("eventreg.events")

router = APIRouter()


def load_visible_event(store: EventStore, event_id: int, identity: Identity | None) -> Event:
    """Return the event, or raise NotFound if it is missing or private to someone else."""
    event = store.get_event(event_id)
    if event is None:
        raise NotFound("Event not found")
    if not event.is_public and (identity is None or identity.user_id != event.organizer_id):
        raise NotFound("Event not found")
    return event


@router.get("/events", response_model=list[EventResponse])
def list_events(
    request: Request,
    public_only: bool = True,
    identity: Identity | None = Depends(get_optional_identity),
) -> list[EventResponse]:
    """List events, newest first.

    public_only=false additionally includes the caller's own private events.
    """
    store: EventStore = request.app.state.events
    viewer_id = identity.user_id if identity else None
    return [EventResponse.from_event(e) for e in store.list_events(public_only=public_only, viewer_id=viewer_id)]


@router.get("/events/organizer/{organizer_id}", response_model=list[EventResponse])
def list_organizer_events(
    request: Request,
    organizer_id: int,
    identity: Identity | None = Depends(get_optional_identity),
) -> list[EventResponse]:
    """List one organizer's events. The organizer also sees their private ones."""
    store: EventStore = request.app.state.events
    include_private = identity is not None and identity.user_id == organizer_id
    return [EventResponse.from_event(e) for e in store.list_by_organizer(organizer_id, include_private)]


@router.post("/events", response_model=EventResponse, status_code=201)
def create_event(
    request: Request,
    body: EventCreate,
    identity: Identity = Depends(get_current_identity),
) -> EventResponse:
    """Publish a new event owned by the caller."""
    store: EventStore = request.app.state.events
    event_id = store.create_event(Event(organizer_id=identity.user_id, **body.model_dump()))
    logger.info("Event id=%d created by account id=%d", event_id, identity.user_id)
    event = store.get_event(event_id)
    if event is None:
        # Deleted by a concurrent request between insert and read.
        raise NotFound("Event not found")
    return EventResponse.from_event(event)


@router.get("/events/{event_id}", response_model=EventResponse)
def get_event(
    request: Request,
    event_id: int,
    identity: Identity | None = Depends(get_optional_identity),
) -> EventResponse:
    store: EventStore = request.app.state.events
    return EventResponse.from_event(load_visible_event(store, event_id, identity))


@router.put("/events/{event_id}", response_model=EventResponse)
def update_event(
    request: Request,
    event_id: int,
    body: EventUpdate,
    identity: Identity = Depends(get_current_identity),
) -> EventResponse:
    """Update an event. Only its organizer may do this."""
    store: EventStore = request.app.state.events
    event = load_visible_event(store, event_id, identity)
    authorize(identity, event.organizer_id, "You can only modify your own events")
    updated = store.update_event(event_id, **body.model_dump(exclude_unset=True, exclude_none=True))
    if updated is None:
        raise NotFound("Event not found")
    return EventResponse.from_event(updated)


@router.delete("/events/{event_id}", status_code=204)
def delete_event(
    request: Request,
    event_id: int,
    identity: Identity = Depends(get_current_identity),
) -> Response:
    """Delete an event. Only its organizer may do this."""
    store: EventStore = request.app.state.events
    event = load_visible_event(store, event_id, identity)
    authorize(identity, event.organizer_id, "You can only modify your own events")
    if not store.delete_event(event_id):
        raise NotFound("Event not found")
    removed = request.app.state.registrations.delete_for_event(event_id)
    logger.info("Event id=%d deleted by account id=%d (%d registrations removed)", event_id, identity.user_id, removed)
    return Response(status_code=204)
