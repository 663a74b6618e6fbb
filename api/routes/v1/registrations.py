"""
api/routes/v1/registrations.py -- Attendee registration routes.

Routes:
  POST /registrations                   -- register the caller for an event
  GET  /registrations/user/{user_id}    -- the caller's own registrations
  GET  /registrations/event/{event_id}  -- an event's attendees, organizer only
  GET  /registrations/{registration_id} -- one registration, registrant or organizer

Every route requires a bearer token. A registration carries the attendee's
name and email, so it is readable only by the account that made it and by
the organizer of the event it is for. The registrant is always the caller;
the request body has no user field.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from api.models import RegistrationCreate, RegistrationResponse
from api.routes.v1.events import load_visible_event
from auth.dependencies import get_current_identity
from auth.guard import authorize
from auth.models import Identity
from core.errors import Forbidden, NotFound
from registrations.models import Registration
from registrations.store import RegistrationStore

logger = logging.getLogger("eventreg.registrations")

router = APIRouter()


@router.post("/registrations", response_model=RegistrationResponse, status_code=201)
def create_registration(
    request: Request,
    body: RegistrationCreate,
    identity: Identity = Depends(get_current_identity),
) -> RegistrationResponse:
    """Register the caller for a visible event."""
    event = load_visible_event(request.app.state.events, body.event_id, identity)
    store: RegistrationStore = request.app.state.registrations
    registration = store.create_registration(
        Registration(
            event_id=event.id,
            user_id=identity.user_id,
            full_name=body.full_name,
            email=body.email,
            ticket_type=body.ticket_type,
        )
    )
    logger.info("Registration id=%d: account id=%d for event id=%d", registration.id, identity.user_id, event.id)
    return RegistrationResponse.from_registration(registration)


@router.get("/registrations/user/{user_id}", response_model=list[RegistrationResponse])
def list_user_registrations(
    request: Request,
    user_id: int,
    identity: Identity = Depends(get_current_identity),
) -> list[RegistrationResponse]:
    authorize(identity, user_id, "You can only view your own registrations")
    store: RegistrationStore = request.app.state.registrations
    return [RegistrationResponse.from_registration(r) for r in store.list_by_user(user_id)]


@router.get("/registrations/event/{event_id}", response_model=list[RegistrationResponse])
def list_event_registrations(
    request: Request,
    event_id: int,
    identity: Identity = Depends(get_current_identity),
) -> list[RegistrationResponse]:
    """List an event's attendees. Only the event's organizer may do this."""
    event = load_visible_event(request.app.state.events, event_id, identity)
    authorize(identity, event.organizer_id, "Only the organizer can view an event's registrations")
    store: RegistrationStore = request.app.state.registrations
    return [RegistrationResponse.from_registration(r) for r in store.list_by_event(event_id)]


@router.get("/registrations/{registration_id}", response_model=RegistrationResponse)
def get_registration(
    request: Request,
    registration_id: int,
    identity: Identity = Depends(get_current_identity),
) -> RegistrationResponse:
    store: RegistrationStore = request.app.state.registrations
    registration = store.get_registration(registration_id)
    if registration is None:
        raise NotFound("Registration not found")
    if registration.user_id != identity.user_id:
        event = request.app.state.events.get_event(registration.event_id)
        if event is None:
            raise Forbidden("You cannot view this registration")
        authorize(identity, event.organizer_id, "You cannot view this registration")
    return RegistrationResponse.from_registration(registration)
