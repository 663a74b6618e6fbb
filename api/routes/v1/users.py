"""
api/routes/v1/users.py -- Public profiles and owner-only profile updates.

Routes:
  GET /api/v1/users/{user_id}   -- public profile (no auth)
  PUT /api/v1/users/{user_id}   -- partial update, caller must be user_id
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.models import UserResponse, UserUpdate
from auth.dependencies import get_current_identity
from auth.models import Identity
from auth.service import AuthService

router = APIRouter()


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(request: Request, user_id: int) -> UserResponse:
    """Return a user's profile. The password hash is never included."""
    service: AuthService = request.app.state.auth
    return UserResponse.from_account(service.get_account(user_id))


@router.put("/users/{user_id}", response_model=UserResponse)
def update_user(
    request: Request,
    user_id: int,
    body: UserUpdate,
    identity: Identity = Depends(get_current_identity),
) -> UserResponse:
    """Update the caller's own profile. 403 for anyone else's."""
    service: AuthService = request.app.state.auth
    account = service.update_profile(identity, user_id, body.model_dump(exclude_unset=True))
    return UserResponse.from_account(account)
