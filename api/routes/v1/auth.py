"""
api/routes/v1/auth.py -- Account and session REST endpoints.

Routes:
  POST /api/v1/auth/register   -- create account; 201 {user, token}
  POST /api/v1/auth/login      -- email + password; 200 {user, token}
  POST /api/v1/auth/logout     -- acknowledgement only; client discards token
  GET  /api/v1/auth/me         -- current account (requires auth)

Security:
  AuthService.login() provides timing equalization -- use it, never inline
  the lookup + verify here.
  Cache-Control: no-store on every response that carries a token.

Register and login are plain `def` handlers: bcrypt is CPU-bound, and FastAPI
runs sync handlers in its worker thread pool instead of on the event loop.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from api.models import AuthResponse, LoginRequest, MessageResponse, RegisterRequest, UserResponse
from auth.dependencies import get_current_identity
from auth.models import AuthResult, Identity
from auth.service import AuthService

# Auth policy:
# - POST /api/v1/auth/register: public
# - POST /api/v1/auth/login:    public
# - POST /api/v1/auth/logout:   public -- tokens are stateless, nothing to revoke
# - GET  /api/v1/auth/me:       requires auth (get_current_identity)
router = APIRouter()


def _auth_response(result: AuthResult, response: Response) -> AuthResponse:
    response.headers["Cache-Control"] = "no-store"
    return AuthResponse(user=UserResponse.from_account(result.account), token=result.token)


@router.post("/auth/register", response_model=AuthResponse, status_code=201)
def register(request: Request, response: Response, body: RegisterRequest) -> AuthResponse:
    """Create an account and return it with a freshly issued token."""
    service: AuthService = request.app.state.auth
    result = service.register(
        name=body.name,
        email=body.email,
        password=body.password,
        avatar=body.avatar,
        bio=body.bio,
    )
    return _auth_response(result, response)


@router.post("/auth/login", response_model=AuthResponse)
def login(request: Request, response: Response, body: LoginRequest) -> AuthResponse:
    """Authenticate with email and password.

    Unknown email and wrong password return the same 401 body.
    """
    service: AuthService = request.app.state.auth
    result = service.login(email=body.email, password=body.password)
    return _auth_response(result, response)


@router.post("/auth/logout", response_model=MessageResponse)
async def logout() -> MessageResponse:
    """Tokens are self-contained; logging out is the client dropping its copy."""
    return MessageResponse(message="Logged out successfully")


@router.get("/auth/me", response_model=UserResponse)
def me(request: Request, identity: Identity = Depends(get_current_identity)) -> UserResponse:
    """Return the caller's own account, freshly read from storage."""
    service: AuthService = request.app.state.auth
    return UserResponse.from_account(service.get_account(identity.user_id))
