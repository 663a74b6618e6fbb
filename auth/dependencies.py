"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

A request moves through three states:
  no token       -> Unauthenticated (401, "Access token required")
  token, invalid -> Forbidden       (403, "Invalid or expired token")
  token, valid   -> Identity handed to the route handler

Every verification failure (malformed, bad signature, expired) collapses into
the same Forbidden so a client cannot tell which check failed. The gate
never touches storage and never logs the token.

authenticate_header() is the framework-free core; get_current_identity() and
get_optional_identity() adapt it to FastAPI.

Layer rule: no imports from api/ or events/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging

from fastapi import Request

from auth.models import Identity
from auth.tokens import TokenError, TokenService
from core.errors import Forbidden, Unauthenticated

logger = logging.getLogger("eventreg.auth")

INVALID_TOKEN = "Invalid or expired token"


def extract_bearer(authorization: str | None) -> str | None:
    """Return the token from an "Authorization: Bearer <token>" value.

    The scheme is matched case-insensitively. Any other scheme, or a Bearer
    header with nothing after it, counts as no token.
    """
    if not authorization:
        return None
    scheme, _, credentials = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return credentials.strip() or None


def authenticate_header(authorization: str | None, tokens: TokenService) -> Identity:
    """Resolve an Authorization header value to an Identity.

    Raises Unauthenticated when no bearer token is present and Forbidden
    when one is present but does not verify.
    """
    token = extract_bearer(authorization)
    if token is None:
        raise Unauthenticated("Access token required")
    try:
        claims = tokens.verify(token)
    except TokenError as exc:
        logger.debug("Rejected bearer token (%s)", type(exc).__name__)
        raise Forbidden(INVALID_TOKEN) from exc
    return claims.identity


def get_current_identity(request: Request) -> Identity:
    """Require authentication.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(identity: Identity = Depends(get_current_identity)): ...
    """
    tokens: TokenService = request.app.state.tokens
    return authenticate_header(request.headers.get("Authorization"), tokens)


def get_optional_identity(request: Request) -> Identity | None:
    """Soft variant: the Identity if a valid token was sent, else None.

    Never raises. Used by public listings that show more to a signed-in
    organizer.
    """
    try:
        return get_current_identity(request)
    except (Unauthenticated, Forbidden):
        return None
