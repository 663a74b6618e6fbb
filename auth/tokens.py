"""
auth/tokens.py -- JWT issuance and verification.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry the account id (as the "sub"
       claim), display name, email, issued-at and expiry. There is no
       server-side session table -- a token is valid exactly when its
       signature verifies against the current key and its expiry is in the
       future. A leaked token therefore stays valid until it expires.

  Key handling: the signing key lives in an immutable TokenConfig built once
       from Settings at startup and injected into TokenService. Nothing in
       this module reads configuration at import time, so tests construct
       services with fixed keys and clocks.

  Verification order: signature first, expiry second. jose is asked to skip
       its own exp check so expiry is evaluated against the injected clock
       only after the signature has been accepted. A tampered token is always
       reported as InvalidSignature, never as expired.

  Canonical segments: every segment must be the unpadded base64url spelling
       of its decoded bytes. Otherwise flipping unused bits in a segment's
       last character would yield a different string that still verifies.

Layer rule: no imports from api/ or events/. Import from core/ is allowed.
"""

from __future__ import annotations

import base64
import binascii
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from jose import JWTError, jwt

from auth.models import Identity, TokenClaims

if TYPE_CHECKING:
    from core.config import Settings

logger = logging.getLogger("eventreg.auth")

ALGORITHM = "HS256"
DEFAULT_TTL = timedelta(days=7)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TokenError(Exception):
    """Base class for token verification failures."""


class MalformedToken(TokenError):
    """Not a compact three-segment JWT, or a verified token missing claims."""


class InvalidSignature(TokenError):
    """The token does not verify against the signing key."""


class ExpiredToken(TokenError):
    """The signature is valid but the token is past its expiry."""


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TokenConfig:
    """Immutable signing configuration.

    secret_key must already have passed the Settings validator (non-empty,
    at least 32 characters) when built via from_settings().
    """

    secret_key: str
    algorithm: str = ALGORITHM
    ttl: timedelta = DEFAULT_TTL

    def __post_init__(self) -> None:
        if not self.secret_key:
            raise ValueError("TokenConfig requires a signing key")

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenConfig:
        return cls(
            secret_key=settings.secret_key,
            ttl=timedelta(seconds=settings.token_expire_seconds),
        )


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class TokenService:
    """Issues and verifies signed, time-bounded bearer tokens.

    Usage:
        tokens = TokenService(TokenConfig(secret_key=settings.secret_key))
        token = tokens.issue(Identity(user_id=1, name="Jane", email="jane@example.com"))
        claims = tokens.verify(token)   # raises TokenError subclasses on failure
    """

    def __init__(self, config: TokenConfig, clock: Clock = _utcnow) -> None:
        self.config = config
        self._clock = clock

    def issue(self, identity: Identity, ttl: timedelta | None = None) -> str:
        """Encode a signed JWT for identity.

        ttl defaults to the configured lifetime. A negative ttl produces a
        token that is already expired (used by tests).
        """
        now = self._clock()
        lifetime = self.config.ttl if ttl is None else ttl
        payload = {
            "sub": str(identity.user_id),
            "name": identity.name,
            "email": identity.email,
            "iat": int(now.timestamp()),
            "exp": int((now + lifetime).timestamp()),
        }
        return jwt.encode(payload, self.config.secret_key, algorithm=self.config.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """Verify signature, then expiry, and return the claim set.

        Raises:
            MalformedToken:   token is not shaped like a compact JWT, or its
                              verified payload lacks required claims.
            InvalidSignature: any integrity or decoding failure.
            ExpiredToken:     signature is valid but now >= exp.
        """
        if not isinstance(token, str) or not _is_compact_jws(token):
            raise MalformedToken("token is not a compact JWT")
        if not all(_is_canonical_b64url(segment) for segment in token.split(".")):
            raise InvalidSignature("token segment is not canonical base64url")

        try:
            payload = jwt.decode(
                token,
                self.config.secret_key,
                algorithms=[self.config.algorithm],
                options={"verify_exp": False, "verify_iat": False, "verify_sub": False},
            )
        except JWTError as exc:
            raise InvalidSignature("token failed signature verification") from exc

        claims = _claims_from_payload(payload)
        if self._clock() >= claims.expires_at:
            raise ExpiredToken("token has expired")
        return claims


def _is_compact_jws(token: str) -> bool:
    parts = token.split(".")
    return len(parts) == 3 and all(parts)


def _is_canonical_b64url(segment: str) -> bool:
    """True if segment is the one unpadded base64url spelling of its bytes.

    The last character of a segment can carry unused low bits. Decoders
    ignore them, so two spellings would otherwise verify as the same token.
    """
    try:
        raw = base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))
    except (binascii.Error, ValueError):
        return False
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii") == segment


def _claims_from_payload(payload: dict) -> TokenClaims:
    try:
        return TokenClaims(
            user_id=int(payload["sub"]),
            name=str(payload["name"]),
            email=str(payload["email"]),
            issued_at=datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc),
            expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise MalformedToken("token is missing required claims") from exc
