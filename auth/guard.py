"""
auth/guard.py -- Ownership authorization.

An owned resource (an account profile, an event) records the id of the
account that created it. Only that account may mutate it. Route handlers call
authorize() after loading the resource and before writing anything.
"""

from __future__ import annotations

from auth.models import Identity
from core.errors import Forbidden


def authorize(identity: Identity, owner_id: int, message: str = "You do not own this resource.") -> None:
    """Raise Forbidden unless identity is the resource owner. No I/O."""
    if identity.user_id != owner_id:
        raise Forbidden(message)
