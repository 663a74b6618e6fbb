"""
tests/conftest.py -- Shared test fixtures for EventReg tests.

This module provides:
  - FrozenClock: controllable clock for TokenService
  - hasher / tokens / user_store / event_store / registration_store / service:
    unit-level collaborators
  - _make_test_stores(): creates isolated in-memory DBs for users, events and registrations
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_client: TestClient plus a pre-registered organizer account and token

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

SECRET_KEY and BCRYPT_ROUNDS must be set before any api/core import so
get_settings() sees them.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

# CRITICAL: set before any core/api import so get_settings() picks them up.
os.environ.setdefault("SECRET_KEY", "test-signing-key-0123456789abcdef0123456789")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DEBUG", "false")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import Account, Identity
from auth.passwords import PasswordHasher
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import TokenConfig, TokenService
from events.store import EventStore
from registrations.store import RegistrationStore

TEST_KEY = "unit-test-signing-key-abcdefghijklmnopqrstuvwxyz"
FAST_ROUNDS = 4


class FrozenClock:
    """Callable clock for TokenService. Time only moves when told to."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=FAST_ROUNDS)


@pytest.fixture
def tokens(clock: FrozenClock) -> TokenService:
    return TokenService(TokenConfig(secret_key=TEST_KEY), clock=clock)


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def event_store() -> Generator[EventStore, None, None]:
    store = EventStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def registration_store() -> Generator[RegistrationStore, None, None]:
    store = RegistrationStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def service(user_store: UserStore, hasher: PasswordHasher, tokens: TokenService) -> AuthService:
    return AuthService(store=user_store, hasher=hasher, tokens=tokens, password_min_length=6)


@pytest.fixture
def jane() -> Identity:
    return Identity(user_id=1, name="Jane Doe", email="jane@example.com")


# ---------------------------------------------------------------------------
# Integration helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[UserStore, EventStore, RegistrationStore]:
    """Create isolated named shared-memory SQLite stores for test isolation.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state.
    """
    users_url = f"sqlite:///file:test_users_{db_suffix}?mode=memory&cache=shared&uri=true"
    events_url = f"sqlite:///file:test_events_{db_suffix}?mode=memory&cache=shared&uri=true"
    registrations_url = f"sqlite:///file:test_registrations_{db_suffix}?mode=memory&cache=shared&uri=true"
    return UserStore(users_url), EventStore(events_url), RegistrationStore(registrations_url)


def _patch_lifespan(users: UserStore, events: EventStore, registrations: RegistrationStore, tokens: TokenService):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores and a fixed-key TokenService into
    app.state so TestClient routes see isolated test DBs.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.users = users
        app.state.events = events
        app.state.registrations = registrations
        app.state.tokens = tokens
        app.state.auth = AuthService(
            store=users,
            hasher=PasswordHasher(rounds=FAST_ROUNDS),
            tokens=tokens,
            password_min_length=6,
        )
        yield

    return test_lifespan


def _client_for(db_suffix: str) -> Generator[tuple[TestClient, str, int], None, None]:
    users, events, registrations = _make_test_stores(db_suffix)
    tokens = TokenService(TokenConfig(secret_key=TEST_KEY))

    organizer = users.create_user(
        Account(
            name="Olive Organizer",
            email="olive@example.com",
            password_hash=PasswordHasher(rounds=FAST_ROUNDS).hash("organizer-pass"),
        )
    )
    token = tokens.issue(Identity(user_id=organizer.id, name=organizer.name, email=organizer.email))

    app.router.lifespan_context = _patch_lifespan(users, events, registrations, tokens)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, token, organizer.id

    users.close()
    events.close()
    registrations.close()


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, str, int], None, None]:
    """Yield (client, token, user_id) for API integration tests.

    The database name is derived from the test module so each module starts
    from an empty store holding only the organizer account
    (olive@example.com / organizer-pass).
    """
    yield from _client_for(request.module.__name__.rsplit(".", 1)[-1])
