"""
auth/service.py -- Registration, login and profile flows.

AuthService orchestrates the three collaborators that make up identity
handling: the account store, the password hasher and the token service. It
raises core.errors.AppError subclasses; turning those into HTTP responses is
the API layer's job.

Security:
  Login timing: authenticate() always runs bcrypt, against the stored hash
  when the account exists and against the hasher's dummy record when it does
  not. Unknown email and wrong password produce the same InvalidCredentials
  with the same cost, so neither the response nor its latency reveals which
  emails are registered. Do NOT inline get_user_by_email() + verify() in a
  route -- that reintroduces the timing difference.

  Secrets and tokens are never logged. Log lines carry the account id only.

  Registration race: the existence check before insert is a courtesy. The
  UNIQUE(email) constraint is what actually prevents duplicates; a
  DuplicateEmailError from the store is mapped to the same Conflict.

Layer rule: no imports from api/ or events/.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from auth.guard import authorize
from auth.models import Account, AuthResult, Identity
from auth.passwords import InvalidRecord, PasswordHasher
from auth.store import DuplicateEmailError, UserStore
from auth.tokens import TokenService
from auth.validation import (
    check_bio,
    check_email,
    check_name,
    check_password,
    check_uri,
    normalize_email,
    raise_if_any,
)
from core.errors import Conflict, FieldViolation, InternalError, InvalidCredentials, NotFound

logger = logging.getLogger("eventreg.auth")

EMAIL_TAKEN = "email already registered"


@contextmanager
def _storage(operation: str) -> Iterator[None]:
    """Translate unexpected database failures into InternalError.

    The original exception is logged with its traceback; the client only
    ever sees the generic InternalError message.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception("Storage failure during %s", operation)
        raise InternalError() from exc


class AuthService:
    """Account lifecycle: register, authenticate, read and update profile."""

    def __init__(
        self,
        store: UserStore,
        hasher: PasswordHasher,
        tokens: TokenService,
        password_min_length: int = 6,
    ) -> None:
        self.store = store
        self.hasher = hasher
        self.tokens = tokens
        self.password_min_length = password_min_length

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(
        self,
        name: str | None,
        email: str | None,
        password: str | None,
        avatar: str | None = None,
        bio: str | None = None,
    ) -> AuthResult:
        """Create an account and issue its first token.

        Raises ValidationError (all violations), Conflict (email taken) or
        InternalError (storage failure).
        """
        violations: list[FieldViolation] = []
        check_name(name, violations)
        check_email(email, violations)
        check_password(password, self.password_min_length, violations)
        check_uri("avatar", avatar, violations)
        check_bio(bio, violations)
        raise_if_any(violations)

        normalized = normalize_email(email)
        with _storage("register"):
            if self.store.get_user_by_email(normalized) is not None:
                raise Conflict(EMAIL_TAKEN)

            record = self.hasher.hash(password)
            try:
                account = self.store.create_user(
                    Account(
                        name=name.strip(),
                        email=normalized,
                        password_hash=record,
                        avatar=avatar or None,
                        bio=bio,
                    )
                )
            except DuplicateEmailError as exc:
                # Lost the race against a concurrent registration.
                raise Conflict(EMAIL_TAKEN) from exc

        logger.info("Registered account id=%d", account.id)
        return AuthResult(account=account, token=self.issue_token(account))

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def login(self, email: str | None, password: str | None) -> AuthResult:
        """Authenticate by email + password and issue a token.

        Raises ValidationError before touching storage when a field is
        missing or the email is malformed; InvalidCredentials otherwise.
        """
        violations: list[FieldViolation] = []
        check_email(email, violations)
        if not password:
            violations.append(FieldViolation("password", "Password is required."))
        raise_if_any(violations)

        account = self.authenticate(normalize_email(email), password)
        logger.info("Login account id=%d", account.id)
        return AuthResult(account=account, token=self.issue_token(account))

    def authenticate(self, email: str, password: str) -> Account:
        """Return the account for (email, password) or raise InvalidCredentials.

        Always runs bcrypt exactly once, whether or not the account exists.
        """
        with _storage("login"):
            account = self.store.get_user_by_email(email)

        if account is None:
            self.hasher.verify(password, self.hasher.dummy_record)
            raise InvalidCredentials()

        try:
            matched = self.hasher.verify(password, account.password_hash)
        except InvalidRecord:
            # Corrupt stored hash. Reported to the client exactly like a
            # wrong password so the response does not single the account out.
            logger.error("Account id=%d has an unreadable password hash", account.id)
            matched = False
        if not matched:
            raise InvalidCredentials()
        stored_cost = self.hasher.cost_of(account.password_hash)
        if stored_cost < self.hasher.rounds:
            logger.warning(
                "Account id=%d password hash has cost %d, below configured %d",
                account.id,
                stored_cost,
                self.hasher.rounds,
            )
        return account

    def issue_token(self, account: Account) -> str:
        return self.tokens.issue(Identity(user_id=account.id, name=account.name, email=account.email))

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def get_account(self, user_id: int) -> Account:
        """Return the account or raise NotFound."""
        with _storage("get_account"):
            account = self.store.get_user(user_id)
        if account is None:
            raise NotFound("User not found")
        return account

    def update_profile(self, identity: Identity, user_id: int, changes: dict[str, Any]) -> Account:
        """Apply a partial profile update on behalf of identity.

        changes holds only the fields the client sent. Accepted keys: name,
        email, password, avatar, bio. The ownership check runs before any
        validation or storage access.
        """
        authorize(identity, user_id, "You can only update your own profile")

        violations: list[FieldViolation] = []
        updates: dict[str, Any] = {}
        if "name" in changes:
            check_name(changes["name"], violations)
            if changes["name"]:
                updates["name"] = changes["name"].strip()
        if "email" in changes:
            check_email(changes["email"], violations)
            if changes["email"]:
                updates["email"] = normalize_email(changes["email"])
        if "password" in changes:
            check_password(changes["password"], self.password_min_length, violations)
        if "avatar" in changes:
            check_uri("avatar", changes["avatar"], violations)
            updates["avatar"] = changes["avatar"] or None
        if "bio" in changes:
            check_bio(changes["bio"], violations)
            updates["bio"] = changes["bio"]
        raise_if_any(violations)

        if "password" in changes:
            updates["password_hash"] = self.hasher.hash(changes["password"])

        with _storage("update_profile"):
            if "email" in updates:
                existing = self.store.get_user_by_email(updates["email"])
                if existing is not None and existing.id != user_id:
                    raise Conflict(EMAIL_TAKEN)
            try:
                account = self.store.update_user(user_id, **updates)
            except DuplicateEmailError as exc:
                raise Conflict(EMAIL_TAKEN) from exc

        if account is None:
            raise NotFound("User not found")
        logger.info("Updated profile id=%d fields=%s", user_id, sorted(updates))
        return account
