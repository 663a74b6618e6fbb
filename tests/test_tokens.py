"""Unit tests for auth/tokens.py -- JWT issue and verify.

Covers:
- verify(issue(identity)) returns the same identity anywhere inside the TTL
- expiry boundary (exp is exclusive), negative TTL, default 7-day TTL
- tampering with any character, including the unused low bits of a
  segment's last character, yields InvalidSignature
- signature is checked before expiry (tampered + expired -> InvalidSignature)
- wrong key, wrong algorithm, malformed shapes, missing claims
"""

from datetime import timedelta

import pytest
from jose import jwt

from auth.models import Identity
from auth.tokens import (
    DEFAULT_TTL,
    ExpiredToken,
    InvalidSignature,
    MalformedToken,
    TokenConfig,
    TokenError,
    TokenService,
)
from core.config import Settings

OTHER_KEY = "a-completely-different-signing-key-0123456789"


def _tamper(token: str, index: int) -> str:
    replacement = "A" if token[index] != "A" else "B"
    return token[:index] + replacement + token[index + 1 :]


def _character_positions(token: str) -> list[int]:
    """Every character index except the segment separators."""
    return [i for i, char in enumerate(token) if char != "."]


_B64URL = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"


def _flip_low_bit(char: str) -> str:
    return _B64URL[_B64URL.index(char) ^ 1]


class TestRoundTrip:
    def test_verify_returns_issued_identity(self, tokens: TokenService, jane: Identity) -> None:
        claims = tokens.verify(tokens.issue(jane))
        assert claims.identity == jane
        assert claims.user_id == 1
        assert claims.name == "Jane Doe"
        assert claims.email == "jane@example.com"

    def test_claims_span_configured_ttl(self, tokens: TokenService, jane: Identity, clock) -> None:
        claims = tokens.verify(tokens.issue(jane))
        assert claims.issued_at == clock.now
        assert claims.expires_at - claims.issued_at == DEFAULT_TTL

    def test_default_ttl_is_seven_days(self) -> None:
        assert DEFAULT_TTL == timedelta(days=7)
        assert TokenConfig(secret_key=OTHER_KEY).ttl == timedelta(days=7)

    @pytest.mark.parametrize("elapsed", [timedelta(0), timedelta(hours=1), timedelta(days=6, hours=23, minutes=59)])
    def test_valid_anywhere_inside_ttl(self, tokens: TokenService, jane: Identity, clock, elapsed) -> None:
        token = tokens.issue(jane)
        clock.now += elapsed
        assert tokens.verify(token).identity == jane

    def test_custom_ttl(self, tokens: TokenService, jane: Identity, clock) -> None:
        token = tokens.issue(jane, ttl=timedelta(minutes=5))
        clock.advance(minutes=4, seconds=59)
        assert tokens.verify(token).identity == jane

    def test_tokens_are_strings_with_three_segments(self, tokens: TokenService, jane: Identity) -> None:
        token = tokens.issue(jane)
        assert isinstance(token, str)
        assert token.count(".") == 2

    def test_sub_claim_is_string(self, tokens: TokenService, jane: Identity) -> None:
        payload = jwt.get_unverified_claims(tokens.issue(jane))
        assert payload["sub"] == "1"


class TestExpiry:
    def test_expired_after_ttl(self, tokens: TokenService, jane: Identity, clock) -> None:
        token = tokens.issue(jane)
        clock.advance(days=7, seconds=1)
        with pytest.raises(ExpiredToken):
            tokens.verify(token)

    def test_expiry_instant_is_exclusive(self, tokens: TokenService, jane: Identity, clock) -> None:
        token = tokens.issue(jane, ttl=timedelta(seconds=60))
        clock.advance(seconds=60)
        with pytest.raises(ExpiredToken):
            tokens.verify(token)

    def test_negative_ttl_is_already_expired(self, tokens: TokenService, jane: Identity) -> None:
        token = tokens.issue(jane, ttl=timedelta(seconds=-1))
        with pytest.raises(ExpiredToken):
            tokens.verify(token)

    def test_expired_token_with_real_clock(self, jane: Identity) -> None:
        service = TokenService(TokenConfig(secret_key=OTHER_KEY))
        with pytest.raises(ExpiredToken):
            service.verify(service.issue(jane, ttl=timedelta(seconds=-1)))


class TestTampering:
    def test_every_character(self, tokens: TokenService, jane: Identity) -> None:
        token = tokens.issue(jane)
        for index in _character_positions(token):
            with pytest.raises(InvalidSignature):
                tokens.verify(_tamper(token, index))

    @pytest.mark.parametrize("segment", [0, 1, 2])
    def test_unused_bits_in_last_character(self, tokens: TokenService, jane: Identity, segment: int) -> None:
        """Flipping the lowest bit of a segment's final character is still tampering."""
        parts = tokens.issue(jane).split(".")
        parts[segment] = parts[segment][:-1] + _flip_low_bit(parts[segment][-1])
        with pytest.raises(InvalidSignature):
            tokens.verify(".".join(parts))

    def test_non_base64url_characters(self, tokens: TokenService, jane: Identity) -> None:
        header, payload, signature = tokens.issue(jane).split(".")
        for bad in (
            f"{header}.{payload}.{signature}=",
            f"{header}+.{payload}.{signature}",
            f"{header}.{payload}.{signature[:-1]}é",
        ):
            with pytest.raises(InvalidSignature):
                tokens.verify(bad)

    def test_swapped_payload(self, tokens: TokenService, jane: Identity) -> None:
        """Header and signature from one token, payload from another."""
        mallory = Identity(user_id=2, name="Mallory", email="mallory@example.com")
        header, _, signature = tokens.issue(jane).split(".")
        _, payload, _ = tokens.issue(mallory).split(".")
        with pytest.raises(InvalidSignature):
            tokens.verify(f"{header}.{payload}.{signature}")

    def test_signature_checked_before_expiry(self, tokens: TokenService, jane: Identity) -> None:
        token = tokens.issue(jane, ttl=timedelta(seconds=-1))
        header, payload, signature = token.split(".")
        tampered = f"{header}.{payload}.{_tamper(signature, 0)}"
        with pytest.raises(InvalidSignature):
            tokens.verify(tampered)

    def test_wrong_key(self, tokens: TokenService, jane: Identity, clock) -> None:
        foreign = TokenService(TokenConfig(secret_key=OTHER_KEY), clock=clock)
        with pytest.raises(InvalidSignature):
            tokens.verify(foreign.issue(jane))

    def test_wrong_algorithm(self, tokens: TokenService, clock) -> None:
        token = jwt.encode(
            {"sub": "1", "name": "x", "email": "x@example.com", "iat": 0, "exp": 2**31},
            tokens.config.secret_key,
            algorithm="HS512",
        )
        with pytest.raises(InvalidSignature):
            tokens.verify(token)


class TestMalformed:
    @pytest.mark.parametrize("token", ["", "abc", "a.b", "a..c", "a.b.c.d", ".b.c", "header.payload."])
    def test_bad_shape(self, tokens: TokenService, token: str) -> None:
        with pytest.raises(MalformedToken):
            tokens.verify(token)

    def test_non_string(self, tokens: TokenService) -> None:
        with pytest.raises(MalformedToken):
            tokens.verify(None)  # type: ignore[arg-type]

    def test_garbage_segments_are_invalid_signature(self, tokens: TokenService) -> None:
        with pytest.raises(InvalidSignature):
            tokens.verify("not.a.jwt")

    def test_signed_token_missing_claims(self, tokens: TokenService) -> None:
        token = jwt.encode({"sub": "1"}, tokens.config.secret_key, algorithm="HS256")
        with pytest.raises(MalformedToken):
            tokens.verify(token)

    def test_all_failures_share_base_class(self) -> None:
        for exc in (MalformedToken, InvalidSignature, ExpiredToken):
            assert issubclass(exc, TokenError)


class TestConfig:
    def test_empty_key_rejected(self) -> None:
        with pytest.raises(ValueError):
            TokenConfig(secret_key="")

    def test_config_is_immutable(self) -> None:
        config = TokenConfig(secret_key=OTHER_KEY)
        with pytest.raises(AttributeError):
            config.secret_key = "changed"  # type: ignore[misc]

    def test_from_settings(self) -> None:
        settings = Settings(_env_file=None, secret_key=OTHER_KEY, token_expire_seconds=120)
        config = TokenConfig.from_settings(settings)
        assert config.secret_key == OTHER_KEY
        assert config.ttl == timedelta(seconds=120)
        assert config.algorithm == "HS256"
