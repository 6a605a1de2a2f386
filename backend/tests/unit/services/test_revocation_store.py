"""
Unit tests for RevocationStore.

Covers the three granularities (jti, per-type cutoff, all-types cutoff), the
``iat == cutoff`` boundary, TTLs of the cache records, and fail-closed
behaviour when the cache is unreachable.
"""

from __future__ import annotations

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from tokenauth.services._shared.ports.cache import InMemoryCacheService
from tokenauth.services.tokens.dto import AuthToken, TokenType
from tokenauth.services.tokens.revocation import RevocationStore


def _token(
    iat: int,
    token_type: TokenType = TokenType.ACCESS,
    *,
    jti: str = "jti-1",
    sub: str = "u1",
) -> AuthToken:
    return AuthToken(sub=sub, iat=iat, exp=iat + 900, jti=jti, type=token_type)


@pytest.fixture
def store(cache, token_settings, clock):
    return RevocationStore(cache=cache, settings=token_settings, clock=clock)


class TestSingleToken:
    def test_unrevoked_token_is_valid(self, store, clock):
        assert store.is_valid(_token(clock.seconds)) is True

    def test_revoke_token(self, store, clock):
        token = _token(clock.seconds)
        store.revoke_token(token)

        assert store.is_valid(token) is False
        assert store.is_valid(_token(clock.seconds, jti="jti-2")) is True

    def test_revoke_token_is_idempotent(self, store, clock):
        token = _token(clock.seconds)
        store.revoke_token(token)
        store.revoke_token(token)

        assert store.is_valid(token) is False

    def test_record_expires_with_token_type(self, store, fake_redis, token_settings, clock):
        store.revoke_token(_token(clock.seconds, TokenType.REFRESH))

        ttl = fake_redis.ttl("revoked:jti:jti-1")
        assert 0 < ttl <= token_settings.refresh.ttl


class TestCutoffs:
    @pytest.mark.parametrize(("offset", "valid"), [(-1, False), (0, True), (1, True)])
    def test_boundary(self, store, clock, offset, valid):
        """Cutoff ``> iat`` revokes; ``iat == cutoff`` stays valid."""
        store.revoke_all_for_user("u1", TokenType.ACCESS)
        assert store.is_valid(_token(clock.seconds + offset)) is valid

    def test_type_scope_only_hits_that_type(self, store, clock):
        store.revoke_all_for_user("u1", TokenType.REFRESH)
        earlier = clock.seconds - 5

        assert store.is_valid(_token(earlier, TokenType.REFRESH)) is False
        assert store.is_valid(_token(earlier, TokenType.ACCESS)) is True
        assert store.is_valid(_token(earlier, TokenType.REFRESH, sub="u2")) is True

    def test_all_scope_hits_every_type(self, store, clock):
        store.revoke_all_for_user("u1")
        earlier = clock.seconds - 5

        for token_type in TokenType:
            assert store.is_valid(_token(earlier, token_type)) is False
        assert store.is_valid(_token(earlier, sub="u2")) is True

    def test_scoped_revoke_scenario(self, store, clock):
        """Revoke at t0: a token from t0-5 fails, one from t0+1 passes."""
        t0 = clock.seconds
        store.revoke_all_for_user("u1")

        assert store.is_valid(_token(t0 - 5)) is False
        assert store.is_valid(_token(t0 + 1)) is True

    def test_later_cutoff_overwrites_earlier(self, store, clock):
        store.revoke_all_for_user("u1", TokenType.ACCESS)
        first = clock.seconds
        clock.advance(30)
        store.revoke_all_for_user("u1", TokenType.ACCESS)

        assert store.is_valid(_token(first + 10)) is False
        assert store.is_valid(_token(clock.seconds)) is True

    def test_cutoff_ttls(self, store, fake_redis, token_settings):
        store.revoke_all_for_user("u1", TokenType.EMAIL_CONFIRMATION)
        store.revoke_all_for_user("u1")

        typed = fake_redis.ttl("revoked:user:u1:email-confirmation")
        every = fake_redis.ttl("revoked:user:u1:all")
        assert 0 < typed <= token_settings.email_confirmation.ttl
        assert token_settings.email_confirmation.ttl < every <= token_settings.longest_ttl


class TestBackends:
    def test_works_with_in_memory_cache(self, token_settings, clock):
        store = RevocationStore(cache=InMemoryCacheService(), settings=token_settings, clock=clock)
        token = _token(clock.seconds - 1)
        store.revoke_all_for_user("u1")

        assert store.is_valid(token) is False

    def test_reads_are_batched(self, store, cache, clock):
        calls = []
        original = cache.get_many

        def spy(keys):
            calls.append(list(keys))
            return original(keys)

        cache.get_many = spy
        store.is_valid(_token(clock.seconds))

        assert calls == [
            ["revoked:jti:jti-1", "revoked:user:u1:access", "revoked:user:u1:all"]
        ]

    def test_unreachable_cache_fails_closed(self, token_settings, clock):
        class _BrokenCache:
            def get(self, key):
                raise RedisConnectionError("down")

            def get_many(self, keys):
                raise RedisConnectionError("down")

            def set(self, key, value, ttl_seconds):
                raise RedisConnectionError("down")

        store = RevocationStore(cache=_BrokenCache(), settings=token_settings, clock=clock)

        with pytest.raises(RedisConnectionError):
            store.is_valid(_token(clock.seconds))
        with pytest.raises(RedisConnectionError):
            store.revoke_token(_token(clock.seconds))
