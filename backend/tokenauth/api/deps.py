"""Shared API helpers for service wiring and request authentication."""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import Any, TypeVar, cast

from flask import current_app, g, request

from tokenauth.core.config import token_settings_from_config
from tokenauth.core.errors import Unauthorized
from tokenauth.core.extensions import get_redis
from tokenauth.infra.jwt.pyjwt_token_signer import PyJWTTokenSigner
from tokenauth.infra.redis.redis_cache import RedisCacheService
from tokenauth.infra.security.werkzeug_password_hasher import WerkzeugPasswordHasher
from tokenauth.services._shared.ports.cache import CacheService
from tokenauth.services.auth.service import AuthService
from tokenauth.services.tokens.codec import TokenCodec
from tokenauth.services.tokens.revocation import RevocationStore

F = TypeVar("F", bound=Callable[..., Any])

AUTH_SERVICE_KEY = "auth_service"
REVOCATION_CACHE_KEY = "revocation_cache"
BEARER_PREFIX = "bearer "


def get_cache_service() -> CacheService:
    """Return the revocation cache, defaulting to the app's Redis client."""

    cache = current_app.extensions.get(REVOCATION_CACHE_KEY)
    if cache is None:
        namespace = current_app.config.get("CACHE_NAMESPACE", "")
        cache = RedisCacheService(get_redis(), namespace=namespace)
        current_app.extensions[REVOCATION_CACHE_KEY] = cache
    return cast(CacheService, cache)


def get_auth_service() -> AuthService:
    """Build (once per app) the auth service graph from ``app.config``.

    Every component is stateless apart from its collaborators, so one graph is
    shared across requests; the user repository resolves the scoped session
    lazily.
    """

    service = current_app.extensions.get(AUTH_SERVICE_KEY)
    if service is not None:
        return cast(AuthService, service)

    settings = token_settings_from_config(current_app.config)
    revocation_store = RevocationStore(cache=get_cache_service(), settings=settings)
    service = AuthService(
        codec=TokenCodec(signer=PyJWTTokenSigner(), settings=settings),
        revocation_store=revocation_store,
        hasher=WerkzeugPasswordHasher(current_app.config.get("PASSWORD_HASH_METHOD", "scrypt")),
    )
    current_app.extensions[AUTH_SERVICE_KEY] = service
    return service


def bearer_token() -> str | None:
    """Return the token from ``Authorization: Bearer <token>``, if any."""

    header = request.headers.get("Authorization", "")
    if not header.lower().startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX):].strip()
    return token or None


def require_auth(func: F) -> F:
    """Ensure the request carries a valid access token.

    The validated user is stored on ``flask.g.current_user``. Token and policy
    failures propagate as domain errors and are rendered by the error handlers.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        token = bearer_token()
        if token is None:
            raise Unauthorized("Missing bearer token")
        g.current_user = get_auth_service().authenticate(token)
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]
