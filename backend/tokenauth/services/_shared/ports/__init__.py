"""
tokenauth.services._shared.ports
================================

Collection of *ports* (hexagonal interfaces) that define the contracts for
token signing, revocation caching and password hashing.

These ports decouple the service layer from concrete implementations.

Modules
-------
- :mod:`cache`:
    Defines :class:`~.CacheService`: key/value store with expiry backing the
    revocation registry, and :class:`~.InMemoryCacheService` for tests.

- :mod:`token_signer`:
    Defines :class:`~.TokenSigner`: JWT signing and verification, plus an unverified decode.

- :mod:`password_hasher`:
    Defines :class:`~.PasswordHasher`: opaque hash/verify capability.

Design Notes
------------
Concrete adapters (Redis, PyJWT, Werkzeug) live under ``tokenauth.infra``.
"""

from __future__ import annotations

from .cache import CacheService, InMemoryCacheService
from .password_hasher import PasswordHasher
from .token_signer import TokenSignatureError, TokenSigner

__all__ = [
    "CacheService",
    "InMemoryCacheService",
    "PasswordHasher",
    "TokenSigner",
    "TokenSignatureError",
]
