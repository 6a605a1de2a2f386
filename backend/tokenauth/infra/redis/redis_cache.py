import json
from collections.abc import Sequence
from typing import Any

import redis  # type: ignore[import-untyped]

from tokenauth.services._shared.ports.cache import CacheService


class RedisCacheService(CacheService):
    """
    Redis-backed cache storing JSON-encoded values with a TTL.

    :param r: A Redis client (already connected).
    :param namespace: Optional prefix applied to every key.

    Redis errors are not caught: callers must see an unavailable cache as a
    failure, never as a miss.
    """

    def __init__(self, r: redis.Redis, *, namespace: str = "") -> None:
        self.r = r
        self.namespace = namespace

    def _k(self, key: str) -> str:
        return f"{self.namespace}{key}"

    @staticmethod
    def _load(raw: bytes | str | None) -> Any | None:
        if raw is None:
            return None
        if isinstance(raw, bytes | bytearray):
            raw = raw.decode()
        return json.loads(raw)

    def get(self, key: str) -> Any | None:
        return self._load(self.r.get(self._k(key)))

    def get_many(self, keys: Sequence[str]) -> list[Any | None]:
        if not keys:
            return []
        # single MGET round trip; keys are independent of each other
        return [self._load(raw) for raw in self.r.mget([self._k(k) for k in keys])]

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        self.r.set(self._k(key), json.dumps(value), ex=max(1, int(ttl_seconds)))
