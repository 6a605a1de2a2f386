from __future__ import annotations

import threading
import time
from collections.abc import Sequence
from typing import Any, Protocol


class CacheService(Protocol):
    """
    Abstraction over a key/value cache with per-key expiry.

    Absence is reported as ``None``; infrastructure failures MUST raise.
    """

    def get(self, key: str) -> Any | None: ...
    def get_many(self, keys: Sequence[str]) -> list[Any | None]: ...
    def set(self, key: str, value: Any, ttl_seconds: int) -> None: ...


class InMemoryCacheService(CacheService):
    """
    Process-local cache with lazy expiry, used in unit tests.

    .. note::
       Uses a threading lock so concurrent test threads see consistent state.
    """

    def __init__(self, *, clock=time.monotonic) -> None:
        self._entries: dict[str, tuple[Any, float]] = {}
        self._clock = clock
        self._lock = threading.Lock()

    def _read(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, deadline = entry
        if deadline <= self._clock():
            del self._entries[key]
            return None
        return value

    def get(self, key: str) -> Any | None:
        with self._lock:
            return self._read(key)

    def get_many(self, keys: Sequence[str]) -> list[Any | None]:
        with self._lock:
            return [self._read(k) for k in keys]

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock() + max(1, int(ttl_seconds)))
