from __future__ import annotations

from typing import Protocol


class PasswordHasher(Protocol):
    """
    Opaque hash/verify capability for passwords.

    The hashing algorithm is an implementation detail of the adapter; the
    domain only relies on :meth:`matches_format` to refuse raw passwords.
    """

    def hash(self, raw: str) -> str: ...

    def verify(self, raw: str, hashed: str | None) -> bool:
        """
        Compare ``raw`` against ``hashed``.

        When ``hashed`` is ``None`` the adapter still performs a full-cost
        comparison (against a dummy hash) and returns ``False``.
        """

    def matches_format(self, hashed: str) -> bool: ...
