"""Werkzeug-backed implementation of the password hashing port."""

from __future__ import annotations

import re

from werkzeug.security import check_password_hash, generate_password_hash

from tokenauth.services._shared.errors import ValidationError
from tokenauth.services._shared.ports.password_hasher import PasswordHasher

# method[:params]$salt$hexdigest, e.g. "scrypt:32768:8:1$<salt>$<hex>"
HASH_FORMAT = re.compile(r"^(scrypt|pbkdf2)(:[A-Za-z0-9]+)*\$[^$]+\$[0-9a-f]+$")


def is_password_hash(value: object) -> bool:
    """Return ``True`` when ``value`` looks like a Werkzeug password hash."""
    return isinstance(value, str) and HASH_FORMAT.match(value) is not None


class WerkzeugPasswordHasher(PasswordHasher):
    """
    Hash and verify passwords with ``werkzeug.security``.

    :param method: Werkzeug method string (``scrypt`` or ``pbkdf2:sha256[:iterations]``).
    """

    def __init__(self, method: str = "scrypt") -> None:
        self.method = method
        self._dummy_hash: str | None = None

    def hash(self, raw: str) -> str:
        if not isinstance(raw, str) or not raw:
            raise ValidationError("Password must be a non-empty string.")
        return generate_password_hash(raw, method=self.method)

    def verify(self, raw: str, hashed: str | None) -> bool:
        if hashed is None:
            # Equalize timing with the "user exists" path.
            if self._dummy_hash is None:
                self._dummy_hash = generate_password_hash("dummy-password", method=self.method)
            check_password_hash(self._dummy_hash, raw)
            return False
        # ``check_password_hash`` is not typed and returns ``Any``; coerce to bool for mypy.
        return bool(check_password_hash(hashed, raw))

    def matches_format(self, hashed: str) -> bool:
        return is_password_hash(hashed)
