"""Authentication flows and access-token validation."""

from __future__ import annotations

from .service import AuthService
from .validator import AuthValidator, account_rejection

__all__ = ["AuthService", "AuthValidator", "account_rejection"]
