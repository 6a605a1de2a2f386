"""Repository package exposing persistence-layer access for domain models."""

from __future__ import annotations

from tokenauth.repositories.base import BaseRepository
from tokenauth.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
]
