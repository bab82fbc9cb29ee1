"""Salted one-way password hashing."""
from __future__ import annotations

from passlib.context import CryptContext

BCRYPT_ROUNDS = 10


class PasswordHasher:
    """bcrypt hashing with a fixed work factor."""

    def __init__(self) -> None:
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=BCRYPT_ROUNDS,
        )

    @property
    def rounds(self) -> int:
        return BCRYPT_ROUNDS

    def hash(self, password: str) -> str:
        if not password:
            raise ValueError("Password must not be empty")
        return self._context.hash(password)

    def verify(self, password: str, hashed: str) -> bool:
        if not password or not hashed:
            return False
        try:
            return self._context.verify(password, hashed)
        except (ValueError, TypeError):
            return False


__all__ = ["BCRYPT_ROUNDS", "PasswordHasher"]
