"""Domain records shared by the credential store, sessions and workflow."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping


@dataclass(frozen=True)
class UserRecord:
    """A registered account as persisted in the credential store."""

    email: str
    name: str
    password: str

    def to_item(self) -> Dict[str, str]:
        return {"email": self.email, "name": self.name, "password": self.password}

    @staticmethod
    def from_item(item: Mapping[str, Any]) -> "UserRecord":
        return UserRecord(
            email=str(item["email"]),
            name=str(item.get("name") or ""),
            password=str(item.get("password") or ""),
        )

    def session_user(self) -> "SessionUser":
        return SessionUser(email=self.email, name=self.name)


@dataclass(frozen=True)
class SessionUser:
    """Identity attached to an authenticated session. Never carries the hash."""

    email: str
    name: str


__all__ = ["SessionUser", "UserRecord"]
