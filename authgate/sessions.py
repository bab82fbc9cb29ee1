"""In-memory server-side sessions referenced by a signed cookie."""

from __future__ import annotations

import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from itsdangerous import BadSignature, URLSafeSerializer

from .models import SessionUser

SESSION_COOKIE_NAME = "authgate_session"
_SIGNING_SALT = "authgate.session"


@dataclass
class _SessionRecord:
    user: SessionUser
    expires_at: datetime


class SessionManager:
    """Generate, validate, and revoke browser sessions."""

    def __init__(self, secret: str, *, ttl: timedelta = timedelta(hours=8)) -> None:
        if not secret:
            raise ValueError("A session secret must be provided")
        self._ttl = ttl
        self._sessions: Dict[str, _SessionRecord] = {}
        self._lock = threading.Lock()
        self._serializer = URLSafeSerializer(secret, salt=_SIGNING_SALT)

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def create(self, user: SessionUser) -> str:
        token = secrets.token_urlsafe(32)
        now = self._now()
        record = _SessionRecord(user=user, expires_at=now + self._ttl)
        with self._lock:
            self._purge_expired(now)
            self._sessions[token] = record
        return token

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def resolve(self, token: str) -> Optional[SessionUser]:
        now = self._now()
        with self._lock:
            record = self._sessions.get(token)
            if record is None:
                return None
            if record.expires_at <= now:
                self._sessions.pop(token, None)
                return None
            record.expires_at = now + self._ttl
            return record.user

    def destroy(self, token: str) -> None:
        with self._lock:
            self._sessions.pop(token, None)

    def sign(self, token: str) -> str:
        return self._serializer.dumps(token)

    def unsign(self, cookie_value: str) -> Optional[str]:
        """Return the token carried by ``cookie_value`` or ``None`` if it was tampered with."""

        if not cookie_value:
            return None
        try:
            token = self._serializer.loads(cookie_value)
        except BadSignature:
            return None
        return token if isinstance(token, str) and token else None

    def open(self, cookie_value: Optional[str]) -> "SessionHandle":
        """Bind the session referenced by a request cookie to an explicit handle."""

        token = self.unsign(cookie_value) if cookie_value else None
        return SessionHandle(self, token, had_cookie=bool(cookie_value))

    def _purge_expired(self, now: datetime) -> None:
        # caller holds the lock
        expired = [token for token, record in self._sessions.items() if record.expires_at <= now]
        for token in expired:
            del self._sessions[token]

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)


class SessionHandle:
    """Per-request view of the caller's session.

    The workflow mutates the session only through this object; the HTTP layer
    then mirrors its final state into the response cookie.
    """

    def __init__(self, manager: SessionManager, token: Optional[str], *, had_cookie: bool = False) -> None:
        self._manager = manager
        self._token = token
        self._had_cookie = had_cookie
        self._dirty = False
        self._user = manager.resolve(token) if token else None
        if token and self._user is None:
            self._token = None

    @property
    def user(self) -> Optional[SessionUser]:
        return self._user

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def dirty(self) -> bool:
        """``True`` when the cookie on the response must change."""
        return self._dirty or (self._had_cookie and self._token is None)

    @property
    def cookie_value(self) -> Optional[str]:
        if self._token is None:
            return None
        return self._manager.sign(self._token)

    def establish(self, user: SessionUser) -> None:
        if self._token:
            self._manager.destroy(self._token)
        self._token = self._manager.create(user)
        self._user = user
        self._dirty = True

    def destroy(self) -> None:
        if self._token:
            self._manager.destroy(self._token)
        self._token = None
        self._user = None
        self._dirty = True


__all__ = ["SESSION_COOKIE_NAME", "SessionHandle", "SessionManager"]
