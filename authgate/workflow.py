"""Signup, signin and signout orchestration."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, TypeVar

import anyio

from .errors import AuthError, AuthFlowError, ConflictError, ServerError, ValidationError
from .models import SessionUser, UserRecord
from .passwords import PasswordHasher
from .sessions import SessionHandle
from .store import CredentialStore

logger = logging.getLogger("authgate.workflow")

MISSING_SIGNUP_FIELDS = "All fields are required."
MISSING_SIGNIN_FIELDS = "Email and password required."
EMAIL_TAKEN = "Email already registered."
INVALID_CREDENTIALS = "Invalid credentials."
SIGNUP_FAILED = "Server error during signup."
SIGNIN_FAILED = "Server error during signin."

T = TypeVar("T")


class AuthWorkflow:
    """Credential authentication against a :class:`CredentialStore`.

    Blocking store access and bcrypt work run in a worker thread so the event
    loop is never held by a single request.
    """

    def __init__(self, store: CredentialStore, hasher: PasswordHasher) -> None:
        self._store = store
        self._hasher = hasher

    async def signup(self, name: str | None, email: str | None, password: str | None) -> UserRecord:
        if not name or not email or not password:
            raise ValidationError(MISSING_SIGNUP_FIELDS)

        async def _register() -> UserRecord:
            existing = await anyio.to_thread.run_sync(self._store.get_by_email, email)
            if existing is not None:
                raise ConflictError(EMAIL_TAKEN)

            hashed = await anyio.to_thread.run_sync(self._hasher.hash, password)
            record = UserRecord(email=email, name=name, password=hashed)
            created = await anyio.to_thread.run_sync(self._store.put_if_absent, record)
            if not created:
                logger.warning("Concurrent signup for %s lost the race", email)
                raise ConflictError(EMAIL_TAKEN)
            return record

        record = await self._guard("signup", SIGNUP_FAILED, _register)
        logger.info("Registered account for %s", email)
        return record

    async def signin(
        self,
        email: str | None,
        password: str | None,
        session: SessionHandle,
    ) -> SessionUser:
        if not email or not password:
            raise ValidationError(MISSING_SIGNIN_FIELDS)

        async def _authenticate() -> UserRecord:
            record = await anyio.to_thread.run_sync(self._store.get_by_email, email)
            if record is None:
                raise AuthError(INVALID_CREDENTIALS)
            matches = await anyio.to_thread.run_sync(self._hasher.verify, password, record.password)
            if not matches:
                raise AuthError(INVALID_CREDENTIALS)
            return record

        try:
            record = await self._guard("signin", SIGNIN_FAILED, _authenticate)
        except AuthError:
            logger.warning("Failed signin attempt for %s", email)
            raise

        user = record.session_user()
        session.establish(user)
        logger.info("User %s signed in", email)
        return user

    def signout(self, session: SessionHandle) -> None:
        user = session.user
        session.destroy()
        if user is not None:
            logger.info("User %s signed out", user.email)

    async def _guard(
        self,
        operation: str,
        message: str,
        action: Callable[[], Awaitable[T]],
    ) -> T:
        try:
            return await action()
        except AuthFlowError:
            raise
        except Exception as exc:
            logger.exception("%s failed", operation)
            raise ServerError(message) from exc


__all__ = [
    "AuthWorkflow",
    "EMAIL_TAKEN",
    "INVALID_CREDENTIALS",
    "MISSING_SIGNIN_FIELDS",
    "MISSING_SIGNUP_FIELDS",
    "SIGNIN_FAILED",
    "SIGNUP_FAILED",
]
