"""Error taxonomy for the authentication workflow."""

from __future__ import annotations

from fastapi import status


class AuthFlowError(Exception):
    """Base class for failures rendered back to the caller as a form error."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AuthFlowError):
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(AuthFlowError):
    status_code = status.HTTP_409_CONFLICT


class AuthError(AuthFlowError):
    status_code = status.HTTP_401_UNAUTHORIZED


class ServerError(AuthFlowError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class StoreError(RuntimeError):
    """Raised when the credential store backend fails."""


__all__ = [
    "AuthError",
    "AuthFlowError",
    "ConflictError",
    "ServerError",
    "StoreError",
    "ValidationError",
]
