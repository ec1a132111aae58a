"""
Error taxonomy of the token lifecycle.

Every rejection carries an ErrorKind; the HTTP layer dispatches on the kind,
never on the message text.
"""
from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    INTERNAL = "internal"


class UnauthorizedReason(str, Enum):
    REQUIRED = "required"
    NOT_EXIST = "not_exist"
    EXPIRED = "expired"
    INVALID_CREDENTIALS = "invalid_credentials"


class SessionError(Exception):
    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, reason: UnauthorizedReason | None = None):
        super().__init__(message)
        self.message = message
        self.reason = reason


class BadRequestError(SessionError):
    """Missing or malformed input; raised before any collaborator is called."""

    kind = ErrorKind.BAD_REQUEST


class AuthenticationError(SessionError):
    """Bad credentials or a missing, unknown or expired refresh session."""

    kind = ErrorKind.UNAUTHORIZED


class DependencyError(SessionError):
    """The credential verifier or the session store failed."""

    kind = ErrorKind.INTERNAL
