"""
Token lifecycle: issuing tokens on login and renewing the access token from a
stored refresh session.

The manager holds no state of its own. Refresh sessions live in the store;
tokens are minted by two codecs bound to different secrets.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Protocol

from services.errors import (
    AuthenticationError,
    BadRequestError,
    DependencyError,
    UnauthorizedReason,
)
from utils.security import InvalidToken, MintedToken, TokenCodec, utcnow

logger = logging.getLogger(__name__)


class Verifier(Protocol):
    def verify(self, login: str, password: str) -> bool: ...


@dataclass(frozen=True)
class IssuedTokens:
    access: MintedToken
    refresh: MintedToken


class TokenLifecycleManager:
    def __init__(
        self,
        access_codec: TokenCodec,
        refresh_codec: TokenCodec,
        store,
        verifier: Verifier,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.access_codec = access_codec
        self.refresh_codec = refresh_codec
        self.store = store
        self.verifier = verifier
        self._clock = clock

    def login(self, login: str | None, password: str | None) -> IssuedTokens:
        """
        Authenticate and open a new refresh session for `login`, evicting any
        previous one. Both tokens are returned; placing them on the wire is the
        caller's job.
        """
        if not login or not password:
            raise BadRequestError("login and password are required")

        try:
            valid = self.verifier.verify(login, password)
        except Exception as exc:
            logger.exception("Credential verifier failed")
            raise DependencyError("credential verification failed") from exc
        if not valid:
            logger.info("Rejected login for %s", login)
            raise AuthenticationError("invalid auth data", UnauthorizedReason.INVALID_CREDENTIALS)

        payload = {"sub": login}
        access = self.access_codec.mint(payload)
        refresh = self.refresh_codec.mint(payload)

        try:
            self.store.put(login, refresh.token, refresh.expires_at)
        except Exception as exc:
            logger.exception("Could not persist refresh session")
            raise DependencyError("could not persist refresh session") from exc

        logger.info("Issued tokens for %s", login)
        return IssuedTokens(access=access, refresh=refresh)

    def refresh(self, refresh_token: str | None) -> MintedToken:
        """
        Mint a new access token for the principal owning `refresh_token`.

        The stored session is only read: the same refresh token keeps working
        until its own expiry.
        """
        if not refresh_token:
            raise AuthenticationError("refresh token is required", UnauthorizedReason.REQUIRED)

        stored = self._lookup(refresh_token)
        if stored is None:
            logger.info("Refresh rejected: unknown token")
            raise AuthenticationError("refresh token is not exist", UnauthorizedReason.NOT_EXIST)
        if stored.is_expired(self._clock()):
            logger.info("Refresh rejected: session of %s expired", stored.principal)
            raise AuthenticationError("refresh token is expired", UnauthorizedReason.EXPIRED)

        return self.access_codec.mint({"sub": stored.principal})

    def logout(self, refresh_token: str | None) -> None:
        """Drop the session the token belongs to. Unknown tokens are ignored."""
        if not refresh_token:
            return
        stored = self._lookup(refresh_token)
        if stored is None:
            return
        try:
            # A login committed after the lookup owns the row now; leave it alone
            removed = self.store.remove_token(stored.principal, refresh_token)
        except Exception as exc:
            logger.exception("Could not remove refresh session")
            raise DependencyError("could not remove refresh session") from exc
        if removed:
            logger.info("Closed session of %s", stored.principal)

    def authenticate(self, access_token: str) -> str:
        """Return the principal of a valid access token."""
        # InvalidToken is left to the caller; it owns the 401 mapping
        claims = self.access_codec.verify(access_token)
        subject = claims.get("sub")
        if not subject or not isinstance(subject, str):
            raise InvalidToken("Invalid token: missing subject")
        return subject

    def _lookup(self, refresh_token: str):
        try:
            return self.store.get(refresh_token)
        except Exception as exc:
            logger.exception("Session store lookup failed")
            raise DependencyError("session store unavailable") from exc
