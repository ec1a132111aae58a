"""
security helpers:
- Argon2 password hashing via argon2-cffi
- Signed token minting/verification via PyJWT
- JTI generation for token identifiers

Access and refresh tokens share one structure and differ only by signing key
and time-to-live; a TokenCodec is bound to one (secret, ttl) pair at startup.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Mapping

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

ph = PasswordHasher()

RESERVED_CLAIMS = frozenset({"iat", "exp", "jti", "iss", "nbf", "aud"})


class InvalidToken(Exception):
    """Raised for every verification failure: bad signature, malformed, expired."""


@dataclass(frozen=True)
class MintedToken:
    token: str
    issued_at: datetime
    expires_at: datetime


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """ Verify a plaintext password using argon2
    """
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _check_ttl(ttl: timedelta) -> None:
    if ttl.total_seconds() <= 0:
        raise ValueError("ttl must be positive")
    if ttl.microseconds:
        raise ValueError("ttl must be a whole number of seconds")


def mint_token(
    payload: Mapping[str, Any],
    secret: str,
    ttl: timedelta,
    *,
    now: datetime | None = None,
    algorithm: str = "HS256",
    issuer: str | None = None,
) -> MintedToken:
    """
    Sign `payload` with `secret`, embedding iat = now and exp = now + ttl.

    The clock is truncated to whole seconds and ttl must be whole seconds, so
    the returned expires_at is exactly the exp claim carried by the token.
    """
    if not secret:
        raise ValueError("secret is required")
    _check_ttl(ttl)
    clash = RESERVED_CLAIMS.intersection(payload)
    if clash:
        raise ValueError(f"payload may not set reserved claims: {sorted(clash)}")

    issued_at = (now or utcnow()).replace(microsecond=0)
    expires_at = issued_at + ttl
    claims = dict(payload)
    claims.update(
        {
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
            "jti": generate_jti(),
        }
    )
    if issuer:
        claims["iss"] = issuer
    token = jwt.encode(claims, secret, algorithm=algorithm)
    return MintedToken(token=token, issued_at=issued_at, expires_at=expires_at)


def verify_token(
    token: str,
    secret: str,
    *,
    now: datetime | None = None,
    algorithm: str = "HS256",
    issuer: str | None = None,
) -> Dict[str, Any]:
    """
    Check signature and expiry of `token` and return the payload it was minted
    with. Raises InvalidToken on any failure.
    """
    if not token or not isinstance(token, str):
        raise InvalidToken("token is empty")
    try:
        # Expiry is checked below against the injected clock, not wall time
        decoded = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            issuer=issuer,
            options={"require": ["iat", "exp", "jti"], "verify_exp": False, "verify_iat": False},
        )
    except jwt.InvalidTokenError as exc:
        raise InvalidToken(f"Invalid token: {exc}") from exc

    exp = decoded.get("exp")
    if not isinstance(exp, (int, float)):
        raise InvalidToken("Invalid token: malformed exp")
    current = now or utcnow()
    if exp <= current.timestamp():
        raise InvalidToken("Token expired")
    return {k: v for k, v in decoded.items() if k not in RESERVED_CLAIMS}


class TokenCodec:
    """Token minting/verification bound to one secret, TTL and clock."""

    def __init__(
        self,
        secret: str,
        ttl: timedelta,
        *,
        algorithm: str = "HS256",
        issuer: str | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        if not secret:
            raise ValueError("secret is required")
        _check_ttl(ttl)
        self.ttl = ttl
        self._secret = secret
        self._algorithm = algorithm
        self._issuer = issuer
        self._clock = clock

    def mint(self, payload: Mapping[str, Any]) -> MintedToken:
        return mint_token(
            payload, self._secret, self.ttl,
            now=self._clock(), algorithm=self._algorithm, issuer=self._issuer,
        )

    def verify(self, token: str) -> Dict[str, Any]:
        return verify_token(
            token, self._secret,
            now=self._clock(), algorithm=self._algorithm, issuer=self._issuer,
        )
