"""
Refresh session store.

The only writer of the refresh_sessions table. Each principal owns at most one
row; put() replaces it atomically so concurrent logins for one principal end
with the last committed writer's token.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models.base_model import _uuid_str
from models.refresh_session import RefreshSession

_UPSERT_DIALECTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}
_REPLACE_ATTEMPTS = 2


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is written in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class StoredSession:
    principal: str
    refresh_token: str
    expires_at: datetime

    @classmethod
    def from_row(cls, row: RefreshSession) -> "StoredSession":
        return cls(
            principal=row.principal,
            refresh_token=row.refresh_token,
            expires_at=_as_utc(row.expires_at),
        )

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


class RefreshSessionStore:
    def __init__(self, storage):
        self._storage = storage

    def put(self, principal: str, refresh_token: str, expires_at: datetime) -> None:
        """Replace any session of `principal` with the given one, in one commit."""
        expires_at = _as_utc(expires_at)
        insert = _UPSERT_DIALECTS.get(self._storage.dialect)
        if insert is None:
            self._replace_with_retry(principal, refresh_token, expires_at)
            return
        session = self._storage.get_session()
        try:
            stmt = insert(RefreshSession).values(
                id=_uuid_str(),
                principal=principal,
                refresh_token=refresh_token,
                expires_at=expires_at,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[RefreshSession.principal],
                set_={
                    "refresh_token": stmt.excluded.refresh_token,
                    "expires_at": stmt.excluded.expires_at,
                    "updated_at": func.now(),
                },
            )
            session.execute(stmt)
            self._storage.save()
        except SQLAlchemyError:
            self._storage.rollback()
            raise

    def _replace_with_retry(self, principal, refresh_token, expires_at):
        # A concurrent insert for the same principal trips the unique index
        for attempt in range(_REPLACE_ATTEMPTS):
            try:
                self._delete_then_insert(principal, refresh_token, expires_at)
                self._storage.save()
                return
            except IntegrityError:
                self._storage.rollback()
                if attempt == _REPLACE_ATTEMPTS - 1:
                    raise
            except SQLAlchemyError:
                self._storage.rollback()
                raise

    def _delete_then_insert(self, principal, refresh_token, expires_at):
        session = self._storage.get_session()
        session.query(RefreshSession).filter(
            RefreshSession.principal == principal
        ).delete(synchronize_session=False)
        session.add(
            RefreshSession(principal=principal, refresh_token=refresh_token, expires_at=expires_at)
        )
        session.flush()

    def get(self, refresh_token: str) -> StoredSession | None:
        """Exact-match lookup by token value."""
        row = (
            self._storage.get_session()
            .query(RefreshSession)
            .filter(RefreshSession.refresh_token == refresh_token)
            .execution_options(populate_existing=True)
            .first()
        )
        return StoredSession.from_row(row) if row else None

    def find_by_principal(self, principal: str) -> StoredSession | None:
        row = (
            self._storage.get_session()
            .query(RefreshSession)
            .filter(RefreshSession.principal == principal)
            .execution_options(populate_existing=True)
            .first()
        )
        return StoredSession.from_row(row) if row else None

    def remove(self, principal: str) -> None:
        """Delete the principal's session; no error when there is none."""
        session = self._storage.get_session()
        try:
            session.query(RefreshSession).filter(
                RefreshSession.principal == principal
            ).delete(synchronize_session=False)
            self._storage.save()
        except SQLAlchemyError:
            self._storage.rollback()
            raise

    def remove_token(self, principal: str, refresh_token: str) -> bool:
        """Delete the principal's session only while it still holds `refresh_token`."""
        session = self._storage.get_session()
        try:
            removed = session.query(RefreshSession).filter(
                RefreshSession.principal == principal,
                RefreshSession.refresh_token == refresh_token,
            ).delete(synchronize_session=False)
            self._storage.save()
        except SQLAlchemyError:
            self._storage.rollback()
            raise
        return removed > 0

    def purge_expired(self, now: datetime) -> int:
        """Delete sessions whose expiry has passed; returns how many went."""
        session = self._storage.get_session()
        try:
            removed = session.query(RefreshSession).filter(
                RefreshSession.expires_at <= _as_utc(now)
            ).delete(synchronize_session=False)
            self._storage.save()
        except SQLAlchemyError:
            self._storage.rollback()
            raise
        return removed
