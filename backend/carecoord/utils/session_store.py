"""Server-side session storage for refresh tokens.

Routes depend on the abstract ``SessionStore`` through ``get_session_store`` so
the persistence backend can be swapped (and faked in tests) without touching
the auth router.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.session import AuthSession
from .dates import is_before, utcnow


@dataclass
class SessionRecord:
    refresh_token: str
    user_id: int
    expires_at: datetime


class SessionStore(ABC):
    """Key-value view of live sessions keyed by refresh token."""

    @abstractmethod
    def get(self, refresh_token: str) -> Optional[SessionRecord]:
        """Return the live session for this token, or None if unknown, revoked or expired."""

    @abstractmethod
    def set(self, record: SessionRecord) -> None:
        ...

    @abstractmethod
    def remove(self, refresh_token: str) -> None:
        ...


class DatabaseSessionStore(SessionStore):
    def __init__(self, db: Session):
        self.db = db

    def get(self, refresh_token: str) -> Optional[SessionRecord]:
        row = self.db.query(AuthSession).filter(
            AuthSession.refresh_token == refresh_token,
            AuthSession.revoked_at.is_(None)
        ).first()
        if row is None or is_before(row.expires_at, utcnow()):
            return None
        return SessionRecord(row.refresh_token, row.user_id, row.expires_at)

    def set(self, record: SessionRecord) -> None:
        self.db.add(AuthSession(
            user_id=record.user_id,
            refresh_token=record.refresh_token,
            expires_at=record.expires_at,
        ))
        self.db.commit()

    def remove(self, refresh_token: str) -> None:
        row = self.db.query(AuthSession).filter(
            AuthSession.refresh_token == refresh_token
        ).first()
        if row is not None and row.revoked_at is None:
            row.revoked_at = utcnow()
            self.db.commit()


class MemorySessionStore(SessionStore):
    """Process-local store, for tests and single-process tooling."""

    def __init__(self):
        self._records: Dict[str, SessionRecord] = {}

    def get(self, refresh_token: str) -> Optional[SessionRecord]:
        record = self._records.get(refresh_token)
        if record is None or is_before(record.expires_at, utcnow()):
            return None
        return record

    def set(self, record: SessionRecord) -> None:
        self._records[record.refresh_token] = record

    def remove(self, refresh_token: str) -> None:
        self._records.pop(refresh_token, None)


def get_session_store(db: Session = Depends(get_db)) -> SessionStore:
    return DatabaseSessionStore(db)
