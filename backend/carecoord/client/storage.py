"""Local storage for the field client.

Two layers:

* ``KeyValueStore`` holds small string values (the session cache keys
  ``currentUser``, ``accessToken`` and ``refreshToken``).
* ``OfflineStore`` keeps intake form data and intakes captured without a
  connection, in a local SQLite database named ``healthcare-offline-db``
  (schema version 1), until ``OfflineSyncer`` pushes them.
"""
import enum
import json
import logging
import os
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import Boolean, Column, DateTime, Enum, Integer, JSON, String, Text, create_engine, text
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

OFFLINE_DB_NAME = "healthcare-offline-db"
OFFLINE_DB_VERSION = 1

CURRENT_USER_KEY = "currentUser"
ACCESS_TOKEN_KEY = "accessToken"
REFRESH_TOKEN_KEY = "refreshToken"

#tables that only live on the device, not on the server
LocalBase = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _engine_for(url: str):
    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    return create_engine(url, connect_args={"check_same_thread": False})


class KeyValueStore(ABC):
    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...


class MemoryKeyValueStore(KeyValueStore):
    def __init__(self):
        self._values: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)

    def clear(self) -> None:
        self._values.clear()


class KeyValueEntry(LocalBase):
    __tablename__ = "key_values"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)


class SQLiteKeyValueStore(KeyValueStore):
    """Key-value store persisted in a SQLite file, survives client restarts."""

    def __init__(self, url: str = "sqlite:///carecoord-client.db"):
        self.engine = _engine_for(url)
        LocalBase.metadata.create_all(self.engine, tables=[KeyValueEntry.__table__])
        self.Session = sessionmaker(bind=self.engine, expire_on_commit=False)

    def get(self, key: str) -> Optional[str]:
        with self.Session() as session:
            entry = session.get(KeyValueEntry, key)
            return entry.value if entry else None

    def set(self, key: str, value: str) -> None:
        with self.Session() as session:
            session.merge(KeyValueEntry(key=key, value=value))
            session.commit()

    def remove(self, key: str) -> None:
        with self.Session() as session:
            entry = session.get(KeyValueEntry, key)
            if entry is not None:
                session.delete(entry)
                session.commit()

    def clear(self) -> None:
        with self.Session() as session:
            session.query(KeyValueEntry).delete()
            session.commit()


class SessionCache:
    """The signed-in user and tokens; written at login, wiped at logout."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    @property
    def access_token(self) -> Optional[str]:
        return self.store.get(ACCESS_TOKEN_KEY)

    @property
    def refresh_token(self) -> Optional[str]:
        return self.store.get(REFRESH_TOKEN_KEY)

    @property
    def current_user(self) -> Optional[Dict[str, Any]]:
        raw = self.store.get(CURRENT_USER_KEY)
        return json.loads(raw) if raw else None

    def save_tokens(self, access_token: str, refresh_token: str) -> None:
        self.store.set(ACCESS_TOKEN_KEY, access_token)
        self.store.set(REFRESH_TOKEN_KEY, refresh_token)

    def save_user(self, user: Dict[str, Any]) -> None:
        self.store.set(CURRENT_USER_KEY, json.dumps(user))

    def clear(self) -> None:
        for key in (CURRENT_USER_KEY, ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY):
            self.store.remove(key)

    def is_authenticated(self) -> bool:
        return self.access_token is not None


class OfflineIntakeStatus(enum.Enum):
    DRAFT = "draft"
    READY_FOR_SUBMISSION = "ready_for_submission"
    SUBMITTED = "submitted"


#"formData" store
class OfflineFormData(LocalBase):
    __tablename__ = "form_data"

    id = Column(String, primary_key=True)  # form-{patientId}
    intake_id = Column(Integer, nullable=True)  # server intake, once known
    patient_id = Column(Integer, nullable=False, index=True)
    form_data = Column(JSON, nullable=False, default=dict)
    completed_sections = Column(JSON, nullable=False, default=list)
    last_modified = Column(DateTime(timezone=True))
    synced = Column(Boolean, default=False, index=True)


#"intakes" store
class OfflineIntake(LocalBase):
    __tablename__ = "intakes"

    id = Column(String, primary_key=True)
    server_id = Column(Integer, nullable=True)
    patient_id = Column(Integer, nullable=False, index=True)
    status = Column(Enum(OfflineIntakeStatus), nullable=False, default=OfflineIntakeStatus.DRAFT, index=True)
    data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True))
    last_modified = Column(DateTime(timezone=True))
    synced = Column(Boolean, default=False, index=True)


def form_data_id(patient_id: int) -> str:
    return f"form-{patient_id}"


class OfflineStore:
    def __init__(self, url: Optional[str] = None, directory: str = "."):
        if url is None:
            url = f"sqlite:///{os.path.join(directory, OFFLINE_DB_NAME)}"
        self.engine = _engine_for(url)
        self.Session = sessionmaker(bind=self.engine, expire_on_commit=False)
        self._init_schema()

    def _init_schema(self) -> None:
        LocalBase.metadata.create_all(
            self.engine, tables=[OfflineFormData.__table__, OfflineIntake.__table__]
        )
        with self.engine.begin() as conn:
            version = conn.execute(text("PRAGMA user_version")).scalar()
            if not version:
                conn.execute(text(f"PRAGMA user_version = {OFFLINE_DB_VERSION}"))
        logger.debug("Offline store ready at %s", self.engine.url)

    @property
    def version(self) -> int:
        with self.engine.connect() as conn:
            return conn.execute(text("PRAGMA user_version")).scalar()

    # Form data

    def save_form_data_offline(
        self,
        patient_id: int,
        intake_id: Optional[int],
        form_data: Dict[str, Any],
        completed_sections: Optional[List[str]] = None,
    ) -> OfflineFormData:
        """Store the latest form state of a patient, replacing the previous one."""
        record = OfflineFormData(
            id=form_data_id(patient_id),
            intake_id=intake_id,
            patient_id=patient_id,
            form_data=form_data,
            completed_sections=list(completed_sections or []),
            last_modified=utcnow(),
            synced=False,
        )
        with self.Session() as session:
            record = session.merge(record)
            session.commit()
        return record

    def get_offline_form_data(self, patient_id: int) -> Optional[OfflineFormData]:
        with self.Session() as session:
            record = session.get(OfflineFormData, form_data_id(patient_id))
            if record is None:
                record = session.query(OfflineFormData).filter(
                    OfflineFormData.patient_id == patient_id
                ).first()
            return record

    def unsynced_form_data(self) -> List[OfflineFormData]:
        with self.Session() as session:
            return session.query(OfflineFormData).filter(
                OfflineFormData.synced.isnot(True)
            ).all()

    def mark_form_data_synced(self, record_id: str, intake_id: Optional[int] = None) -> None:
        with self.Session() as session:
            record = session.get(OfflineFormData, record_id)
            if record is None:
                return
            record.synced = True
            if intake_id is not None:
                record.intake_id = intake_id
            session.commit()

    # Intakes

    def save_intake(
        self,
        intake_id: str,
        patient_id: int,
        status: OfflineIntakeStatus = OfflineIntakeStatus.DRAFT,
        data: Optional[Dict[str, Any]] = None,
    ) -> OfflineIntake:
        now = utcnow()
        with self.Session() as session:
            record = session.get(OfflineIntake, intake_id)
            if record is None:
                record = OfflineIntake(id=intake_id, patient_id=patient_id, created_at=now)
                session.add(record)
            record.status = status
            record.data = dict(data or {})
            record.last_modified = now
            record.synced = False
            session.commit()
        return record

    def get_intake(self, intake_id: str) -> Optional[OfflineIntake]:
        with self.Session() as session:
            return session.get(OfflineIntake, intake_id)

    def unsynced_intakes(self) -> List[OfflineIntake]:
        with self.Session() as session:
            return (
                session.query(OfflineIntake)
                .filter(OfflineIntake.synced.isnot(True))
                .order_by(OfflineIntake.created_at.asc())
                .all()
            )

    def set_intake_server_id(self, intake_id: str, server_id: int) -> None:
        with self.Session() as session:
            record = session.get(OfflineIntake, intake_id)
            if record is not None:
                record.server_id = server_id
                session.commit()

    def mark_intake_synced(self, intake_id: str, status: Optional[OfflineIntakeStatus] = None) -> None:
        with self.Session() as session:
            record = session.get(OfflineIntake, intake_id)
            if record is None:
                return
            record.synced = True
            if status is not None:
                record.status = status
            session.commit()
