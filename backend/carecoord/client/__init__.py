#offline-capable field client; independent of the server settings
from .api_client import ApiClient, ApiError, OfflineError
from .storage import (
    KeyValueStore, MemoryKeyValueStore, SQLiteKeyValueStore, SessionCache,
    OfflineStore, OfflineIntakeStatus,
)
from .sync import EmergencyPoller, OfflineSyncer, SyncReport

__all__ = [
    "ApiClient",
    "ApiError",
    "OfflineError",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SQLiteKeyValueStore",
    "SessionCache",
    "OfflineStore",
    "OfflineIntakeStatus",
    "EmergencyPoller",
    "OfflineSyncer",
    "SyncReport",
]
