"""Store implementations."""

from mailmirror.infrastructure.stores.memory import (
    InMemorySyncStateStore,
    InMemoryWatermarkStore,
    NoopWatermarkStore,
)
from mailmirror.infrastructure.stores.sqlite_stores import SQLiteSyncStateStore, SQLiteWatermarkStore
from mailmirror.infrastructure.stores.factory import StoresFactory

__all__ = [
    "InMemorySyncStateStore",
    "InMemoryWatermarkStore",
    "NoopWatermarkStore",
    "SQLiteSyncStateStore",
    "SQLiteWatermarkStore",
    "StoresFactory",
]
