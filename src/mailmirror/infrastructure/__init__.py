"""Infrastructure layer - transport, stores, and configuration."""

from mailmirror.infrastructure.ews import EwsTransport
from mailmirror.infrastructure.settings import Settings, get_settings
from mailmirror.infrastructure.stores import (
    InMemorySyncStateStore,
    InMemoryWatermarkStore,
    NoopWatermarkStore,
    SQLiteSyncStateStore,
    SQLiteWatermarkStore,
    StoresFactory,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Transport
    "EwsTransport",
    # Stores
    "InMemorySyncStateStore",
    "InMemoryWatermarkStore",
    "NoopWatermarkStore",
    "SQLiteSyncStateStore",
    "SQLiteWatermarkStore",
    "StoresFactory",
]
