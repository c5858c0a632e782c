"""Factory for the sync state and watermark stores."""

from __future__ import annotations

from loguru import logger

from mailmirror.application.ports.sync_state_store import SyncStateStore
from mailmirror.application.ports.watermark_store import WatermarkStore
from mailmirror.infrastructure.settings import Settings
from mailmirror.infrastructure.sqlite.client import SQLiteClient
from mailmirror.infrastructure.stores.memory import InMemorySyncStateStore, InMemoryWatermarkStore
from mailmirror.infrastructure.stores.sqlite_stores import SQLiteSyncStateStore, SQLiteWatermarkStore


class StoresFactory:
    """Builds a fresh pair of stores; nothing is cached between calls."""

    @staticmethod
    def from_settings(settings: Settings) -> tuple[SyncStateStore, WatermarkStore]:
        """Create stores based on ``settings.state_backend``."""
        return StoresFactory.create(settings.state_backend, settings.state_db_path)

    @staticmethod
    def create(backend: str = "sqlite", db_path: str | None = None) -> tuple[SyncStateStore, WatermarkStore]:
        """Create stores with explicit configuration."""
        if backend == "memory":
            logger.warning("Using in-memory sync progress; it is lost when the process exits")
            return InMemorySyncStateStore(), InMemoryWatermarkStore()
        elif backend == "sqlite":
            if not db_path:
                raise ValueError("db_path is required for the sqlite backend")
            client = SQLiteClient(db_path=db_path)
            return SQLiteSyncStateStore(client), SQLiteWatermarkStore(client)
        else:
            raise ValueError(f"Unknown state backend: {backend}")
