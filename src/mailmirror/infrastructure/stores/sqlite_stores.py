"""SQLite-backed sync state and watermark stores."""

from __future__ import annotations

from datetime import datetime

from loguru import logger

from mailmirror.application.ports.sync_state_store import SyncStateStore
from mailmirror.application.ports.watermark_store import WatermarkStore
from mailmirror.domain.models import EPOCH, INITIAL_SYNC_STATE, ensure_utc
from mailmirror.infrastructure.sqlite.client import SQLiteClient


class SQLiteSyncStateStore(SyncStateStore):
    """Store folder sync states in SQLite."""

    def __init__(self, client: SQLiteClient):
        self.client = client

    def get(self, user: str, folder: str) -> str:
        token = self.client.get_sync_state(user, folder)
        if token is None:
            logger.debug(f"No sync state found for {user}:{folder}")
            return INITIAL_SYNC_STATE
        return token

    def put(self, user: str, folder: str, token: str) -> None:
        self.client.put_sync_state(user, folder, token)
        logger.info(f"Saved sync state for {user}:{folder}")


class SQLiteWatermarkStore(WatermarkStore):
    """Store per-user watermarks in SQLite."""

    def __init__(self, client: SQLiteClient):
        self.client = client

    def get(self, user: str) -> datetime:
        ts = self.client.get_watermark(user)
        return ensure_utc(ts) if ts is not None else EPOCH

    def put(self, user: str, timestamp: datetime) -> None:
        timestamp = ensure_utc(timestamp)
        self.client.put_watermark(user, timestamp)
        logger.info(f"Saved watermark for {user}: {timestamp.isoformat()}")
