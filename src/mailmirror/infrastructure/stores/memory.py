"""In-memory stores for sync states and watermarks."""

from __future__ import annotations

import threading
from datetime import datetime

from loguru import logger

from mailmirror.application.ports.sync_state_store import SyncStateStore
from mailmirror.application.ports.watermark_store import WatermarkStore
from mailmirror.domain.models import EPOCH, INITIAL_SYNC_STATE, ensure_utc


class InMemorySyncStateStore(SyncStateStore):
    """Sync states keyed by (user, folder), lost when the process exits."""

    def __init__(self) -> None:
        self._states: dict[tuple[str, str], str] = {}
        self._lock = threading.Lock()

    def get(self, user: str, folder: str) -> str:
        with self._lock:
            return self._states.get((user, folder), INITIAL_SYNC_STATE)

    def put(self, user: str, folder: str, token: str) -> None:
        with self._lock:
            self._states[(user, folder)] = token
        logger.debug(f"Saved sync state for {user}:{folder}")

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)


class InMemoryWatermarkStore(WatermarkStore):
    """Per-user watermarks held in a dict."""

    def __init__(self) -> None:
        self._watermarks: dict[str, datetime] = {}
        self._lock = threading.Lock()

    def get(self, user: str) -> datetime:
        with self._lock:
            return self._watermarks.get(user, EPOCH)

    def put(self, user: str, timestamp: datetime) -> None:
        with self._lock:
            self._watermarks[user] = ensure_utc(timestamp)


class NoopWatermarkStore(WatermarkStore):
    """Never remembers anything; every user looks like they were never synced."""

    def get(self, user: str) -> datetime:
        return EPOCH

    def put(self, user: str, timestamp: datetime) -> None:
        pass
