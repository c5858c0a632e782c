"""Domain models for mailbox synchronization runs."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from mailmirror.domain.errors import SyncError

# Watermark of a user that has never completed a run.
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Continuation token of a folder that has never been synced.
INITIAL_SYNC_STATE = ""


class FolderSyncResult(BaseModel):
    """What one folder's pagination loop produced during a run."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    folder_id: str
    item_ids: list[str] = Field(default_factory=list)
    sync_state: str = INITIAL_SYNC_STATE
    requests: int = 0
    error: SyncError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SyncReport(BaseModel):
    """Result of syncing every folder of one user."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    user: str
    roots: list[str] = Field(default_factory=list)
    folders: dict[str, FolderSyncResult] = Field(default_factory=dict)
    watermark: datetime | None = None
    error: SyncError | None = None
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def item_ids(self) -> dict[str, list[str]]:
        """New item ids keyed by folder id, for folders that finished."""
        return {fid: r.item_ids for fid, r in self.folders.items() if r.ok}

    @property
    def failed_folders(self) -> list[str]:
        return sorted(fid for fid, r in self.folders.items() if not r.ok)

    @property
    def total_items(self) -> int:
        return sum(len(r.item_ids) for r in self.folders.values() if r.ok)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with stored watermarks."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
