"""Settings the sync engine itself consumes."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from mailmirror.application.ports.sync_state_store import SyncStateStore
from mailmirror.application.ports.watermark_store import WatermarkStore

if TYPE_CHECKING:
    from mailmirror.infrastructure.settings import Settings


def _default_sync_states() -> SyncStateStore:
    from mailmirror.infrastructure.stores.memory import InMemorySyncStateStore
    return InMemorySyncStateStore()


def _default_watermarks() -> WatermarkStore:
    from mailmirror.infrastructure.stores.memory import InMemoryWatermarkStore
    return InMemoryWatermarkStore()


@dataclass
class SyncConfiguration:
    """Page sizes, worker bound and the stores a sync run reads and writes.

    Page sizes and the worker bound are clamped to at least 1. Each instance
    gets its own stores unless they are passed in.
    """

    id_page_size: int = 512
    item_page_size: int = 100
    sync_states: SyncStateStore = field(default_factory=_default_sync_states)
    watermarks: WatermarkStore = field(default_factory=_default_watermarks)
    max_folder_workers: int = 4

    def __post_init__(self) -> None:
        self.id_page_size = max(int(self.id_page_size), 1)
        self.item_page_size = max(int(self.item_page_size), 1)
        self.max_folder_workers = max(int(self.max_folder_workers), 1)

    def with_sync_state_store(self, store: SyncStateStore) -> SyncConfiguration:
        return replace(self, sync_states=store)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        sync_states: SyncStateStore,
        watermarks: WatermarkStore,
    ) -> SyncConfiguration:
        return cls(
            id_page_size=settings.id_page_size,
            item_page_size=settings.item_page_size,
            sync_states=sync_states,
            watermarks=watermarks,
            max_folder_workers=settings.max_folder_workers,
        )
