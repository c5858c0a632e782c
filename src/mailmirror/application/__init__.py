"""Application layer - sync use cases, ports and configuration."""

from mailmirror.application.configuration import SyncConfiguration
from mailmirror.application.use_cases.discover_folders import FolderDiscovery, discover_folders
from mailmirror.application.use_cases.sync_folder_items import (
    MAX_SYNC_COUNT,
    ItemSyncPaginator,
    sync_folder,
)
from mailmirror.application.use_cases.sync_user import SyncOrchestrator

__all__ = [
    "SyncConfiguration",
    "FolderDiscovery",
    "discover_folders",
    "ItemSyncPaginator",
    "MAX_SYNC_COUNT",
    "sync_folder",
    "SyncOrchestrator",
]
