"""Domain models, entities and errors."""

from mailmirror.domain.entities.page import PageResult
from mailmirror.domain.errors import (
    CancelledError,
    EmptyResponseError,
    ErrorKind,
    ProtocolError,
    SyncError,
    TransportError,
    UnexpectedError,
)
from mailmirror.domain.models import (
    EPOCH,
    INITIAL_SYNC_STATE,
    FolderSyncResult,
    SyncReport,
    ensure_utc,
)

__all__ = [
    "EPOCH",
    "INITIAL_SYNC_STATE",
    "PageResult",
    "FolderSyncResult",
    "SyncReport",
    "ErrorKind",
    "SyncError",
    "TransportError",
    "ProtocolError",
    "EmptyResponseError",
    "CancelledError",
    "UnexpectedError",
    "ensure_utc",
]
