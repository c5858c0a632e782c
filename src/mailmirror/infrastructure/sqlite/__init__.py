"""SQLite infrastructure for sync progress storage."""

from mailmirror.infrastructure.sqlite.client import SQLiteClient

__all__ = [
    "SQLiteClient",
]
