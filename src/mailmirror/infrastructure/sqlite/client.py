"""SQLite client for sync progress (folder sync states and user watermarks)."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator

from loguru import logger


class SQLiteClient:
    """SQLite client holding the sync_states and watermarks tables."""

    def __init__(self, db_path: str | Path = "/app/data/mailmirror.db"):
        self.db_path = Path(db_path)
        self._ensure_db()

    def _ensure_db(self) -> None:
        """Create database and tables if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with self._connection() as conn:
            conn.executescript("""
                PRAGMA journal_mode=WAL;

                CREATE TABLE IF NOT EXISTS sync_states (
                    user TEXT NOT NULL,
                    folder TEXT NOT NULL,
                    token TEXT NOT NULL,
                    updated_at TEXT NOT NULL,

                    PRIMARY KEY(user, folder)
                );

                CREATE TABLE IF NOT EXISTS watermarks (
                    user TEXT PRIMARY KEY,
                    ts TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
            """)
            logger.info(f"SQLite database initialized at {self.db_path}")

    @contextmanager
    def _connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path, timeout=30.0)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get_sync_state(self, user: str, folder: str) -> str | None:
        """Return the stored token for (user, folder), or None if never saved."""
        with self._connection() as conn:
            cursor = conn.execute(
                "SELECT token FROM sync_states WHERE user = ? AND folder = ?",
                (user, folder),
            )
            row = cursor.fetchone()
        return row["token"] if row else None

    def put_sync_state(self, user: str, folder: str, token: str) -> None:
        """Insert or replace the token for (user, folder)."""
        now = datetime.now(timezone.utc).isoformat()
        with self._connection() as conn:
            conn.execute(
                """INSERT INTO sync_states (user, folder, token, updated_at)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT(user, folder) DO UPDATE SET token = excluded.token, updated_at = excluded.updated_at""",
                (user, folder, token, now),
            )

    def get_watermark(self, user: str) -> datetime | None:
        with self._connection() as conn:
            cursor = conn.execute("SELECT ts FROM watermarks WHERE user = ?", (user,))
            row = cursor.fetchone()
        return datetime.fromisoformat(row["ts"]) if row else None

    def put_watermark(self, user: str, timestamp: datetime) -> None:
        now = datetime.now(timezone.utc).isoformat()
        with self._connection() as conn:
            conn.execute(
                """INSERT INTO watermarks (user, ts, updated_at)
                   VALUES (?, ?, ?)
                   ON CONFLICT(user) DO UPDATE SET ts = excluded.ts, updated_at = excluded.updated_at""",
                (user, timestamp.isoformat(), now),
            )

    def count_sync_states(self, user: str | None = None) -> int:
        """Number of folders with a saved sync state, optionally for one user."""
        with self._connection() as conn:
            if user is None:
                cursor = conn.execute("SELECT COUNT(*) FROM sync_states")
            else:
                cursor = conn.execute("SELECT COUNT(*) FROM sync_states WHERE user = ?", (user,))
            return cursor.fetchone()[0]

    def delete_user(self, user: str) -> int:
        """Forget all progress for ``user`` so the next run starts from scratch."""
        with self._connection() as conn:
            cursor = conn.execute("DELETE FROM sync_states WHERE user = ?", (user,))
            removed = cursor.rowcount
            conn.execute("DELETE FROM watermarks WHERE user = ?", (user,))
        logger.info(f"Reset sync progress for {user} ({removed} folders)")
        return removed
