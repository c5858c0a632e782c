"""
Tests for the polling sync worker.
"""

import sqlite3

import pytest

from mailmirror.application.configuration import SyncConfiguration
from mailmirror.application.use_cases.sync_user import SyncOrchestrator
from mailmirror.cli.worker import SyncWorker, build_worker
from mailmirror.infrastructure.settings import Settings
from mailmirror.infrastructure.stores.memory import InMemorySyncStateStore


@pytest.fixture
def worker(exchange, config):
    return SyncWorker(
        orchestrator=SyncOrchestrator(exchange, config),
        users=["alice", "bob"],
        roots=["msgfolderroot"],
        poll_interval_minutes=1,
    )


class TestSyncWorker:
    def test_poll_once_records_stats(self, worker):
        reports = worker.poll_once()

        assert [r.user for r in reports] == ["alice", "bob"]
        assert worker.stats.polls_completed == 1
        assert worker.stats.total_items == 34
        assert worker.stats.by_user == {"alice": 17, "bob": 17}
        assert worker.stats.total_errors == 0
        assert worker.stats.last_poll is not None

    def test_second_poll_is_incremental(self, worker, exchange):
        worker.poll_once()
        exchange.add_items("archive", ["archive-new"])

        worker.poll_once()

        assert worker.stats.polls_completed == 2
        assert worker.stats.by_user == {"alice": 18, "bob": 18}

    def test_failed_user_counted(self, worker, exchange):
        exchange.discovery_failure = "ErrorServerBusy"

        reports = worker.poll_once()

        assert not any(r.ok for r in reports)
        assert worker.stats.total_errors == 2
        assert worker.stats.total_items == 0

    def test_store_failure_counted_and_next_user_synced(self, exchange, watermarks):
        class LockedForAlice(InMemorySyncStateStore):
            def get(self, user, folder):
                if user == "alice":
                    raise sqlite3.OperationalError("database is locked")
                return super().get(user, folder)

        config = SyncConfiguration(id_page_size=4, sync_states=LockedForAlice(), watermarks=watermarks)
        worker = SyncWorker(SyncOrchestrator(exchange, config), users=["alice", "bob"], roots=["msgfolderroot"])

        reports = worker.poll_once()

        assert [r.user for r in reports] == ["alice", "bob"]
        assert worker.stats.total_errors == 1
        assert worker.stats.by_user == {"bob": 17}
        assert worker.stats.polls_completed == 1

    def test_stop_skips_pending_users(self, worker, exchange):
        worker.stop()

        assert not worker.running
        assert worker.poll_once() == []
        assert exchange.calls == []

    def test_poll_interval_in_seconds(self, worker):
        assert worker.poll_interval == 60


class TestBuildWorker:
    def test_from_settings(self, exchange):
        settings = Settings(
            _env_file=None,
            sync_users="alice@example.com,bob@example.com",
            sync_roots="inbox",
            state_backend="memory",
            id_page_size=2,
            poll_interval_minutes=5,
        )

        worker = build_worker(settings, exchange)

        assert worker.users == ["alice@example.com", "bob@example.com"]
        assert worker.roots == ["inbox"]
        assert worker.poll_interval == 300
        assert worker.orchestrator.config.id_page_size == 2
        assert isinstance(worker.orchestrator.config.sync_states, InMemorySyncStateStore)
