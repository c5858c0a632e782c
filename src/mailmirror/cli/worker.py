"""Sync worker - re-syncs the configured mailboxes at a fixed interval."""

from __future__ import annotations

import signal
import threading
from dataclasses import dataclass, field
from datetime import datetime

from loguru import logger

from mailmirror.application.configuration import SyncConfiguration
from mailmirror.application.use_cases.sync_user import SyncOrchestrator
from mailmirror.domain.models import SyncReport
from mailmirror.infrastructure import EwsTransport, Settings, StoresFactory, get_settings
from mailmirror.infrastructure.logging import configure_logging


@dataclass
class WorkerStats:
    """Track worker statistics."""
    total_items: int = 0
    total_errors: int = 0
    last_poll: datetime | None = None
    polls_completed: int = 0
    by_user: dict[str, int] = field(default_factory=dict)

    def record(self, report: SyncReport) -> None:
        if report.ok:
            self.total_items += report.total_items
            self.by_user[report.user] = self.by_user.get(report.user, 0) + report.total_items
        else:
            self.total_errors += 1


class SyncWorker:
    """
    Multi-user sync worker.

    Runs one sync pass over every configured user, then sleeps until the next
    poll. A failed user is retried on the next pass, resuming from the folder
    sync states that were saved before the failure.
    """

    def __init__(
        self,
        orchestrator: SyncOrchestrator,
        users: list[str],
        roots: list[str],
        poll_interval_minutes: int = 15,
    ):
        self.orchestrator = orchestrator
        self.users = users
        self.roots = roots
        self.poll_interval = poll_interval_minutes * 60  # Convert to seconds
        self.stats = WorkerStats()
        self._stop = threading.Event()

    @property
    def running(self) -> bool:
        return not self._stop.is_set()

    def stop(self) -> None:
        """Stop after the current folder page; in-flight folders keep their last saved state."""
        self._stop.set()

    def poll_once(self) -> list[SyncReport]:
        """Sync every user once."""
        self.stats.last_poll = datetime.now()
        logger.info(f"Starting poll cycle #{self.stats.polls_completed + 1}")

        reports = self.orchestrator.sync_users(self.users, self.roots, cancel=self._stop)
        for report in reports:
            self.stats.record(report)
            if not report.ok:
                logger.error(f"Error syncing {report.user}: {report.error.kind.value} {report.error}")

        self.stats.polls_completed += 1
        self._log_stats()
        return reports

    def _log_stats(self) -> None:
        """Log current worker statistics."""
        logger.info(
            f"Worker stats: "
            f"polls={self.stats.polls_completed}, "
            f"items={self.stats.total_items}, "
            f"errors={self.stats.total_errors}, "
            f"by_user={self.stats.by_user}"
        )

    def _handle_shutdown(self, signum, frame) -> None:
        """Handle graceful shutdown."""
        logger.info(f"Received signal {signum}, shutting down...")
        self.stop()

    def run(self) -> int:
        """Run the worker loop."""
        signal.signal(signal.SIGTERM, self._handle_shutdown)
        signal.signal(signal.SIGINT, self._handle_shutdown)

        logger.info(f"Sync worker starting with {len(self.users)} user(s)")
        logger.info(f"Poll interval: {self.poll_interval // 60} minutes")
        for user in self.users:
            logger.info(f"  - {user}")

        while self.running:
            self.poll_once()
            logger.debug(f"Sleeping for {self.poll_interval} seconds...")
            # Returns early when a signal sets the stop event
            self._stop.wait(self.poll_interval)

        logger.info("Worker shutdown complete")
        self._log_stats()
        return 0


def build_worker(settings: Settings, transport: EwsTransport) -> SyncWorker:
    sync_states, watermarks = StoresFactory.from_settings(settings)
    config = SyncConfiguration.from_settings(settings, sync_states, watermarks)
    return SyncWorker(
        orchestrator=SyncOrchestrator(transport, config),
        users=settings.user_list,
        roots=settings.root_list,
        poll_interval_minutes=settings.poll_interval_minutes,
    )


def main() -> int:
    """Entry point for the sync worker."""
    settings = get_settings()
    configure_logging(settings.log_level)

    logger.info("=" * 60)
    logger.info(f"{settings.app_name} Sync Worker v{settings.app_version}")
    logger.info("=" * 60)

    if not settings.user_list:
        logger.error("No users configured! Set SYNC_USERS")
        return 1

    try:
        transport = EwsTransport.from_settings(settings)
    except Exception as e:
        logger.error(f"Failed to initialize transport: {e}")
        return 1

    with transport:
        return build_worker(settings, transport).run()


if __name__ == "__main__":
    raise SystemExit(main())
