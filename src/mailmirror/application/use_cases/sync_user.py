"""Synchronize every folder of a user and advance the user's watermark."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone
from typing import Iterable, Optional

from loguru import logger

from mailmirror.application.configuration import SyncConfiguration
from mailmirror.application.ports.transport import Transport
from mailmirror.application.use_cases.discover_folders import FolderDiscovery
from mailmirror.application.use_cases.sync_folder_items import ItemSyncPaginator
from mailmirror.domain.errors import CancelledError, SyncError, UnexpectedError
from mailmirror.domain.models import FolderSyncResult, SyncReport, ensure_utc


class _CancelScope:
    """Cancellation for one user's run, also tripped by the caller's event.

    Setting the scope only keeps folders from starting. Folders already paging
    stop early only when the caller's ``parent`` event is set.
    """

    def __init__(self, parent: Optional[threading.Event] = None) -> None:
        self.parent = parent
        self._event = threading.Event()

    def set(self) -> None:
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set() or (self.parent is not None and self.parent.is_set())


class SyncOrchestrator:
    """Incremental sync of a user's mailbox.

    Flow per user:
    1. Discover all folders under each root (a failure here aborts the user)
    2. Page through every folder from its stored sync state, folders in parallel
    3. Persist each folder's final sync state as soon as it finishes
    4. Advance the user's watermark, only if every folder finished

    Sync states saved for folders that finished are kept when another folder
    fails, so a re-run resumes from there.
    """

    def __init__(
        self,
        transport: Transport,
        config: SyncConfiguration,
        discovery: Optional[FolderDiscovery] = None,
        paginator: Optional[ItemSyncPaginator] = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            transport: Sends requests to the remote mailbox service
            config: Page sizes, worker bound and the state/watermark stores
            discovery: Folder discovery to use (defaults to one over ``transport``)
            paginator: Folder paginator to use (defaults to one over ``transport``)
        """
        self.transport = transport
        self.config = config
        self.discovery = discovery or FolderDiscovery(transport)
        self.paginator = paginator or ItemSyncPaginator(transport)

    def sync_user(
        self,
        user: str,
        roots: Iterable[str],
        now: Optional[datetime] = None,
        cancel: Optional[threading.Event] = None,
    ) -> SyncReport:
        """Sync all folders under ``roots`` for ``user``.

        Never raises a SyncError; check ``report.error`` (and its ``kind``).
        """
        roots = list(roots)
        report = SyncReport(user=user, roots=roots)
        scope = _CancelScope(cancel)

        folders: set[str] = set()
        for root in roots:
            if scope.is_set():
                report.error = CancelledError(f"Sync of {user} cancelled during folder discovery.")
                return report
            try:
                folders |= self.discovery.discover(root, user)
            except SyncError as e:
                logger.error(f"Folder discovery failed for {user} under {root}: {e}")
                report.error = e
                return report

        first_error = self._sync_folders(user, sorted(folders), scope, report)
        if first_error is not None:
            report.error = first_error
            logger.warning(
                f"Sync of {user} incomplete, {len(report.failed_folders)} of {len(folders)} folders failed; "
                f"watermark not advanced"
            )
            return report

        report.watermark = self._advance_watermark(user, now)
        logger.info(
            f"Synced {user}: {report.total_items} new items in {len(folders)} folders, "
            f"watermark {report.watermark.isoformat()}"
        )
        return report

    def sync_users(
        self,
        users: Iterable[str],
        roots: Iterable[str],
        now: Optional[datetime] = None,
        cancel: Optional[threading.Event] = None,
    ) -> list[SyncReport]:
        """Sync users one after another; a failed user does not stop the rest.

        Exceptions outside the sync error taxonomy (a store failing, say) are
        recorded on that user's report as an ``UnexpectedError``.
        """
        roots = list(roots)
        reports = []
        for user in users:
            if cancel is not None and cancel.is_set():
                logger.info("Sync cancelled, skipping remaining users")
                break
            try:
                report = self.sync_user(user, roots, now=now, cancel=cancel)
            except Exception as e:
                logger.exception(f"Error syncing {user}: {e}")
                report = SyncReport(user=user, roots=roots, error=UnexpectedError(str(e), cause=e))
            reports.append(report)
        return reports

    def _sync_folders(
        self,
        user: str,
        folders: list[str],
        scope: _CancelScope,
        report: SyncReport,
    ) -> Optional[SyncError]:
        """Run every folder's pagination loop; return the first error seen."""
        if not folders:
            return None

        first_error: Optional[SyncError] = None
        workers = min(self.config.max_folder_workers, len(folders))

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="folder-sync") as executor:
            futures = {executor.submit(self._sync_one, user, folder, scope): folder for folder in folders}
            for future in as_completed(futures):
                try:
                    result = future.result()
                except Exception:
                    scope.set()
                    raise
                report.folders[result.folder_id] = result
                if result.error is None:
                    continue
                # Folders cancelled because of an earlier failure are not the cause
                if first_error is None or (
                    isinstance(first_error, CancelledError) and not isinstance(result.error, CancelledError)
                ):
                    first_error = result.error
                scope.set()

        return first_error

    def _sync_one(self, user: str, folder: str, scope: _CancelScope) -> FolderSyncResult:
        prior_state = self.config.sync_states.get(user, folder)
        if scope.is_set():
            logger.debug(f"Folder {folder} for {user} skipped, run already stopped")
            return FolderSyncResult(
                folder_id=folder,
                sync_state=prior_state,
                error=CancelledError(f"Sync of folder {folder} not started, run stopped."),
            )
        try:
            # Once started a folder runs to the end unless the caller cancels
            result = self.paginator.sync_folder(
                folder,
                user,
                prior_state,
                self.config.id_page_size,
                cancel=scope.parent,
            )
        except CancelledError as e:
            logger.debug(f"Folder {folder} for {user} not synced: {e}")
            return FolderSyncResult(folder_id=folder, sync_state=prior_state, error=e)
        except SyncError as e:
            logger.error(f"Sync of folder {folder} for {user} failed: {e}")
            # Folders that have not started yet are skipped
            scope.set()
            return FolderSyncResult(folder_id=folder, sync_state=prior_state, error=e)

        self.config.sync_states.put(user, folder, result.sync_state)
        logger.debug(f"Folder {folder} for {user}: {len(result.item_ids)} new items in {result.requests} requests")
        return result

    def _advance_watermark(self, user: str, now: Optional[datetime]) -> datetime:
        stamp = ensure_utc(now) if now is not None else datetime.now(timezone.utc)
        previous = ensure_utc(self.config.watermarks.get(user))
        if stamp < previous:
            logger.debug(f"Watermark for {user} already at {previous.isoformat()}, keeping it")
            stamp = previous
        self.config.watermarks.put(user, stamp)
        return stamp
