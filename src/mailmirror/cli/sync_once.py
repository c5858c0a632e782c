"""One-shot incremental sync of the configured mailboxes."""

from __future__ import annotations

import argparse

from loguru import logger

from mailmirror.application.configuration import SyncConfiguration
from mailmirror.application.use_cases.sync_user import SyncOrchestrator
from mailmirror.infrastructure import EwsTransport, StoresFactory, get_settings
from mailmirror.infrastructure.logging import configure_logging
from mailmirror.infrastructure.sqlite.client import SQLiteClient


def main() -> int:
    parser = argparse.ArgumentParser(description="Sync new item ids from Exchange mailboxes")
    parser.add_argument("users", nargs="*", help="Users to sync (default: SYNC_USERS)")
    parser.add_argument("--root", action="append", dest="roots", help="Root folder to discover under (repeatable)")
    parser.add_argument("--page-size", type=int, default=None, help="Override ID_PAGE_SIZE")
    parser.add_argument("--workers", type=int, default=None, help="Override MAX_FOLDER_WORKERS")
    parser.add_argument("--reset", action="store_true", help="Forget stored progress for the users and exit")
    parser.add_argument("--show-ids", action="store_true", help="Print every new item id")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings.log_level)

    users = args.users or settings.user_list
    roots = args.roots or settings.root_list
    if not users:
        logger.error("No users to sync! Pass them as arguments or set SYNC_USERS")
        return 1

    if args.reset:
        if settings.state_backend != "sqlite":
            logger.error("--reset only applies to the sqlite state backend")
            return 1
        client = SQLiteClient(db_path=settings.state_db_path)
        for user in users:
            count = client.delete_user(user)
            print(f"Reset {count} folders for {user}")
        return 0

    sync_states, watermarks = StoresFactory.from_settings(settings)
    config = SyncConfiguration.from_settings(settings, sync_states, watermarks)
    if args.page_size is not None:
        config.id_page_size = max(args.page_size, 1)
    if args.workers is not None:
        config.max_folder_workers = max(args.workers, 1)

    with EwsTransport.from_settings(settings) as transport:
        orchestrator = SyncOrchestrator(transport, config)
        reports = orchestrator.sync_users(users, roots)

    failures = 0
    for report in reports:
        if report.ok:
            print(f"{report.user}: {report.total_items} new items in {len(report.folders)} folders")
        else:
            failures += 1
            print(f"{report.user}: FAILED ({report.error.kind.value}) {report.error}")
        if args.show_ids:
            for folder_id, item_ids in report.item_ids.items():
                for item_id in item_ids:
                    print(f"  {folder_id}\t{item_id}")

    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
