"""Page through the new items of a single folder."""

from __future__ import annotations

import threading
from typing import Optional

from loguru import logger

from mailmirror.application.ports.transport import (
    NO_ERROR,
    SHAPE_ID_ONLY,
    SyncFolderItemsRequest,
    SyncFolderItemsResponse,
    Transport,
)
from mailmirror.domain.entities.page import PageResult
from mailmirror.domain.errors import CancelledError, ProtocolError
from mailmirror.domain.models import FolderSyncResult

# Exchange faults when asked for more changes than this in one call.
MAX_SYNC_COUNT = 512


def clamp_page_size(page_size: int) -> int:
    return min(max(int(page_size), 1), MAX_SYNC_COUNT)


class ItemSyncPaginator:
    """Collects the ids of items created in a folder since a sync state.

    Pages are requested strictly one after the other: each request carries the
    token returned by the previous page. Updated and deleted items are not
    tracked.
    """

    def __init__(self, transport: Transport) -> None:
        self.transport = transport

    @staticmethod
    def build_request(folder: str, sync_state: str, page_size: int) -> SyncFolderItemsRequest:
        return SyncFolderItemsRequest(
            folder_id=folder,
            sync_state=sync_state,
            max_changes_returned=clamp_page_size(page_size),
            base_shape=SHAPE_ID_ONLY,
        )

    def sync_page(self, folder: str, user: str, sync_state: str, page_size: int) -> PageResult:
        """Request one page of changes.

        A response message with an error code fails the whole page; ids already
        read from earlier messages of the same response are dropped.
        """
        request = self.build_request(folder, sync_state, page_size)
        response = self.transport.send(request, user)

        if response is None:
            logger.debug(f"Null sync folder items response for {user} folder {folder}")
            raise ProtocolError("Null response from Exchange service.")
        if not isinstance(response, SyncFolderItemsResponse):
            raise ProtocolError(f"Unexpected response type {type(response).__name__} for sync folder items.")

        item_ids: list[str] = []
        next_state = sync_state
        includes_last_item = False

        for message in response.messages:
            code = message.response_code
            if code is not None and code != NO_ERROR:
                logger.debug(f"Sync of folder {folder} for {user} failed: {code} {message.message_text or ''}")
                raise ProtocolError("SOAP response contained an error.", response_code=code)

            if message.sync_state is not None:
                next_state = message.sync_state
            if message.includes_last_item_in_range is not None:
                includes_last_item = message.includes_last_item_in_range
            if message.changes is not None:
                item_ids.extend(iid for iid in message.changes.created if iid)

        if not response.messages:
            # Degenerate reply; stop instead of asking again forever
            logger.debug(f"Exchange responded without any messages for folder {folder}")
            includes_last_item = True

        return PageResult(item_ids=item_ids, sync_state=next_state, includes_last_item=includes_last_item)

    def sync_folder(
        self,
        folder: str,
        user: str,
        prior_state: str,
        page_size: int,
        cancel: Optional[threading.Event] = None,
    ) -> FolderSyncResult:
        """Page until the server reports the last item and return everything new.

        Raises:
            CancelledError: ``cancel`` was set before a request went out
            ProtocolError, TransportError, EmptyResponseError: from any page
        """
        item_ids: list[str] = []
        sync_state = prior_state
        requests = 0

        while True:
            if cancel is not None and cancel.is_set():
                raise CancelledError(f"Sync of folder {folder} cancelled after {requests} requests.")

            page = self.sync_page(folder, user, sync_state, page_size)
            requests += 1
            item_ids.extend(page.item_ids)
            sync_state = page.sync_state
            logger.debug(f"Folder {folder}: page {requests} returned {len(page.item_ids)} new items")

            if not page.more_pages:
                break

        return FolderSyncResult(
            folder_id=folder,
            item_ids=item_ids,
            sync_state=sync_state,
            requests=requests,
        )


def sync_folder(
    transport: Transport,
    folder: str,
    user: str,
    prior_state: str,
    max_page_size: int,
) -> tuple[list[str], str]:
    """Convenience wrapper returning ``(new item ids, next sync state)``."""
    result = ItemSyncPaginator(transport).sync_folder(folder, user, prior_state, max_page_size)
    return result.item_ids, result.sync_state
