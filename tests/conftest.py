"""
Shared pytest fixtures and fakes for the sync engine tests.
"""

import threading

import pytest

from mailmirror.application.configuration import SyncConfiguration
from mailmirror.application.ports.transport import (
    FindFolderRequest,
    FindFolderResponse,
    FindFolderResponseMessage,
    ItemChanges,
    SyncFolderItemsRequest,
    SyncFolderItemsResponse,
    SyncFolderItemsResponseMessage,
)
from mailmirror.infrastructure.stores.memory import InMemorySyncStateStore, InMemoryWatermarkStore


class FakeExchange:
    """
    In-process stand-in for an Exchange server.

    Each folder holds an ordered list of item ids. The sync state handed out is
    "<folder>@<offset>", so a folder's state says how many items were already
    returned. Folders listed in ``failures`` answer sync requests with the
    given response code, or raise the given exception.
    """

    def __init__(self, folders=None, discovery_order=None):
        self.folders = {name: list(items) for name, items in (folders or {}).items()}
        self.discovery_order = discovery_order
        self.failures = {}
        self.discovery_failure = None
        self.calls = []
        self._lock = threading.Lock()

    def add_items(self, folder, item_ids):
        self.folders.setdefault(folder, []).extend(item_ids)

    def sync_calls(self, folder=None):
        return [
            request for request, _ in self.calls
            if isinstance(request, SyncFolderItemsRequest) and (folder is None or request.folder_id == folder)
        ]

    def send(self, request, impersonated_user):
        with self._lock:
            self.calls.append((request, impersonated_user))

        if isinstance(request, FindFolderRequest):
            return self._find_folder(request)
        return self._sync_folder_items(request)

    def _find_folder(self, request):
        if self.discovery_failure is not None:
            if isinstance(self.discovery_failure, Exception):
                raise self.discovery_failure
            return FindFolderResponse(messages=[
                FindFolderResponseMessage(response_code=self.discovery_failure)
            ])
        order = self.discovery_order or list(self.folders)
        return FindFolderResponse(messages=[FindFolderResponseMessage(folder_ids=list(order))])

    def _sync_folder_items(self, request):
        folder = request.folder_id
        failure = self.failures.get(folder)
        if isinstance(failure, Exception):
            raise failure
        if failure is not None:
            return SyncFolderItemsResponse(messages=[
                SyncFolderItemsResponseMessage(response_code=failure)
            ])

        items = self.folders.get(folder, [])
        offset = 0
        if request.sync_state:
            prefix, _, raw_offset = request.sync_state.rpartition("@")
            assert prefix == folder, "sync state used for the wrong folder"
            offset = int(raw_offset)

        page = items[offset:offset + request.max_changes_returned]
        new_offset = offset + len(page)
        return SyncFolderItemsResponse(messages=[
            SyncFolderItemsResponseMessage(
                sync_state=f"{folder}@{new_offset}",
                includes_last_item_in_range=new_offset >= len(items),
                changes=ItemChanges(created=page),
            )
        ])


class ScriptedTransport:
    """Returns the queued responses in order and records every request."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def send(self, request, impersonated_user):
        self.requests.append((request, impersonated_user))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def sync_message(created=(), sync_state=None, includes_last=None, code="NoError", updated=(), deleted=()):
    """Build one SyncFolderItems response message."""
    return SyncFolderItemsResponseMessage(
        response_code=code,
        sync_state=sync_state,
        includes_last_item_in_range=includes_last,
        changes=ItemChanges(created=list(created), updated=list(updated), deleted=list(deleted)),
    )


@pytest.fixture
def exchange():
    """A fake server with three folders of different sizes."""
    return FakeExchange({
        "inbox": [f"inbox-{i}" for i in range(5)],
        "archive": [f"archive-{i}" for i in range(12)],
        "empty": [],
    })


@pytest.fixture
def sync_states():
    return InMemorySyncStateStore()


@pytest.fixture
def watermarks():
    return InMemoryWatermarkStore()


@pytest.fixture
def config(sync_states, watermarks):
    """Fresh stores for every test; page size 4 to force several pages."""
    return SyncConfiguration(
        id_page_size=4,
        item_page_size=10,
        sync_states=sync_states,
        watermarks=watermarks,
        max_folder_workers=2,
    )
