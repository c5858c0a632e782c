"""
Tests for folder discovery.
"""

import random

import pytest

from conftest import FakeExchange, ScriptedTransport
from mailmirror.application.ports.transport import (
    FindFolderResponse,
    FindFolderResponseMessage,
    SyncFolderItemsResponse,
)
from mailmirror.application.use_cases.discover_folders import FolderDiscovery, discover_folders
from mailmirror.domain.errors import EmptyResponseError, ProtocolError, TransportError


class TestBuildRequest:
    def test_deep_id_only(self):
        request = FolderDiscovery.build_request("msgfolderroot")
        assert request.parent_folder_id == "msgfolderroot"
        assert request.traversal == "Deep"
        assert request.base_shape == "IdOnly"
        assert request.is_distinguished

    def test_folder_id_root_is_not_distinguished(self):
        assert not FolderDiscovery.build_request("AAMkAGI2TG93AAA=").is_distinguished


class TestDiscover:
    def test_returns_all_folder_ids(self):
        transport = ScriptedTransport(
            FindFolderResponse(messages=[FindFolderResponseMessage(folder_ids=["a", "b", "c"])])
        )
        folders = FolderDiscovery(transport).discover("msgfolderroot", "alice")

        assert folders == {"a", "b", "c"}
        request, user = transport.requests[0]
        assert user == "alice"
        assert request.traversal == "Deep"

    def test_duplicates_collapse(self):
        transport = ScriptedTransport(
            FindFolderResponse(messages=[
                FindFolderResponseMessage(folder_ids=["a", "b", "a"]),
                FindFolderResponseMessage(folder_ids=["b", "c"]),
            ])
        )
        assert discover_folders(transport, "inbox", "alice") == {"a", "b", "c"}

    def test_order_independent(self):
        folder_ids = [f"folder-{i}" for i in range(30)]
        results = []
        for seed in range(5):
            shuffled = list(folder_ids)
            random.Random(seed).shuffle(shuffled)
            server = FakeExchange({fid: [] for fid in folder_ids}, discovery_order=shuffled)
            results.append(discover_folders(server, "msgfolderroot", "alice"))

        assert all(r == set(folder_ids) for r in results)

    def test_message_without_folders_section(self):
        transport = ScriptedTransport(
            FindFolderResponse(messages=[
                FindFolderResponseMessage(folder_ids=None),
                FindFolderResponseMessage(folder_ids=["x", ""]),
            ])
        )
        assert discover_folders(transport, "msgfolderroot", "alice") == {"x"}

    def test_no_folders(self):
        transport = ScriptedTransport(FindFolderResponse(messages=[]))
        assert discover_folders(transport, "msgfolderroot", "alice") == set()

    def test_error_code_raises_protocol_error(self):
        transport = ScriptedTransport(
            FindFolderResponse(messages=[
                FindFolderResponseMessage(response_code="ErrorImpersonateUserDenied"),
                FindFolderResponseMessage(folder_ids=["a"]),
            ])
        )
        with pytest.raises(ProtocolError) as exc:
            discover_folders(transport, "msgfolderroot", "alice")
        assert exc.value.response_code == "ErrorImpersonateUserDenied"
        assert len(transport.requests) == 1

    def test_null_response_raises_protocol_error(self):
        with pytest.raises(ProtocolError):
            discover_folders(ScriptedTransport(None), "msgfolderroot", "alice")

    def test_wrong_response_type_raises_protocol_error(self):
        with pytest.raises(ProtocolError):
            discover_folders(ScriptedTransport(SyncFolderItemsResponse()), "msgfolderroot", "alice")

    @pytest.mark.parametrize("error", [
        TransportError("down", status_code=500),
        EmptyResponseError("empty"),
        ProtocolError("no body"),
    ])
    def test_transport_failures_propagate(self, error):
        with pytest.raises(type(error)):
            discover_folders(ScriptedTransport(error), "msgfolderroot", "alice")
