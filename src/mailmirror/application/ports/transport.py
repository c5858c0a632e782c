from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Protocol, Union

NO_ERROR = "NoError"

# Traversal and shape names as the remote service spells them.
TRAVERSAL_DEEP = "Deep"
SHAPE_ID_ONLY = "IdOnly"

DISTINGUISHED_FOLDERS = frozenset({
    "msgfolderroot",
    "root",
    "inbox",
    "drafts",
    "sentitems",
    "deleteditems",
    "outbox",
    "junkemail",
    "archivemsgfolderroot",
})


@dataclass(frozen=True)
class FindFolderRequest:
    # Either a distinguished folder name (see DISTINGUISHED_FOLDERS) or a folder id
    parent_folder_id: str
    traversal: str = TRAVERSAL_DEEP
    base_shape: str = SHAPE_ID_ONLY

    @property
    def is_distinguished(self) -> bool:
        return self.parent_folder_id.lower() in DISTINGUISHED_FOLDERS


@dataclass(frozen=True)
class FindFolderResponseMessage:
    response_code: Optional[str] = NO_ERROR
    # None when the message carries no RootFolder/Folders section
    folder_ids: Optional[list[str]] = None
    message_text: Optional[str] = None


@dataclass(frozen=True)
class FindFolderResponse:
    messages: list[FindFolderResponseMessage] = field(default_factory=list)


@dataclass(frozen=True)
class SyncFolderItemsRequest:
    folder_id: str
    sync_state: str
    max_changes_returned: int
    base_shape: str = SHAPE_ID_ONLY


@dataclass(frozen=True)
class ItemChanges:
    # Item ids per change type; only ``created`` is consumed by the sync
    created: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SyncFolderItemsResponseMessage:
    response_code: Optional[str] = NO_ERROR
    sync_state: Optional[str] = None
    includes_last_item_in_range: Optional[bool] = None
    changes: Optional[ItemChanges] = None
    message_text: Optional[str] = None


@dataclass(frozen=True)
class SyncFolderItemsResponse:
    messages: list[SyncFolderItemsResponseMessage] = field(default_factory=list)


Request = Union[FindFolderRequest, SyncFolderItemsRequest]
Response = Union[FindFolderResponse, SyncFolderItemsResponse]


class Transport(Protocol):
    """Sends one typed request on behalf of ``impersonated_user``.

    Returns ``None`` when the reply body lacks the expected response section.
    Raises TransportError, ProtocolError or EmptyResponseError on failure.
    """

    def send(self, request: Request, impersonated_user: str) -> Optional[Response]: ...
