"""SOAP envelopes for the two EWS operations the sync needs.

Only FindFolder and SyncFolderItems are supported, with just the elements the
sync engine reads. Everything else in a response is ignored.
"""

from __future__ import annotations

from typing import Optional
from xml.etree import ElementTree as ET

from mailmirror.application.ports.transport import (
    FindFolderRequest,
    FindFolderResponse,
    FindFolderResponseMessage,
    ItemChanges,
    Request,
    Response,
    SyncFolderItemsRequest,
    SyncFolderItemsResponse,
    SyncFolderItemsResponseMessage,
    DISTINGUISHED_FOLDERS,
)
from mailmirror.domain.errors import ProtocolError

SOAP_NS = "http://schemas.xmlsoap.org/soap/envelope/"
TYPES_NS = "http://schemas.microsoft.com/exchange/services/2006/types"
MESSAGES_NS = "http://schemas.microsoft.com/exchange/services/2006/messages"

XML_DECLARATION = '<?xml version="1.0" encoding="utf-8"?>'

ET.register_namespace("soap", SOAP_NS)
ET.register_namespace("t", TYPES_NS)
ET.register_namespace("m", MESSAGES_NS)


def _s(tag: str) -> str:
    return f"{{{SOAP_NS}}}{tag}"


def _t(tag: str) -> str:
    return f"{{{TYPES_NS}}}{tag}"


def _m(tag: str) -> str:
    return f"{{{MESSAGES_NS}}}{tag}"


def _folder_id_element(parent: ET.Element, folder_id: str) -> None:
    if folder_id.lower() in DISTINGUISHED_FOLDERS:
        ET.SubElement(parent, _t("DistinguishedFolderId"), Id=folder_id.lower())
    else:
        ET.SubElement(parent, _t("FolderId"), Id=folder_id)


def _find_folder_body(request: FindFolderRequest) -> ET.Element:
    find = ET.Element(_m("FindFolder"), Traversal=request.traversal)
    shape = ET.SubElement(find, _m("FolderShape"))
    ET.SubElement(shape, _t("BaseShape")).text = request.base_shape
    _folder_id_element(ET.SubElement(find, _m("ParentFolderIds")), request.parent_folder_id)
    return find


def _sync_folder_items_body(request: SyncFolderItemsRequest) -> ET.Element:
    sync = ET.Element(_m("SyncFolderItems"))
    shape = ET.SubElement(sync, _m("ItemShape"))
    ET.SubElement(shape, _t("BaseShape")).text = request.base_shape
    _folder_id_element(ET.SubElement(sync, _m("SyncFolderId")), request.folder_id)
    if request.sync_state:
        ET.SubElement(sync, _m("SyncState")).text = request.sync_state
    ET.SubElement(sync, _m("MaxChangesReturned")).text = str(request.max_changes_returned)
    return sync


def build_envelope(request: Request, impersonated_user: str) -> bytes:
    """Serialize ``request`` into a SOAP envelope impersonating ``impersonated_user``."""
    envelope = ET.Element(_s("Envelope"))
    header = ET.SubElement(envelope, _s("Header"))
    impersonation = ET.SubElement(header, _t("ExchangeImpersonation"))
    sid = ET.SubElement(impersonation, _t("ConnectingSID"))
    ET.SubElement(sid, _t("PrincipalName")).text = impersonated_user

    body = ET.SubElement(envelope, _s("Body"))
    if isinstance(request, FindFolderRequest):
        body.append(_find_folder_body(request))
    elif isinstance(request, SyncFolderItemsRequest):
        body.append(_sync_folder_items_body(request))
    else:
        raise TypeError(f"Unsupported request type {type(request).__name__}")

    return (XML_DECLARATION + ET.tostring(envelope, encoding="unicode")).encode("utf-8")


def parse_body(data: bytes) -> ET.Element:
    """Parse a SOAP response and return its Body element."""
    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise ProtocolError(f"Error parsing SOAP response: {e}") from e

    if root.tag != _s("Envelope"):
        raise ProtocolError(f"Response is not a SOAP envelope (root element {root.tag}).")

    body = root.find(_s("Body"))
    if body is None:
        raise ProtocolError("SOAP response did not contain a body.")
    return body


def _text(element: ET.Element, tag: str) -> Optional[str]:
    child = element.find(tag)
    if child is None:
        return None
    return child.text or ""


def _item_ids(change: ET.Element) -> list[str]:
    # A Create/Update wraps one item element (Message, CalendarItem, ...) holding the ItemId
    ids = []
    for item in change:
        item_id = item.find(_t("ItemId"))
        if item_id is not None and item_id.get("Id"):
            ids.append(item_id.get("Id"))
    return ids


def _parse_find_folder(element: ET.Element) -> FindFolderResponse:
    messages = []
    for msg in element.iterfind(f"{_m('ResponseMessages')}/{_m('FindFolderResponseMessage')}"):
        folder_ids = None
        folders = msg.find(f"{_m('RootFolder')}/{_t('Folders')}")
        if folders is not None:
            folder_ids = []
            for folder in folders:
                folder_id = folder.find(_t("FolderId"))
                if folder_id is not None and folder_id.get("Id"):
                    folder_ids.append(folder_id.get("Id"))
        messages.append(
            FindFolderResponseMessage(
                response_code=_text(msg, _m("ResponseCode")),
                folder_ids=folder_ids,
                message_text=_text(msg, _m("MessageText")),
            )
        )
    return FindFolderResponse(messages=messages)


def _parse_sync_folder_items(element: ET.Element) -> SyncFolderItemsResponse:
    messages = []
    for msg in element.iterfind(f"{_m('ResponseMessages')}/{_m('SyncFolderItemsResponseMessage')}"):
        includes_last = _text(msg, _m("IncludesLastItemInRange"))
        changes = None
        changes_el = msg.find(_m("Changes"))
        if changes_el is not None:
            created, updated, deleted = [], [], []
            for change in changes_el:
                if change.tag == _t("Create"):
                    created.extend(_item_ids(change))
                elif change.tag == _t("Update"):
                    updated.extend(_item_ids(change))
                elif change.tag == _t("Delete"):
                    item_id = change.find(_t("ItemId"))
                    if item_id is not None and item_id.get("Id"):
                        deleted.append(item_id.get("Id"))
            changes = ItemChanges(created=created, updated=updated, deleted=deleted)
        messages.append(
            SyncFolderItemsResponseMessage(
                response_code=_text(msg, _m("ResponseCode")),
                sync_state=_text(msg, _m("SyncState")),
                includes_last_item_in_range=(
                    None if includes_last is None else includes_last.strip().lower() == "true"
                ),
                changes=changes,
                message_text=_text(msg, _m("MessageText")),
            )
        )
    return SyncFolderItemsResponse(messages=messages)


def parse_response(request: Request, body: ET.Element) -> Optional[Response]:
    """Read the typed response for ``request`` out of a SOAP body.

    Returns None when the body has no response element for the operation.
    """
    if isinstance(request, FindFolderRequest):
        element = body.find(_m("FindFolderResponse"))
        return None if element is None else _parse_find_folder(element)
    if isinstance(request, SyncFolderItemsRequest):
        element = body.find(_m("SyncFolderItemsResponse"))
        return None if element is None else _parse_sync_folder_items(element)
    raise TypeError(f"Unsupported request type {type(request).__name__}")
