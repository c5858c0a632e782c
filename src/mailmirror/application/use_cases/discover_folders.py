"""Discover every folder below a root of a user's mailbox."""

from __future__ import annotations

from loguru import logger

from mailmirror.application.ports.transport import (
    NO_ERROR,
    SHAPE_ID_ONLY,
    TRAVERSAL_DEEP,
    FindFolderRequest,
    FindFolderResponse,
    Transport,
)
from mailmirror.domain.errors import ProtocolError


class FolderDiscovery:
    """Walks the folder hierarchy under a root with one deep find-folders call.

    The result is a set: the server may list folders in any order, and a
    folder reached twice is still one folder.
    """

    def __init__(self, transport: Transport) -> None:
        self.transport = transport

    @staticmethod
    def build_request(root: str) -> FindFolderRequest:
        return FindFolderRequest(
            parent_folder_id=root,
            traversal=TRAVERSAL_DEEP,
            base_shape=SHAPE_ID_ONLY,
        )

    def discover(self, root: str, user: str) -> set[str]:
        """Return the ids of all folders below ``root`` for ``user``.

        Raises:
            ProtocolError: the response is missing or a message reports an error code
            TransportError: the request could not be delivered
            EmptyResponseError: the server answered with an empty body
        """
        request = self.build_request(root)
        response = self.transport.send(request, user)

        if response is None:
            logger.error(f"Null find folder response for {user} under {root}")
            raise ProtocolError("Exchange service returned null find folder response.")
        if not isinstance(response, FindFolderResponse):
            raise ProtocolError(f"Unexpected response type {type(response).__name__} for find folder.")

        folders: set[str] = set()
        for message in response.messages:
            code = message.response_code
            if code is not None and code != NO_ERROR:
                logger.debug(f"Find folder for {user} under {root} failed: {code} {message.message_text or ''}")
                raise ProtocolError("SOAP response contained an error.", response_code=code)

            if message.folder_ids:
                folders.update(fid for fid in message.folder_ids if fid)

        logger.info(f"Discovered {len(folders)} folders for {user} under {root}")
        return folders


def discover_folders(transport: Transport, root: str, user: str) -> set[str]:
    """Convenience wrapper around :class:`FolderDiscovery`."""
    return FolderDiscovery(transport).discover(root, user)
