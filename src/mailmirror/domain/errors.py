"""Error taxonomy for the synchronization engine.

Components below the orchestrator raise these; the orchestrator records them on
its report so callers branch on ``error.kind`` rather than catching.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Why a sync step stopped."""

    TRANSPORT = "transport"
    PROTOCOL = "protocol"
    EMPTY_RESPONSE = "empty_response"
    CANCELLED = "cancelled"
    UNEXPECTED = "unexpected"


class SyncError(Exception):
    """Base class for every failure the sync engine reports."""

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class TransportError(SyncError):
    """The request could not be delivered, or the server answered non-200."""

    kind = ErrorKind.TRANSPORT

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"HTTP {self.status_code}: {self.message}"


class ProtocolError(SyncError):
    """The response was malformed or a response message reported an error code."""

    kind = ErrorKind.PROTOCOL

    def __init__(self, message: str, response_code: str | None = None) -> None:
        super().__init__(message)
        self.response_code = response_code

    def __str__(self) -> str:
        if self.response_code is None:
            return self.message
        return f"{self.response_code}: {self.message}"


class EmptyResponseError(SyncError):
    """The server reported success but sent nothing back."""

    kind = ErrorKind.EMPTY_RESPONSE


class CancelledError(SyncError):
    """The run was cancelled before the folder finished paging."""

    kind = ErrorKind.CANCELLED


class UnexpectedError(SyncError):
    """Anything else that stopped a user's run, such as a store failure."""

    kind = ErrorKind.UNEXPECTED

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause
