"""Exchange Web Services transport."""

from mailmirror.infrastructure.ews.transport import EwsTransport, response_charset

__all__ = [
    "EwsTransport",
    "response_charset",
]
