"""Exchange Web Services transport over HTTP."""

from __future__ import annotations

import codecs
from typing import Optional

import httpx
from loguru import logger

from mailmirror.application.ports.transport import Request, Response, Transport
from mailmirror.domain.errors import EmptyResponseError, TransportError
from mailmirror.infrastructure.ews.soap import build_envelope, parse_body, parse_response

DEFAULT_CHARSET = "utf-8"


def response_charset(content_type: Optional[str]) -> str:
    """Charset named in a Content-Type header, or UTF-8 if missing or unknown."""
    if not content_type:
        logger.debug(f"No Content-Type on response, falling back to {DEFAULT_CHARSET}")
        return DEFAULT_CHARSET

    for part in content_type.replace(" ", "").split(";"):
        if part.lower().startswith("charset="):
            charset = part.split("=", 1)[1].strip().strip('"')
            try:
                info = codecs.lookup(charset)
            except LookupError:
                info = None
            # Byte-to-byte codecs such as base64 cannot decode a body to text
            if info is None or not info._is_text_encoding:
                logger.debug(f"Charset {charset!r} from Content-Type {content_type!r} is not supported")
                return DEFAULT_CHARSET
            return charset

    logger.debug(f"Could not find charset in Content-Type {content_type!r}, falling back to {DEFAULT_CHARSET}")
    return DEFAULT_CHARSET


class EwsTransport(Transport):
    """Sends FindFolder and SyncFolderItems requests to an EWS endpoint.

    Every request carries an ExchangeImpersonation header for the target user,
    so the configured account needs impersonation rights on the mailboxes.
    """

    def __init__(
        self,
        url: str,
        username: str | None = None,
        password: str | None = None,
        timeout: float = 60.0,
        verify: bool = True,
        client: httpx.Client | None = None,
    ):
        self.url = url
        auth = (username, password) if username and password is not None else None
        self._client = client or httpx.Client(auth=auth, timeout=timeout, verify=verify)
        self._owns_client = client is None

    @classmethod
    def from_settings(cls, settings) -> EwsTransport:
        password = settings.ews_password.get_secret_value() if settings.ews_password else None
        return cls(
            url=settings.ews_url,
            username=settings.ews_username,
            password=password,
            timeout=settings.ews_timeout_seconds,
            verify=settings.ews_verify_tls,
        )

    def send(self, request: Request, impersonated_user: str) -> Optional[Response]:
        envelope = build_envelope(request, impersonated_user)
        logger.opt(lazy=True).trace("Sending SOAP request to {}: {}", lambda: self.url, lambda: envelope.decode("utf-8"))

        response = self._post(envelope)
        charset = response_charset(response.headers.get("content-type"))

        if response.status_code != 200:
            logger.error(f"Server responded with HTTP error code {response.status_code}.")
            logger.opt(lazy=True).debug("Request that generated the error: {}", lambda: envelope.decode("utf-8"))
            if response.content:
                logger.opt(lazy=True).debug(
                    "Error response body: {}", lambda: response.content.decode(charset, errors="replace")
                )
            raise TransportError("Exchange returned an HTTP error.", status_code=response.status_code)

        if not response.content:
            logger.error("HTTP response was successful, but has no data.")
            logger.opt(lazy=True).debug(
                "Request that generated the empty response: {}", lambda: envelope.decode("utf-8")
            )
            raise EmptyResponseError("Response has empty body.")

        logger.opt(lazy=True).trace(
            "SOAP response received from {}: {}",
            lambda: self.url,
            lambda: response.content.decode(charset, errors="replace"),
        )
        body = parse_body(response.content)
        return parse_response(request, body)

    def _post(self, envelope: bytes) -> httpx.Response:
        try:
            return self._client.post(
                self.url,
                content=envelope,
                headers={"Content-Type": "text/xml; charset=utf-8"},
            )
        except httpx.TimeoutException as e:
            logger.error(f"Timed out talking to {self.url}")
            raise TransportError(f"Request to Exchange timed out: {e}") from e
        except httpx.HTTPError as e:
            logger.error(f"Error talking to {self.url}: {e}")
            raise TransportError(f"Error sending request to Exchange: {e}") from e

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> EwsTransport:
        return self

    def __exit__(self, *exc) -> None:
        self.close()
