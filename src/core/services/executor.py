"""Authenticated call execution.

One logical call walks a small state machine:

    Pending -> Sent -> Succeeded
                    -> ClassifyFailure(AUTH_EXPIRED, attempt 0) -> Refreshing -> Sent(attempt 1)
                    -> ClassifyFailure(any other kind, or attempt 1) -> Failed

Classification is delegated to the pure functions in `error_classifier`; this
module only performs I/O and decides whether the single replay happens.
Network failures are never retried here.
"""

from __future__ import annotations

import re
from typing import Any

import httpx
import structlog

from core.domain.errors import ApiError, ErrorKind
from core.domain.models import Blob, RequestDescriptor, TokenPair
from core.interfaces.token_store import TokenStore
from core.services.auth_gateway import SESSION_EXPIRED_MESSAGE, AuthGateway
from core.services.error_classifier import classify_http_response, classify_transport

logger = structlog.get_logger(__name__)

BINARY_CONTENT_TYPES = (
    "application/octet-stream",
    "application/pdf",
    "application/zip",
)

_FILENAME_RE = re.compile(r'filename\*?=(?:UTF-8\'\')?"?([^";]+)"?', re.IGNORECASE)


def decode_payload(response: httpx.Response) -> Any:
    """Turn a 2xx response into a payload: JSON, `Blob`, or `None` when empty."""

    content_type = response.headers.get("content-type", "")
    media_type = content_type.lower()
    if any(kind in media_type for kind in BINARY_CONTENT_TYPES):
        filename = None
        match = _FILENAME_RE.search(response.headers.get("content-disposition", ""))
        if match:
            filename = match.group(1).strip()
        return Blob(content=response.content, content_type=content_type, filename=filename)

    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as exc:
        raise ApiError(
            "Response body is not valid JSON",
            kind=ErrorKind.UNKNOWN,
            status=response.status_code,
            details=response.text,
        ) from exc


class RequestExecutor:
    """Sends `RequestDescriptor`s, refreshing and replaying at most once."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        store: TokenStore,
        gateway: AuthGateway,
    ) -> None:
        self._client = client
        self._store = store
        self._gateway = gateway

    async def call(self, descriptor: RequestDescriptor) -> Any:
        """Execute one logical call.

        Raises:
            ApiError: on any unrecoverable outcome.
        """

        pair = self._current_pair(descriptor)
        try:
            return await self._attempt(descriptor, pair, attempt=0)
        except ApiError as error:
            if error.kind is not ErrorKind.AUTH_EXPIRED or not descriptor.requires_auth:
                raise

        await self._renew(pair)
        return await self._attempt(descriptor, self._current_pair(descriptor), attempt=1)

    async def _attempt(self, descriptor: RequestDescriptor, pair: TokenPair | None, *, attempt: int) -> Any:
        response = await self._send(descriptor, pair)
        if response.is_success:
            logger.debug(
                "request_succeeded",
                request=descriptor.label(),
                status=response.status_code,
                attempt=attempt,
            )
            return decode_payload(response)

        error = classify_http_response(response)
        logger.debug(
            "request_failed",
            request=descriptor.label(),
            status=response.status_code,
            code=error.code,
            kind=error.kind.value,
            attempt=attempt,
        )
        raise error

    def _current_pair(self, descriptor: RequestDescriptor) -> TokenPair | None:
        if not descriptor.requires_auth:
            return None
        pair = self._store.get()
        if pair is None:
            raise ApiError(SESSION_EXPIRED_MESSAGE, kind=ErrorKind.AUTH_INVALID, code="INVALID_TOKEN")
        return pair

    async def _renew(self, used: TokenPair | None) -> None:
        """Get a fresh pair before the replay.

        When another call already rotated the pair while this one was in
        flight, the stored pair is adopted without a second exchange.
        """

        current = self._store.get()
        if current is None and not self._gateway.refreshing:
            # An earlier exchange was rejected and ended the session.
            raise ApiError(SESSION_EXPIRED_MESSAGE, kind=ErrorKind.AUTH_INVALID, code="INVALID_TOKEN")
        if used is not None and current is not None and current.access_token != used.access_token:
            logger.debug("refresh_skipped_already_rotated")
            return
        await self._gateway.refresh()

    async def _send(self, descriptor: RequestDescriptor, pair: TokenPair | None) -> httpx.Response:
        headers: dict[str, str] = {}
        if pair is not None:
            headers["Authorization"] = f"Bearer {pair.access_token}"

        kwargs: dict[str, Any] = {"headers": headers}
        if descriptor.body is not None:
            kwargs["json"] = descriptor.body
        if descriptor.params:
            kwargs["params"] = descriptor.params

        try:
            return await self._client.request(descriptor.method.upper(), descriptor.path, **kwargs)
        except httpx.TransportError as exc:
            logger.warning("request_unreachable", request=descriptor.label(), error=str(exc))
            raise classify_transport(exc) from exc
