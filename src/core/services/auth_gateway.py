"""Session credential exchanges (refresh, login, logout).

The refresh exchange is single-flight: while one round trip to the refresh
endpoint is pending, every other caller awaits that same round trip. Several
calls failing together after a long idle period therefore spend the refresh
token exactly once.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Callable

import httpx
import structlog
from pydantic import ValidationError

from core.config import AppSettings
from core.domain.errors import ApiError, ErrorKind
from core.domain.models import TokenPair
from core.interfaces.token_store import TokenStore
from core.services.error_classifier import (
    classify_http_response,
    classify_transport,
    extract_error_fields,
)

logger = structlog.get_logger(__name__)

SESSION_EXPIRED_MESSAGE = "Your session has expired. Please log in again."


@dataclass
class SessionHooks:
    """Optional callbacks for the surrounding session (UI layers)."""

    logged_out: Callable[[], None] | None = None


def _unwrap(body: Any) -> Any:
    """Backend envelopes look like `{"success": true, "data": {...}}`."""

    if isinstance(body, dict) and isinstance(body.get("data"), dict):
        return body["data"]
    return body


def parse_token_pair(response: httpx.Response) -> TokenPair | None:
    try:
        payload = _unwrap(response.json())
        return TokenPair.model_validate(payload)
    except (ValueError, ValidationError):
        return None


class AuthGateway:
    """Performs credential exchanges against the backend and keeps the store current."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        store: TokenStore,
        settings: AppSettings | None = None,
        *,
        hooks: SessionHooks | None = None,
    ) -> None:
        self._client = client
        self._store = store
        self._settings = settings or AppSettings()
        self._hooks = hooks or SessionHooks()
        self._inflight: asyncio.Task[TokenPair] | None = None

    @property
    def refreshing(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    async def refresh(self) -> TokenPair:
        """Exchange the stored refresh token for a new pair.

        Raises:
            ApiError: `AUTH_INVALID` when the backend rejects the refresh token,
                `NETWORK_FAILURE` when the endpoint could not be reached. The
                store is cleared first in both cases.
        """

        task = self._inflight
        if task is None or task.done():
            task = asyncio.ensure_future(self._exchange())
            self._inflight = task
            task.add_done_callback(self._release)
            logger.debug("refresh_started")
        else:
            logger.debug("refresh_joined")
        return await asyncio.shield(task)

    def _release(self, task: asyncio.Task[TokenPair]) -> None:
        if self._inflight is task:
            self._inflight = None
        # Every waiter re-raises through shield(); mark it retrieved here too.
        if not task.cancelled():
            task.exception()

    async def _exchange(self) -> TokenPair:
        current = self._store.get()
        if current is None:
            self._end_session("no_refresh_token")
            raise ApiError(SESSION_EXPIRED_MESSAGE, kind=ErrorKind.AUTH_INVALID, code="INVALID_TOKEN")

        try:
            response = await self._client.post(
                self._settings.refresh_path,
                json={"refreshToken": current.refresh_token},
            )
        except httpx.TransportError as exc:
            self._end_session("refresh_unreachable", error=str(exc))
            raise classify_transport(exc) from exc

        if not response.is_success:
            message, code, details = extract_error_fields(response)
            self._end_session("refresh_rejected", status=response.status_code, code=code)
            raise ApiError(
                message or SESSION_EXPIRED_MESSAGE,
                kind=ErrorKind.AUTH_INVALID,
                code=code,
                status=response.status_code,
                details=details,
            )

        pair = parse_token_pair(response)
        if pair is None:
            self._end_session("refresh_malformed", status=response.status_code)
            raise ApiError(
                "Malformed refresh response",
                kind=ErrorKind.AUTH_INVALID,
                status=response.status_code,
            )

        self._store.set(pair)
        logger.info("refresh_succeeded")
        return pair

    def _end_session(self, reason: str, **fields: Any) -> None:
        logger.warning("session_ended", reason=reason, **fields)
        self._drop_credentials()

    def _drop_credentials(self) -> None:
        self._store.clear()
        if self._hooks.logged_out is not None:
            self._hooks.logged_out()

    async def login(self, email: str, password: str) -> dict[str, Any]:
        """Exchange credentials for a token pair; returns the user profile."""

        try:
            response = await self._client.post(
                self._settings.login_path,
                json={"email": email, "password": password},
            )
        except httpx.TransportError as exc:
            raise classify_transport(exc) from exc

        if not response.is_success:
            raise classify_http_response(response)

        pair = parse_token_pair(response)
        if pair is None:
            raise ApiError("Invalid response format", kind=ErrorKind.UNKNOWN, status=response.status_code)

        self._store.set(pair)
        user = _unwrap(response.json()).get("user")
        logger.info("login_succeeded")
        return user if isinstance(user, dict) else {}

    async def logout(self) -> None:
        """Clear local credentials, then tell the backend (best effort)."""

        pair = self._store.get()
        self._drop_credentials()
        logger.info("logged_out")
        if pair is None:
            return

        try:
            response = await self._client.post(
                self._settings.logout_path,
                json={"refreshToken": pair.refresh_token},
                headers={"Authorization": f"Bearer {pair.access_token}"},
            )
        except httpx.TransportError as exc:
            logger.warning("logout_unreachable", error=str(exc))
            return
        if not response.is_success:
            logger.warning("logout_rejected", status=response.status_code)
