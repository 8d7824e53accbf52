"""Shared pytest fixtures for ledgerlink tests."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from adapters.api_client import ApiClient
from adapters.token_store import MemoryTokenStore
from core.config import AppSettings
from core.domain.models import TokenPair
from core.services.auth_gateway import SessionHooks

BASE_URL = "http://backend.test/api"

Handler = Callable[[httpx.Request], httpx.Response]


class FakeBackend:
    """In-memory REST backend served through `httpx.MockTransport`.

    Protected routes answer 401 `TOKEN_EXPIRED` unless the request carries the
    current access token. Each successful refresh rotates both tokens.
    """

    def __init__(self) -> None:
        self.access_token = "access-1"
        self.refresh_token = "refresh-1"
        self.generation = 1
        self.refresh_calls = 0
        self.refresh_delay = 0.0
        self.reject_refresh = False
        self.always_expired = False
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], Handler] = {}
        self.public_routes: dict[tuple[str, str], Handler] = {}

    def route(self, method: str, path: str, handler: Handler, *, public: bool = False) -> None:
        table = self.public_routes if public else self.routes
        table[(method.upper(), "/api" + path)] = handler

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == "/api" + path]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)

        if key == ("POST", "/api/auth/refresh"):
            return await self._refresh(request)
        if key in self.public_routes:
            return self.public_routes[key](request)

        handler = self.routes.get(key)
        if handler is None:
            return httpx.Response(404, json={"success": False, "message": "Route not found", "code": "NOT_FOUND"})
        if self.always_expired or request.headers.get("authorization") != f"Bearer {self.access_token}":
            return httpx.Response(401, json={"success": False, "message": "Token expired", "code": "TOKEN_EXPIRED"})
        return handler(request)

    async def _refresh(self, request: httpx.Request) -> httpx.Response:
        self.refresh_calls += 1
        if self.refresh_delay:
            await asyncio.sleep(self.refresh_delay)
        body = json.loads(request.content or b"{}")
        if self.reject_refresh or body.get("refreshToken") != self.refresh_token:
            return httpx.Response(
                401,
                json={"success": False, "message": "Invalid refresh token", "code": "INVALID_TOKEN"},
            )
        self.generation += 1
        self.access_token = f"access-{self.generation}"
        self.refresh_token = f"refresh-{self.generation}"
        return httpx.Response(
            200,
            json={
                "success": True,
                "data": {"accessToken": self.access_token, "refreshToken": self.refresh_token},
            },
        )


def json_route(payload: Any, status: int = 200) -> Handler:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json=payload)

    return handler


@pytest.fixture
def settings(tmp_path: Path) -> AppSettings:
    """Settings isolated from any .env on the machine."""
    return AppSettings(
        _env_file=None,
        api_base_url=BASE_URL,
        http_timeout_seconds=5.0,
        token_file=tmp_path / "tokens.json",
    )


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def stale_pair() -> TokenPair:
    """A pair whose access token the backend no longer accepts."""
    return TokenPair(access_token="access-0", refresh_token="refresh-1")


@pytest.fixture
def store(stale_pair: TokenPair) -> MemoryTokenStore:
    return MemoryTokenStore(stale_pair)


@pytest.fixture
def logouts() -> list[int]:
    return []


@pytest.fixture
def make_client(
    settings: AppSettings,
    backend: FakeBackend,
    store: MemoryTokenStore,
    logouts: list[int],
) -> Callable[[], ApiClient]:
    """Factory: call inside the event loop to get a client on the fake backend."""

    def factory() -> ApiClient:
        hooks = SessionHooks(logged_out=lambda: logouts.append(1))
        return ApiClient(store, settings, hooks=hooks, transport=backend.transport())

    return factory
