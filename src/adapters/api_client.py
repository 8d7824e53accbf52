"""Backend client: composition root of the request layer.

Wires one `httpx.AsyncClient`, a token store, the `AuthGateway` and the
`RequestExecutor` together and exposes the verb helpers screens use.
"""

from __future__ import annotations

from typing import Any

import httpx

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.models import HierarchyNode, RequestDescriptor
from core.interfaces.token_store import TokenStore
from core.services.auth_gateway import AuthGateway, SessionHooks
from core.services.executor import RequestExecutor
from core.services.hierarchy import build_hierarchy


class ApiClient:
    """Authenticated access to the REST backend.

    Use as an async context manager so the HTTP connection pool is closed::

        async with ApiClient(store, settings) as api:
            accounts = await api.get("/chart-of-accounts")
    """

    def __init__(
        self,
        store: TokenStore,
        settings: AppSettings | None = None,
        *,
        hooks: SessionHooks | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._store = store
        self._client = build_async_client(self._settings, transport=transport)
        self.gateway = AuthGateway(self._client, store, self._settings, hooks=hooks)
        self.executor = RequestExecutor(self._client, store, self.gateway)

    @property
    def store(self) -> TokenStore:
        return self._store

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def call(self, descriptor: RequestDescriptor) -> Any:
        return await self.executor.call(descriptor)

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        *,
        params: dict[str, str] | None = None,
        requires_auth: bool = True,
    ) -> Any:
        return await self.executor.call(
            RequestDescriptor(
                method=method,
                path=path,
                body=body,
                params=params,
                requires_auth=requires_auth,
            )
        )

    async def get(self, path: str, *, params: dict[str, str] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, body: Any = None) -> Any:
        return await self.request("POST", path, body)

    async def put(self, path: str, body: Any = None) -> Any:
        return await self.request("PUT", path, body)

    async def patch(self, path: str, body: Any = None) -> Any:
        return await self.request("PATCH", path, body)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def login(self, email: str, password: str) -> dict[str, Any]:
        return await self.gateway.login(email, password)

    async def logout(self) -> None:
        await self.gateway.logout()

    async def fetch_tree(self, path: str, *, params: dict[str, str] | None = None) -> list[HierarchyNode[Any]]:
        """GET a hierarchical list and return it as a forest."""

        payload = await self.get(path, params=params)
        return build_hierarchy(unwrap_list(payload))


def unwrap_list(payload: Any) -> list[Any]:
    """List endpoints answer `{"success": true, "data": [...]}` or a bare list."""

    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        data = payload.get("data")
        if isinstance(data, list):
            return data
        if isinstance(data, dict):
            for key in ("items", "accounts", "categories", "results"):
                if isinstance(data.get(key), list):
                    return data[key]
    return []
