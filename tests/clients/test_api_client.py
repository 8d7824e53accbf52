"""Tests for the API client composition, endpoints and forest export."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import httpx
import pytest

from adapters.api_client import unwrap_list
from adapters.endpoints import HIERARCHICAL_LISTS, replace_url_params
from adapters.http_client import build_async_client
from adapters.json_exporter import export_forest_json
from core.domain.models import TokenPair
from core.services.hierarchy import build_hierarchy

ACCOUNTS = [
    {"id": "a1", "code": "1000", "name": "Assets", "parentId": None},
    {"id": "a2", "code": "1100", "name": "Cash", "parentId": "a1"},
    {"id": "a3", "code": "2000", "name": "Liabilities"},
]


class TestFetchTree:
    def test_accounts_forest_after_refresh(self, make_client, backend, store) -> None:
        backend.route(
            "GET",
            "/chart-of-accounts",
            lambda r: httpx.Response(200, json={"success": True, "data": ACCOUNTS}),
        )

        async def main() -> Any:
            async with make_client() as api:
                return await api.fetch_tree("/chart-of-accounts")

        forest = asyncio.run(main())

        assert [n.id for n in forest] == ["a1", "a3"]
        assert forest[0].children[0].entity["name"] == "Cash"
        assert store.get() == TokenPair(access_token="access-2", refresh_token="refresh-2")


class TestUnwrapList:
    @pytest.mark.parametrize(
        ("payload", "expected"),
        [
            ([1, 2], [1, 2]),
            ({"success": True, "data": [1]}, [1]),
            ({"data": {"categories": [3]}}, [3]),
            ({"data": {"total": 0}}, []),
            (None, []),
            ("text", []),
        ],
    )
    def test_shapes(self, payload: Any, expected: list[Any]) -> None:
        assert unwrap_list(payload) == expected


class TestEndpoints:
    def test_replace_url_params(self) -> None:
        assert replace_url_params("/item-categories/:id/move", {"id": "c 7"}) == "/item-categories/c%207/move"

    def test_unknown_params_ignored(self) -> None:
        assert replace_url_params("/users/:id", {"other": "x"}) == "/users/:id"

    def test_tree_aliases(self) -> None:
        assert HIERARCHICAL_LISTS == {"accounts": "/chart-of-accounts", "categories": "/item-categories"}


class TestHttpClient:
    def test_defaults(self, settings) -> None:
        async def main() -> httpx.AsyncClient:
            async with build_async_client(settings) as client:
                return client

        client = asyncio.run(main())
        assert str(client.base_url) == "http://backend.test/api/"
        assert client.timeout.read == 5.0
        assert "authorization" not in client.headers
        assert client.headers["accept"] == "application/json"


class TestExportForestJson:
    def test_writes_nested_structure(self, tmp_path: Path) -> None:
        forest = build_hierarchy(ACCOUNTS)
        out = export_forest_json(forest=forest, output_path=tmp_path / "out" / "accounts.json")

        data = json.loads(out.read_text(encoding="utf-8"))
        assert [n["id"] for n in data] == ["a1", "a3"]
        child = data[0]["children"][0]
        assert child["depth"] == 1
        assert child["parentId"] == "a1"
        assert child["entity"]["code"] == "1100"
