"""Tests for the token stores."""

from __future__ import annotations

import json
import stat
import sys
from pathlib import Path

import pytest

from adapters.token_store import FileTokenStore, MemoryTokenStore
from core.domain.models import TokenPair
from core.interfaces.token_store import TokenStore

PAIR = TokenPair(access_token="a1", refresh_token="r1")


class TestMemoryTokenStore:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(MemoryTokenStore(), TokenStore)

    def test_set_get_clear(self) -> None:
        store = MemoryTokenStore()
        assert store.get() is None
        store.set(PAIR)
        assert store.get() is PAIR
        store.clear()
        assert store.get() is None

    def test_set_replaces_whole_pair(self) -> None:
        store = MemoryTokenStore(PAIR)
        before = store.get()
        store.set(TokenPair(access_token="a2", refresh_token="r2"))
        assert before == PAIR
        assert store.get() == TokenPair(access_token="a2", refresh_token="r2")


class TestFileTokenStore:
    def test_satisfies_protocol(self, tmp_path: Path) -> None:
        assert isinstance(FileTokenStore(tmp_path / "tokens.json"), TokenStore)

    def test_persists_wire_format(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "tokens.json"
        FileTokenStore(path).set(PAIR)

        assert json.loads(path.read_text(encoding="utf-8")) == {"accessToken": "a1", "refreshToken": "r1"}
        assert FileTokenStore(path).get() == PAIR

    @pytest.mark.skipif(sys.platform.startswith("win"), reason="POSIX permissions")
    def test_file_is_private(self, tmp_path: Path) -> None:
        path = tmp_path / "tokens.json"
        FileTokenStore(path).set(PAIR)
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_clear_removes_file(self, tmp_path: Path) -> None:
        path = tmp_path / "tokens.json"
        store = FileTokenStore(path)
        store.set(PAIR)
        store.clear()
        assert store.get() is None
        assert not path.exists()
        store.clear()

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        store = FileTokenStore(tmp_path / "tokens.json")
        store.set(PAIR)
        store.set(TokenPair(access_token="a2", refresh_token="r2"))
        assert [p.name for p in tmp_path.iterdir()] == ["tokens.json"]

    @pytest.mark.parametrize("content", ["not json", '{"accessToken": "a"}', "[]"])
    def test_unreadable_file_means_logged_out(self, tmp_path: Path, content: str) -> None:
        path = tmp_path / "tokens.json"
        path.write_text(content, encoding="utf-8")
        assert FileTokenStore(path).get() is None
