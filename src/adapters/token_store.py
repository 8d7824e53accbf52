"""Token stores.

Both implementations keep the pair as one immutable `TokenPair` reference, so
a reader sees either the old pair or the new one, never a mix of halves.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

import structlog
from pydantic import ValidationError

from core.domain.models import TokenPair
from core.interfaces.token_store import TokenStore

logger = structlog.get_logger(__name__)


class MemoryTokenStore(TokenStore):
    """Process-local store; the session ends with the process."""

    def __init__(self, pair: TokenPair | None = None) -> None:
        self._pair = pair

    def get(self) -> TokenPair | None:
        return self._pair

    def set(self, pair: TokenPair) -> None:
        self._pair = pair

    def clear(self) -> None:
        self._pair = None


class FileTokenStore(TokenStore):
    """JSON file store (`{"accessToken": ..., "refreshToken": ...}`).

    The file is loaded once; afterwards the in-memory pair is authoritative
    and every `set`/`clear` is written through. Writes go to a temporary file
    that atomically replaces the target.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._pair = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> TokenPair | None:
        if not self._path.exists():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return TokenPair.model_validate(data)
        except (ValueError, ValidationError):
            logger.warning("token_file_unreadable", path=str(self._path))
            return None

    def get(self) -> TokenPair | None:
        return self._pair

    def set(self, pair: TokenPair) -> None:
        self._write(json.dumps(pair.to_wire(), indent=2) + "\n")
        self._pair = pair

    def clear(self) -> None:
        self._pair = None
        self._path.unlink(missing_ok=True)

    def _write(self, text: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".tokens-", dir=self._path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(text)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self._path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
