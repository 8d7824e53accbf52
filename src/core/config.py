"""Core configuration.

Why here:
- Centralizes environment variables (pydantic-settings) away from the CLI.
- Lets adapters (HTTP, token storage) read configuration consistently.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_user_config_dir() -> Path:
    """Per-user configuration directory (cross-platform, no dependencies).

    Lets a packaged build run without editing a `.env` inside the project.
    """

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "ledgerlink"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "ledgerlink"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "ledgerlink"
    return Path.home() / ".config" / "ledgerlink"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def get_default_token_file() -> Path:
    return get_user_config_dir() / "tokens.json"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str], env_path: Path | None = None) -> Path:
    """Write or update variables in the user's global .env."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# ledgerlink user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Central application settings.

    Why pydantic-settings:
    - Typed, validated configuration at the edge (env vars) with no logic in
      the core.
    - A single configuration contract for the CLI and the adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGERLINK_",
        extra="ignore",
        case_sensitive=False,
        # Project first (dev), then the user's global config.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    api_base_url: str = Field(
        default="http://localhost:3001/api",
        min_length=8,
        description="Base URL of the REST backend, including the /api prefix.",
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Per-request timeout (seconds); expiry surfaces as a network failure.",
    )
    user_agent: str = Field(
        default="ledgerlink/0.1",
        min_length=1,
        description="User-Agent sent with every request.",
    )

    refresh_path: str = Field(
        default="/auth/refresh",
        min_length=1,
        description="Endpoint exchanging a refresh token for a new token pair.",
    )
    login_path: str = Field(
        default="/auth/login",
        min_length=1,
        description="Endpoint exchanging credentials for a token pair.",
    )
    logout_path: str = Field(
        default="/auth/logout",
        min_length=1,
        description="Endpoint revoking the current refresh token.",
    )

    token_file: Path = Field(
        default_factory=get_default_token_file,
        description="JSON file holding the persisted access/refresh pair.",
    )

    verbose: bool = Field(
        default=False,
        description="Enable DEBUG logging for ledgerlink modules.",
    )
    log_json: bool = Field(
        default=False,
        description="Emit logs as JSON lines instead of console output.",
    )
