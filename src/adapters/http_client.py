"""httpx wrapper.

Why a wrapper:
- Standardizes base URL, timeouts and headers for every backend call.
- Makes testing easy: a `transport` (e.g. `httpx.MockTransport`) can be
  injected in place of the network.
"""

from __future__ import annotations

import httpx

from core.config import AppSettings


def build_async_client(
    settings: AppSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an `httpx.AsyncClient` pointed at the backend.

    Why a builder:
    - Centralizes timeouts/headers so every caller behaves the same.
    - The transport timeout is the only bound on call duration; when it
      fires the call surfaces as a network failure.
    - No Authorization header here: the executor attaches the current token
      per request.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        base_url=settings.api_base_url.rstrip("/"),
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )
