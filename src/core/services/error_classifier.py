"""Failure classification.

Pure functions: a status code plus the server's error code go in, one
`ApiError` comes out. The executor decides on retries by looking only at the
resulting `ErrorKind`.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from core.domain.errors import ApiError, ErrorKind

# 401 codes meaning "the access token is stale, a refresh may fix it".
REFRESHABLE_CODES = frozenset({"TOKEN_EXPIRED", "INVALID_TOKEN"})


def error_kind(status: int, code: str | None = None) -> ErrorKind:
    if status == 401:
        if code in REFRESHABLE_CODES:
            return ErrorKind.AUTH_EXPIRED
        return ErrorKind.AUTH_INVALID
    if status == 403:
        return ErrorKind.AUTH_FORBIDDEN
    if status in (400, 422):
        return ErrorKind.VALIDATION
    if status == 404:
        return ErrorKind.NOT_FOUND
    if status == 409:
        return ErrorKind.CONFLICT
    if 500 <= status <= 599:
        return ErrorKind.SERVER_ERROR
    return ErrorKind.UNKNOWN


def classify_response(
    status: int,
    code: str | None = None,
    message: str | None = None,
    details: Any = None,
) -> ApiError:
    return ApiError(
        message or f"HTTP {status}",
        kind=error_kind(status, code),
        code=code,
        status=status,
        details=details,
    )


def classify_transport(exc: Exception) -> ApiError:
    """A call that never got a response (DNS, refused connection, timeout)."""

    code = "TIMEOUT_ERROR" if isinstance(exc, httpx.TimeoutException) else "NETWORK_ERROR"
    message = str(exc) or type(exc).__name__
    return ApiError(
        message,
        kind=ErrorKind.NETWORK_FAILURE,
        code=code,
        status=None,
        details={"exception": type(exc).__name__},
    )


def extract_error_fields(response: httpx.Response) -> tuple[str | None, str | None, Any]:
    """Read `message` and `code` out of an error body.

    Returns `(message, code, details)`; `details` is the decoded body when it
    is JSON, otherwise the raw text (or `None` when empty).
    """

    text = response.text
    if not text:
        return None, None, None
    try:
        data = json.loads(text)
    except ValueError:
        return None, None, text

    if not isinstance(data, dict):
        return None, None, data

    message = data.get("message")
    code = data.get("code")
    return (
        message if isinstance(message, str) and message else None,
        code if isinstance(code, str) and code else None,
        data,
    )


def classify_http_response(response: httpx.Response) -> ApiError:
    message, code, details = extract_error_fields(response)
    return classify_response(response.status_code, code, message, details)
