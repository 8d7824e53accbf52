"""Error taxonomy of the request layer.

Every non-success outcome of a call ends up as exactly one `ApiError` whose
`kind` is one of the `ErrorKind` members. Callers render it with
`user_message()` and `severity()` and never look at the network layer again.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

Severity = Literal["error", "warning", "info"]


class ErrorKind(str, Enum):
    """Stable classification of failed calls."""

    AUTH_EXPIRED = "auth_expired"
    AUTH_INVALID = "auth_invalid"
    AUTH_FORBIDDEN = "auth_forbidden"
    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    SERVER_ERROR = "server_error"
    NETWORK_FAILURE = "network_failure"
    UNKNOWN = "unknown"

    @property
    def is_auth(self) -> bool:
        return self in (ErrorKind.AUTH_EXPIRED, ErrorKind.AUTH_INVALID, ErrorKind.AUTH_FORBIDDEN)


# Server-supplied codes mapped to messages suitable for end users.
ERROR_MESSAGES: dict[str, str] = {
    # Authentication
    "INVALID_TOKEN": "Your session has expired. Please log in again.",
    "TOKEN_EXPIRED": "Your session has expired. Please log in again.",
    "UNAUTHORIZED": "You don't have permission to perform this action.",
    # Validation
    "VALIDATION_ERROR": "Please check your input and try again.",
    "MISSING_REQUIRED_FIELDS": "Please fill in all required fields.",
    "DUPLICATE_ENTRY": "This item already exists. Please use a different value.",
    # Business rules
    "INSUFFICIENT_FUNDS": "Insufficient funds for this transaction.",
    "ACCOUNT_LOCKED": "This account is locked and cannot be modified.",
    "INVALID_STATUS": "This action cannot be performed in the current status.",
    # Transport / server
    "NETWORK_ERROR": "Network connection error. Please check your internet connection.",
    "TIMEOUT_ERROR": "Request timed out. Please try again.",
    "SERVER_ERROR": "Server error. Please try again later.",
}

DEFAULT_MESSAGE = "An unexpected error occurred. Please try again."

_WARNING_CODES = frozenset({"INVALID_TOKEN", "TOKEN_EXPIRED", "UNAUTHORIZED"})
_INFO_CODES = frozenset({"VALIDATION_ERROR", "MISSING_REQUIRED_FIELDS", "DUPLICATE_ENTRY"})


class ApiError(Exception):
    """Terminal failure of a logical call."""

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        code: str | None = None,
        status: int | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self._message = message
        self._kind = kind
        self._code = code
        self._status = status
        self._details = details

    @property
    def message(self) -> str:
        return self._message

    @property
    def kind(self) -> ErrorKind:
        return self._kind

    @property
    def code(self) -> str | None:
        return self._code

    @property
    def status(self) -> int | None:
        return self._status

    @property
    def details(self) -> Any:
        return self._details

    def user_message(self) -> str:
        """Message to show an end user; prefers the table entry for `code`."""

        if self._code and self._code in ERROR_MESSAGES:
            return ERROR_MESSAGES[self._code]
        if self._kind is ErrorKind.SERVER_ERROR:
            return ERROR_MESSAGES["SERVER_ERROR"]
        if self._message:
            return self._message
        return DEFAULT_MESSAGE

    def severity(self) -> Severity:
        """Auth problems are warnings, input problems info, everything else errors."""

        if self._code in _WARNING_CODES or self._kind.is_auth:
            return "warning"
        if self._code in _INFO_CODES or self._kind is ErrorKind.VALIDATION:
            return "info"
        return "error"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self._kind.value,
            "message": self._message,
            "code": self._code,
            "status": self._status,
        }

    def __repr__(self) -> str:
        return (
            f"ApiError(kind={self._kind.value!r}, status={self._status!r}, "
            f"code={self._code!r}, message={self._message!r})"
        )
