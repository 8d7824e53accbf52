"""Token storage contract.

Why Protocol:
- Defines a structural contract (duck typing) without rigid inheritance.
- The gateway and executor depend on this seam only; in-memory and
  file-backed stores (or a keyring, later) are interchangeable in tests.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import TokenPair


@runtime_checkable
class TokenStore(Protocol):
    """Minimal contract for holding the current token pair.

    Design rules:
    - Synchronous: no network or UI side effects.
    - `get` returns a whole pair or `None`, never a half-updated one.
    """

    def get(self) -> TokenPair | None:
        """Return the current pair, or `None` when logged out."""

        ...

    def set(self, pair: TokenPair) -> None:
        """Replace the stored pair wholesale."""

        ...

    def clear(self) -> None:
        """Forget the stored pair."""

        ...
