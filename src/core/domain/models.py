"""Domain models.

Why Pydantic in the domain:
- Strict validation and self-documenting fields (Field) without coupling the
  core to I/O libraries.
- Wire aliases (`accessToken`) live next to the Python names, so adapters
  never rename keys by hand.

Note:
- These models describe *what* travels through the request layer, not *how*
  it is sent.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

T = TypeVar("T")


class TokenPair(BaseModel):
    """Access/refresh credential pair.

    Immutable: a refresh or login replaces the whole pair, a logout clears it.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    access_token: str = Field(
        ...,
        min_length=1,
        alias="accessToken",
        description="Short-lived bearer token sent on ordinary calls.",
    )
    refresh_token: str = Field(
        ...,
        min_length=1,
        alias="refreshToken",
        description="Longer-lived credential used only to obtain a new pair.",
    )

    def to_wire(self) -> dict[str, str]:
        return self.model_dump(by_alias=True)


class RequestDescriptor(BaseModel):
    """One logical call, kept whole so it can be replayed after a refresh."""

    model_config = ConfigDict(frozen=True)

    method: str = Field(
        ...,
        min_length=1,
        description="HTTP method (GET, POST, PUT, PATCH, DELETE).",
    )
    path: str = Field(
        ...,
        min_length=1,
        description="Path relative to the API base URL, e.g. '/chart-of-accounts'.",
    )
    body: Any = Field(
        default=None,
        description="JSON-serializable request body, if any.",
    )
    params: dict[str, str] | None = Field(
        default=None,
        description="Query-string parameters.",
    )
    requires_auth: bool = Field(
        default=True,
        description="Attach the current access token as a bearer credential.",
    )

    def label(self) -> str:
        return f"{self.method.upper()} {self.path}"


class Blob(BaseModel):
    """Opaque binary payload (file downloads, exports)."""

    model_config = ConfigDict(frozen=True)

    content: bytes = Field(..., description="Raw response body.")
    content_type: str = Field(..., description="Content-Type reported by the server.")
    filename: str | None = Field(
        default=None,
        description="Filename from Content-Disposition, when present.",
    )


@dataclass(frozen=True)
class HierarchyNode(Generic[T]):
    """A source entity placed in a forest.

    Attributes:
        entity: The untouched source entity.
        id: The entity's identifier.
        parent_id: Id of the node this one hangs under; `None` for roots,
            including entities whose parent was missing, unknown or cyclic.
        children: Child nodes, in input order.
        depth: 0 for roots, parent depth + 1 otherwise.
    """

    entity: T
    id: str
    parent_id: str | None
    children: tuple["HierarchyNode[T]", ...]
    depth: int

    @property
    def is_leaf(self) -> bool:
        return not self.children
