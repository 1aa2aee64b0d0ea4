from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict


class LeafNode(BaseModel):
    """Leaf object of a sampled tree as the store returns it."""

    model_config = ConfigDict(extra="allow")

    data: Any | None = None
    hash: str | None = None


@dataclass
class StoreHealth:
    backend: str
    healthy: bool
    detail: str
    raw: dict[str, Any] | None = None


class LeafStore(Protocol):
    backend_name: str

    async def health(self) -> StoreHealth:
        ...

    async def get_leaf(self, path: str) -> LeafNode:
        ...

    async def aclose(self) -> None:
        ...
