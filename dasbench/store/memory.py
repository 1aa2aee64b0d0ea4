from __future__ import annotations

import asyncio
from dataclasses import dataclass
from hashlib import sha256
from typing import Iterable

from dasbench.core.errors import StoreError
from dasbench.sampling.paths import index_from_path, tree_depth
from dasbench.store.base import LeafNode, StoreHealth


def hash_leaf(payload: bytes) -> str:
    return sha256(b"\x00" + payload).hexdigest()


def hash_pair(left_hex: str, right_hex: str) -> str:
    return sha256(b"\x01" + bytes.fromhex(left_hex) + bytes.fromhex(right_hex)).hexdigest()


def merkle_root(leaf_hashes: list[str]) -> str:
    tree_depth(len(leaf_hashes))
    current = leaf_hashes[:]
    while len(current) > 1:
        current = [hash_pair(current[i], current[i + 1]) for i in range(0, len(current), 2)]
    return current[0]


@dataclass
class _Tree:
    leaves: list[LeafNode]

    @property
    def leaf_count(self) -> int:
        return len(self.leaves)


@dataclass
class _Fault:
    kind: str  # "error" | "hang"
    remaining: int


class InMemoryLeafStore:
    """Serves leaves of locally built trees; faults and latency can be injected per root."""

    backend_name = "memory"

    def __init__(self, latency_seconds: float = 0.0):
        self.latency_seconds = latency_seconds
        self.trees: dict[str, _Tree] = {}
        self.faults: dict[str, _Fault] = {}
        self.requested: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def add_tree(self, payloads: Iterable[bytes], root: str | None = None) -> str:
        data = list(payloads)
        leaf_hashes = [hash_leaf(p) for p in data]
        tree_root = root or merkle_root(leaf_hashes)
        self.trees[tree_root] = _Tree(
            leaves=[LeafNode(data=p.hex(), hash=h) for p, h in zip(data, leaf_hashes)]
        )
        return tree_root

    def inject_fault(self, root: str, count: int = 1, kind: str = "error") -> None:
        if kind not in {"error", "hang"}:
            raise ValueError(f"unknown fault kind: {kind}")
        self.faults[root] = _Fault(kind=kind, remaining=count)

    def _take_fault(self, root: str) -> str | None:
        fault = self.faults.get(root)
        if fault is None or fault.remaining <= 0:
            return None
        fault.remaining -= 1
        return fault.kind

    async def health(self) -> StoreHealth:
        return StoreHealth(
            backend=self.backend_name,
            healthy=True,
            detail=f"{len(self.trees)} trees loaded",
            raw={"status": "ok"},
        )

    async def get_leaf(self, path: str) -> LeafNode:
        self.requested.append(path)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            root = path.split("/", 1)[0]
            fault = self._take_fault(root)
            if fault == "hang":
                await asyncio.Event().wait()
            if self.latency_seconds:
                await asyncio.sleep(self.latency_seconds)
            if fault == "error":
                raise StoreError(f"injected failure for {path}")

            tree = self.trees.get(root)
            if tree is None:
                raise StoreError(f"merkledag: not found: {root}")
            return tree.leaves[index_from_path(path, tree.leaf_count)]
        finally:
            self.in_flight -= 1

    async def aclose(self) -> None:
        return None
