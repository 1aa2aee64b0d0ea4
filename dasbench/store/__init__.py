from __future__ import annotations

from typing import Sequence

from dasbench.core.config import Settings, get_settings
from dasbench.store.base import LeafNode, LeafStore, StoreHealth
from dasbench.store.ipfs import IpfsDagStore
from dasbench.store.memory import InMemoryLeafStore


def build_leaf_store(settings: Settings | None = None, roots: Sequence[str] = ()) -> LeafStore:
    cfg = settings or get_settings()
    if cfg.store_backend == "memory":
        # Dry runs: serve a synthetic tree under every requested root.
        store = InMemoryLeafStore()
        for root in roots:
            payloads = [f"{root}-leaf-{i}".encode("utf-8") for i in range(cfg.num_leaves)]
            store.add_tree(payloads, root=root)
        return store
    return IpfsDagStore(cfg)


__all__ = [
    "InMemoryLeafStore",
    "IpfsDagStore",
    "LeafNode",
    "LeafStore",
    "StoreHealth",
    "build_leaf_store",
]
