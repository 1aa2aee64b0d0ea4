from __future__ import annotations

import logging

import pytest

from dasbench.core.config import Settings, get_settings
from dasbench.store.memory import InMemoryLeafStore


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for key in ("DAS_NUM_LEAVES", "DAS_NUM_SAMPLES", "DAS_STORE_BACKEND", "DAS_SEED"):
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    get_settings.cache_clear()


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        store_backend="memory",
        num_leaves=8,
        num_samples=3,
        initial_delay_seconds=0,
        round_pause_seconds=0,
        fetch_timeout_seconds=2,
        out_dir=tmp_path / "results",
        seed=7,
    )


@pytest.fixture()
def memory_store() -> InMemoryLeafStore:
    store = InMemoryLeafStore()
    for root in ("rootA", "rootB"):
        store.add_tree([f"{root}-{i}".encode("utf-8") for i in range(8)], root=root)
    return store
