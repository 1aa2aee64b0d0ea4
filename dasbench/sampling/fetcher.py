from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass

from dasbench.core.errors import LeafFetchError
from dasbench.store.base import LeafStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchResult:
    sample_index: int
    path: str
    elapsed_ns: int | None = None
    error: LeafFetchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class LeafFetcher:
    def __init__(self, store: LeafStore, timeout_seconds: float | None = None):
        self.store = store
        self.timeout_seconds = timeout_seconds

    async def fetch(self, path: str, sample_index: int = 0) -> FetchResult:
        logger.info("will request path: %s", path)
        started = time.perf_counter_ns()
        try:
            await asyncio.wait_for(self.store.get_leaf(path), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as exc:
            err = LeafFetchError(path, TimeoutError(f"no answer within {self.timeout_seconds}s"))
            err.__cause__ = exc
            logger.warning("error while requesting %s from dag: %s", path, err.cause)
            return FetchResult(sample_index=sample_index, path=path, error=err)
        except Exception as exc:
            err = LeafFetchError(path, exc)
            err.__cause__ = exc
            logger.warning("error while requesting %s from dag: %s", path, exc)
            return FetchResult(sample_index=sample_index, path=path, error=err)

        elapsed = time.perf_counter_ns() - started
        logger.info("dag get %s took %.3fms", path, elapsed / 1e6)
        return FetchResult(sample_index=sample_index, path=path, elapsed_ns=elapsed)
