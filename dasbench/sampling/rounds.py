from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass

from dasbench.sampling.fetcher import FetchResult, LeafFetcher
from dasbench.sampling.paths import PathSampler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoundResult:
    round_index: int
    root: str
    started_ns: int
    finished_ns: int
    results: tuple[FetchResult, ...]  # ordered by launch index

    @property
    def elapsed_ns(self) -> int:
        return self.finished_ns - self.started_ns

    @property
    def failures(self) -> int:
        return sum(1 for r in self.results if not r.ok)


class SamplingRound:
    """One fan-out of concurrent leaf fetches against a single root."""

    def __init__(self, fetcher: LeafFetcher, sampler: PathSampler, leaf_count: int, sample_count: int):
        self.fetcher = fetcher
        self.sampler = sampler
        self.leaf_count = leaf_count
        self.sample_count = sample_count

    async def _fetch_into(self, queue: asyncio.Queue[FetchResult], path: str, sample_index: int) -> None:
        result = await self.fetcher.fetch(path, sample_index)
        await queue.put(result)

    async def run(self, round_index: int, root: str) -> RoundResult:
        paths = self.sampler.draw_round(root, self.leaf_count, self.sample_count)
        queue: asyncio.Queue[FetchResult] = asyncio.Queue(maxsize=self.sample_count)

        started = time.perf_counter_ns()
        tasks = [
            asyncio.create_task(self._fetch_into(queue, path, sample_index))
            for sample_index, path in enumerate(paths)
        ]
        try:
            received: list[FetchResult] = []
            while len(received) < len(tasks):
                result = await queue.get()
                logger.debug("received sample %d for %s (ok=%s)", result.sample_index, root, result.ok)
                received.append(result)
            finished = time.perf_counter_ns()
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        ordered = tuple(sorted(received, key=lambda r: r.sample_index))
        return RoundResult(
            round_index=round_index,
            root=root,
            started_ns=started,
            finished_ns=finished,
            results=ordered,
        )
