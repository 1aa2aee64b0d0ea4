from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Sequence

from dasbench.core.config import Settings, get_settings
from dasbench.core.errors import SamplingConfigError, StoreError
from dasbench.sampling.aggregator import ResultAggregator
from dasbench.sampling.fetcher import LeafFetcher
from dasbench.sampling.paths import PathSampler
from dasbench.sampling.rounds import RoundResult, SamplingRound
from dasbench.store.base import LeafStore

logger = logging.getLogger(__name__)


def load_root_ids(path: Path) -> list[str]:
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise SamplingConfigError(f"error while reading CIDs file {path}: {exc}") from exc
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise SamplingConfigError(f"error while parsing CIDs file {path}: {exc}") from exc
    if not isinstance(payload, list) or not all(isinstance(item, str) and item for item in payload):
        raise SamplingConfigError(f"CIDs file {path} must contain a JSON array of non-empty strings")
    return payload


class SamplingRunner:
    """Runs one sampling round per root, strictly one after another."""

    def __init__(self, store: LeafStore, settings: Settings | None = None, sampler: PathSampler | None = None):
        self.settings = settings or get_settings()
        self.store = store
        self.sampler = sampler or PathSampler(seed=self.settings.seed)
        self.round = SamplingRound(
            fetcher=LeafFetcher(store, timeout_seconds=self.settings.fetch_timeout_seconds),
            sampler=self.sampler,
            leaf_count=self.settings.num_leaves,
            sample_count=self.settings.num_samples,
        )

    async def ensure_store_ready(self) -> None:
        health = await self.store.health()
        if not health.healthy:
            raise StoreError(f"{health.backend} is not running properly: {health.detail}")
        logger.info("%s store ready: %s", health.backend, health.detail)

    async def run(self, roots: Sequence[str]) -> ResultAggregator:
        aggregator = ResultAggregator(rounds=len(roots), samples_per_round=self.settings.num_samples)
        if self.settings.initial_delay_seconds > 0:
            logger.info("sleeping %.0fs before the first sample request", self.settings.initial_delay_seconds)
            await asyncio.sleep(self.settings.initial_delay_seconds)
        await self.ensure_store_ready()
        logger.info("starting sampling of %d roots", len(roots))

        for round_index, root in enumerate(roots):
            result = await self.round.run(round_index, root)
            aggregator.merge_round(result)
            self._log_round(result)
            if round_index < len(roots) - 1 and self.settings.round_pause_seconds > 0:
                logger.info("sleeping %.0fs between rounds", self.settings.round_pause_seconds)
                await asyncio.sleep(self.settings.round_pause_seconds)
        return aggregator

    @staticmethod
    def _log_round(result: RoundResult) -> None:
        logger.info(
            "DA proof for cid %s took %.3fms (%d/%d samples failed)",
            result.root,
            result.elapsed_ns / 1e6,
            result.failures,
            len(result.results),
        )
