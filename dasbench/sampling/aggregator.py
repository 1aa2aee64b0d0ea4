from __future__ import annotations

import json
import logging
from pathlib import Path

from dasbench.core.errors import OutputError
from dasbench.sampling.fetcher import FetchResult
from dasbench.sampling.rounds import RoundResult

logger = logging.getLogger(__name__)

# Largest int64 nanosecond duration; stands in for the latency of a failed sample.
FAILED_SAMPLE_LATENCY_NS = 2**63 - 1

SAMPLE_LATENCIES_FILE = "sample_latencies.json"
ROUND_LATENCIES_FILE = "da_proof_latencies.json"


def prepare_output_dir(out_dir: Path) -> Path:
    out_dir = Path(out_dir)
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise OutputError(f"error while creating output directory {out_dir}: {exc}") from exc
    return out_dir


class ResultAggregator:
    def __init__(self, rounds: int, samples_per_round: int):
        self.rounds = rounds
        self.samples_per_round = samples_per_round
        self.sample_latencies: list[int] = [0] * (rounds * samples_per_round)
        self.round_latencies: list[int] = [0] * rounds
        self.round_spans: list[tuple[int, int] | None] = [None] * rounds

    def _slot(self, round_index: int, sample_index: int) -> int:
        if not 0 <= round_index < self.rounds:
            raise IndexError(f"round index {round_index} out of range for {self.rounds} rounds")
        if not 0 <= sample_index < self.samples_per_round:
            raise IndexError(
                f"sample index {sample_index} out of range for {self.samples_per_round} samples per round"
            )
        return round_index * self.samples_per_round + sample_index

    def record_sample(self, round_index: int, sample_index: int, result: FetchResult) -> None:
        latency = result.elapsed_ns if result.ok and result.elapsed_ns is not None else FAILED_SAMPLE_LATENCY_NS
        self.sample_latencies[self._slot(round_index, sample_index)] = latency

    def record_round(self, round_index: int, elapsed_ns: int) -> None:
        if not 0 <= round_index < self.rounds:
            raise IndexError(f"round index {round_index} out of range for {self.rounds} rounds")
        self.round_latencies[round_index] = elapsed_ns

    def merge_round(self, round_result: RoundResult) -> None:
        for result in round_result.results:
            self.record_sample(round_result.round_index, result.sample_index, result)
        self.record_round(round_result.round_index, round_result.elapsed_ns)
        self.round_spans[round_result.round_index] = (round_result.started_ns, round_result.finished_ns)

    def round_samples(self, round_index: int) -> list[int]:
        start = self._slot(round_index, 0)
        return self.sample_latencies[start : start + self.samples_per_round]

    def flush(self, out_dir: Path) -> tuple[Path, Path]:
        out_dir = prepare_output_dir(out_dir)
        sample_path = out_dir / SAMPLE_LATENCIES_FILE
        round_path = out_dir / ROUND_LATENCIES_FILE
        try:
            sample_path.write_text(json.dumps(self.sample_latencies) + "\n", encoding="utf-8")
            round_path.write_text(json.dumps(self.round_latencies) + "\n", encoding="utf-8")
        except OSError as exc:
            raise OutputError(f"error while writing latencies to {out_dir}: {exc}") from exc
        logger.info("wrote %s and %s", sample_path, round_path)
        return sample_path, round_path
