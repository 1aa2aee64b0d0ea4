from __future__ import annotations

import argparse
import asyncio
import sys

from dasbench.core.config import SUPPORTED_LEAF_COUNTS, Settings
from dasbench.core.errors import OutputError, SamplingConfigError, StoreError
from dasbench.core.logging import configure_logging
from dasbench.sampling.aggregator import prepare_output_dir
from dasbench.sampling.runner import SamplingRunner, load_root_ids
from dasbench.store import build_leaf_store


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Data availability sampling latency client")
    top = parser.add_subparsers(dest="command", required=True)

    sample = top.add_parser("sample", help="Sample random leaves of every tree root and record latencies")
    sample.add_argument("--cids-file", default=None, help="JSON file with the CIDs (tree roots) to sample paths for")
    sample.add_argument(
        "--num-leaves",
        type=int,
        default=None,
        help=f"Leaves per tree, one of {', '.join(str(n) for n in SUPPORTED_LEAF_COUNTS)}",
    )
    sample.add_argument("--num-samples", type=int, default=None, help="Samples per tree; each runs concurrently")
    sample.add_argument("--out-dir", default=None, help="Directory to save measurements to")
    sample.add_argument("--store", dest="store_backend", choices=["ipfs", "memory"], default=None)
    sample.add_argument("--ipfs-api-url", default=None)
    sample.add_argument("--initial-delay", dest="initial_delay_seconds", type=float, default=None)
    sample.add_argument("--round-pause", dest="round_pause_seconds", type=float, default=None)
    sample.add_argument("--fetch-timeout", dest="fetch_timeout_seconds", type=float, default=None)
    sample.add_argument("--seed", type=int, default=None, help="Seed the path sampler for reproducible runs")
    sample.add_argument("--log-level", default=None)

    return parser


def _settings_from_args(args: argparse.Namespace) -> Settings:
    overrides = {
        "cids_file": args.cids_file,
        "num_leaves": args.num_leaves,
        "num_samples": args.num_samples,
        "out_dir": args.out_dir,
        "store_backend": args.store_backend,
        "ipfs_api_url": args.ipfs_api_url,
        "initial_delay_seconds": args.initial_delay_seconds,
        "round_pause_seconds": args.round_pause_seconds,
        "fetch_timeout_seconds": args.fetch_timeout_seconds,
        "seed": args.seed,
        "log_level": args.log_level,
    }
    return Settings(**{key: value for key, value in overrides.items() if value is not None})


async def _sample(settings: Settings) -> None:
    prepare_output_dir(settings.out_dir)
    roots = load_root_ids(settings.cids_file)
    store = build_leaf_store(settings, roots=roots)
    try:
        aggregator = await SamplingRunner(store, settings).run(roots)
    finally:
        await store.aclose()
    aggregator.flush(settings.out_dir)


def _run_sample(args: argparse.Namespace) -> int:
    try:
        settings = _settings_from_args(args)
    except ValueError as exc:
        print(f"{exc}\nShutting down client...", file=sys.stderr)
        return 1

    configure_logging(settings.log_level)
    try:
        asyncio.run(_sample(settings))
    except SamplingConfigError as exc:
        print(f"{exc}\nShutting down client...", file=sys.stderr)
        return 1
    except StoreError as exc:
        print(f"{exc}\nShutting down...", file=sys.stderr)
        return 1
    except OutputError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "sample":
        return _run_sample(args)

    parser.error("unsupported command")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
