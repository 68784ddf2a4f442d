"""Command-line entry point: ``python -m spherepi``."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from .config import DEFAULT_BLOCK_SIZE, DEFAULT_POINTS, DEFAULT_REPLICATES, ExperimentConfig
from .core import SphereExperiment
from .exceptions import SpherePiError
from .report import format_report
from .seeding import (
    DEFAULT_BIT_GENERATOR,
    DEFAULT_SEED,
    DirectoryStateStore,
    MemoryStateStore,
    generate_states,
)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spherepi",
        description="Estimate the unit-sphere volume (and π) with replicated Monte Carlo runs.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log per-replicate details")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_p = subparsers.add_parser("run", help="Run the concurrent and sequential passes")
    run_p.add_argument("--replicates", type=int, default=DEFAULT_REPLICATES, help="Number of replicates")
    run_p.add_argument("--points", type=int, default=DEFAULT_POINTS, help="Points per replicate")
    run_p.add_argument("--block-size", type=int, default=DEFAULT_BLOCK_SIZE, help="Points per sampling block")
    run_p.add_argument(
        "--backend", choices=("auto", "sequential", "thread", "process"), default="auto",
        help="Backend of the concurrent pass",
    )
    run_p.add_argument("--workers", type=int, default=None, help="Pool size (default: one per replicate)")
    run_p.add_argument("--ci-method", choices=("table", "exact"), default="table", help="Critical value source")
    run_p.add_argument("--states", default=None, help="Directory of state files (default: generate in memory)")
    run_p.add_argument("--seed", type=int, default=DEFAULT_SEED, help="Seed for in-memory states")

    gen_p = subparsers.add_parser("generate", help="Write one generator state file per replicate")
    gen_p.add_argument("--out", required=True, help="Target directory")
    gen_p.add_argument("--count", type=int, default=DEFAULT_REPLICATES, help="Number of states")
    gen_p.add_argument("--seed", type=int, default=DEFAULT_SEED, help="Base seed")
    gen_p.add_argument("--bit-generator", default=DEFAULT_BIT_GENERATOR, help="NumPy bit generator name")
    return parser


def _run(args: argparse.Namespace) -> int:
    config = ExperimentConfig(
        replicate_count=args.replicates,
        points_per_replicate=args.points,
        block_size=args.block_size,
        backend=args.backend,
        n_workers=args.workers,
        ci_method=args.ci_method,
    )
    if args.states:
        store = DirectoryStateStore(args.states)
    else:
        store = MemoryStateStore(generate_states(config.replicate_count, seed=args.seed))
    report = SphereExperiment(config, store).run()
    print(format_report(report))
    if report.summary_error is not None:
        print(f"error: {report.summary_error}", file=sys.stderr)
        return 1
    return 0


def _generate(args: argparse.Namespace) -> int:
    store = DirectoryStateStore(args.out)
    states = generate_states(args.count, seed=args.seed, bit_generator=args.bit_generator)
    for fname in store.save_all(states):
        print(f"saved {fname}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    if args.verbose:
        logging.getLogger("spherepi").setLevel(logging.DEBUG)
    try:
        if args.command == "generate":
            return _generate(args)
        return _run(args)
    except (SpherePiError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
