"""
Mutineer CLI
============
Inspect the resolved configuration and calibrate failure rates.

Run:
    python -m mutineer show
    python -m mutineer simulate --rate 0.1 --trials 10000 --types error,nil
"""

import argparse
import logging
import os
from collections import Counter
from typing import Dict, List, Optional

from .config import ConfigStore, MutineerConfig, describe_types, parse_failure_types
from .errors import MutineerError
from .injector import Mutineer, should_fail
from .options import InvocationOptions
from .stats import wilson_interval

logger = logging.getLogger(__name__)

PASS = "pass"


def simulate(rate: float, trials: int, types="error") -> Dict[str, int]:
    """
    Run the gate and kind selection ``trials`` times without dispatching.

    Returns:
        Counts keyed by failure kind value, plus "pass" for untouched calls
    """
    store = ConfigStore(MutineerConfig(
        enabled=True,
        default_failure_rate=rate,
        default_failure_types=parse_failure_types(types),
    ))
    mutineer = Mutineer(store)
    config = store.snapshot()
    opts = InvocationOptions()

    counts: Counter = Counter()
    for _ in range(trials):
        call_rate, kind = mutineer.decide(config, opts)
        counts[kind.value if should_fail(call_rate) else PASS] += 1
    return dict(counts)


def _cmd_show(args: argparse.Namespace) -> int:
    config = MutineerConfig.from_env()
    print("Mutineer configuration (from environment)")
    print(f"  enabled:               {config.enabled}")
    print(f"  default_failure_rate:  {config.default_failure_rate}")
    print(f"  default_failure_types: {describe_types(config.default_failure_types)}")
    return 0


def _cmd_simulate(args: argparse.Namespace) -> int:
    counts = simulate(args.rate, args.trials, args.types)
    failures = args.trials - counts.get(PASS, 0)
    ci = wilson_interval(failures, args.trials, args.confidence)

    print("=" * 50)
    print(f"Simulated {args.trials} calls at rate {args.rate}")
    print("=" * 50)
    for outcome, count in sorted(counts.items()):
        print(f"  {outcome:<10} {count:>8}")
    print(f"\nObserved failure rate: {ci.proportion:.4f}")
    print(f"{ci.confidence_level:.0%} CI: [{ci.ci_lower:.4f}, {ci.ci_upper:.4f}]")
    if not ci.contains(args.rate):
        print("WARNING: configured rate is outside the confidence interval")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mutineer", description="Mutineer chaos tooling")
    sub = parser.add_subparsers(dest="command", required=True)

    show = sub.add_parser("show", help="Print the configuration resolved from the environment")
    show.set_defaults(handler=_cmd_show)

    sim = sub.add_parser("simulate", help="Estimate the failure rate of a configuration")
    sim.add_argument("--rate", type=float, default=0.1, help="Failure rate in [0, 1]")
    sim.add_argument("--trials", type=int, default=10_000, help="Number of simulated calls")
    sim.add_argument("--types", type=str, default="error", help="Comma separated failure kinds")
    sim.add_argument("--confidence", type=float, default=0.95, help="Confidence level for the interval")
    sim.set_defaults(handler=_cmd_simulate)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    log_level = os.environ.get("LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    args = build_parser().parse_args(argv)
    if getattr(args, "trials", 1) <= 0:
        print("ERROR: --trials must be positive")
        return 2
    if not 0.0 < getattr(args, "confidence", 0.5) < 1.0:
        print("ERROR: --confidence must be between 0 and 1")
        return 2
    try:
        return args.handler(args)
    except MutineerError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"ERROR: {e}")
        return 2
