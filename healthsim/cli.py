"""Command-line runner for the scenario presets.

Example usage (1000 runs of the handoff scenario on a medium system):

    healthsim --scenario ai-handoff --complexity medium --runs 1000 --seed 42
"""

import argparse
import logging
from typing import List, Optional

from .config import COMPLEXITY_PROFILES, SCENARIOS, ConfigurationError, get_complexity_profile
from .runner import compare_scenarios, simulate_scenario
from .statistics import SimulationStats

logger = logging.getLogger("healthsim.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="healthsim",
        description="Monte Carlo simulation of product health under repeated changes",
    )
    parser.add_argument("-s", "--scenario", default="ai-vibe", help="Scenario preset to run")
    parser.add_argument("-r", "--runs", type=int, default=1000, help="Number of simulations")
    parser.add_argument(
        "-c", "--complexity", default="enterprise",
        help=f"System complexity profile ({', '.join(COMPLEXITY_PROFILES)})",
    )
    parser.add_argument("-n", "--changes", type=int, default=1000, help="Changes per simulation")
    parser.add_argument("--seed", type=int, help="Base RNG seed for reproducible output")
    parser.add_argument("--workers", type=int, default=1, help="Worker processes")
    parser.add_argument("--csv", metavar="PATH", help="Write the per-change trajectory table to PATH")
    parser.add_argument("--compare", action="store_true", help="Summarise every scenario preset")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress")
    return parser


def format_header(scenario: str, runs: int, complexity: str, n_changes: int) -> str:
    profile = get_complexity_profile(complexity)
    return (
        f"Running {scenario} with {runs} simulations, {n_changes} changes each...\n"
        f"System Complexity: {profile.label} (SC={profile.system_complexity})"
    )


def format_results(stats: SimulationStats, failure_threshold: float = 3.0) -> str:
    first = ", ".join(str(v) for v in stats.average_trajectory[:10])
    return "\n".join([
        f"Average final PH: {stats.average_final}",
        f"Average minimum PH: {stats.average_min}",
        f"Failure rate (PH <= {failure_threshold:g}): {stats.failure_rate}",
        f"Average trajectory (first 10): {first}",
        "Time metrics:",
        f"  Total time: {stats.average_total_time} (baseline: {stats.baseline_time})",
        f"  Time per change: {stats.average_time_per_change}",
        f"  Time overhead: {stats.time_overhead_percent}%",
    ])


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.runs <= 0:
        parser.error("--runs must be positive")
    if args.changes < 0:
        parser.error("--changes must not be negative")
    if args.scenario not in SCENARIOS:
        parser.error(f"Unknown scenario {args.scenario!r}. Options: {', '.join(SCENARIOS)}")
    try:
        profile = get_complexity_profile(args.complexity)
    except ConfigurationError as exc:
        parser.error(str(exc))

    if args.compare:
        table = compare_scenarios(
            SCENARIOS, args.runs, profile.system_complexity, args.changes,
            args.seed, args.workers,
        )
        print(f"System Complexity: {profile.label} (SC={profile.system_complexity})")
        print(table.to_string(index=False))
        return 0

    stats = simulate_scenario(
        args.scenario,
        n_simulations=args.runs,
        system_complexity=profile.system_complexity,
        n_changes=args.changes,
        seed=args.seed,
        max_workers=args.workers,
    )
    print(format_header(args.scenario, args.runs, args.complexity, args.changes))
    print(format_results(stats))

    if args.csv:
        stats.to_frame().to_csv(args.csv, index=False)
        logger.info("Trajectory table written to %s", args.csv)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
