"""
Monte Carlo batch runner.

Every run gets its own generator spawned from one ``SeedSequence``, so a
batch is reproducible from a single seed whether it runs sequentially or
fans out across worker processes.
"""

import logging
import os
import time
from concurrent.futures import ProcessPoolExecutor
from dataclasses import replace
from typing import Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from .config import (
    DEFAULT_PARAMS,
    ConfigurationError,
    ModelParams,
    PhaseConfig,
    ScenarioConfig,
    TrajectoryConfig,
    get_scenario,
)
from .statistics import SimulationStats, summarize_runs
from .trajectory import SimulationRun, TrajectorySimulator

logger = logging.getLogger("healthsim.runner")

WORKERS_ENV = "HEALTHSIM_NUM_WORKERS"


def _resolve_workers(max_workers: Optional[int]) -> int:
    env = os.getenv(WORKERS_ENV)
    if env:
        try:
            max_workers = int(env)
        except ValueError:
            logger.warning("Ignoring non-integer %s=%r", WORKERS_ENV, env)
    return max(1, max_workers or 1)


def _single_task(args) -> SimulationRun:
    config, seed_seq, params = args
    uniform = np.random.default_rng(seed_seq).random
    return TrajectorySimulator(uniform, params).simulate(config)


def _phased_task(args) -> SimulationRun:
    phases, start_health, system_complexity, seed_seq, params = args
    uniform = np.random.default_rng(seed_seq).random
    return TrajectorySimulator(uniform, params).simulate_phased(
        phases, start_health, system_complexity
    )


def _execute(task, tasks: list, max_workers: Optional[int]) -> List[SimulationRun]:
    workers = _resolve_workers(max_workers)
    start = time.perf_counter()
    if workers == 1:
        runs = [task(args) for args in tasks]
    else:
        with ProcessPoolExecutor(max_workers=workers) as executor:
            runs = list(executor.map(task, tasks, chunksize=max(1, len(tasks) // (workers * 4))))
    logger.info(
        "Simulated %d runs with %d worker(s) in %.2fs",
        len(runs), workers, time.perf_counter() - start,
    )
    return runs


def run_trajectories(
    config: TrajectoryConfig,
    n_runs: int,
    seed: Optional[int] = None,
    max_workers: Optional[int] = None,
    params: ModelParams = DEFAULT_PARAMS,
) -> List[SimulationRun]:
    children = np.random.SeedSequence(seed).spawn(n_runs)
    tasks = [(config, child, params) for child in children]
    return _execute(_single_task, tasks, max_workers)


def run_phased_trajectories(
    phases: Sequence[PhaseConfig],
    start_health: float,
    system_complexity: float,
    n_runs: int,
    seed: Optional[int] = None,
    max_workers: Optional[int] = None,
    params: ModelParams = DEFAULT_PARAMS,
) -> List[SimulationRun]:
    children = np.random.SeedSequence(seed).spawn(n_runs)
    phases = list(phases)
    tasks = [(phases, start_health, system_complexity, child, params) for child in children]
    return _execute(_phased_task, tasks, max_workers)


def rescale_phases(phases: Sequence[PhaseConfig], n_changes: int) -> List[PhaseConfig]:
    """Stretch or shrink every phase in proportion so they total ``n_changes``.

    Phase lengths are floored like the preset handoffs; the last phase takes
    whatever remains.
    """
    total = sum(p.n_changes for p in phases)
    if total == 0:
        raise ConfigurationError("Cannot rescale phases that contain no changes")
    lengths = [int(n_changes * p.n_changes / total) for p in phases[:-1]]
    lengths.append(n_changes - sum(lengths))
    return [replace(p, n_changes=n) for p, n in zip(phases, lengths)]


def simulate_scenario(
    key: str,
    n_simulations: int = 1000,
    system_complexity: float = 1.0,
    n_changes: Optional[int] = None,
    seed: Optional[int] = None,
    max_workers: Optional[int] = None,
    failure_threshold: float = 3.0,
    params: ModelParams = DEFAULT_PARAMS,
) -> SimulationStats:
    """Run a named scenario preset and summarise it."""
    scenario: ScenarioConfig = get_scenario(key)
    n_changes = scenario.n_changes if n_changes is None else n_changes
    logger.info(
        "Scenario %s: %d simulations x %d changes, SC=%.2f",
        key, n_simulations, n_changes, system_complexity,
    )

    if scenario.is_handoff:
        phases = scenario.phases
        if n_changes != sum(p.n_changes for p in phases):
            phases = rescale_phases(phases, n_changes)
        runs = run_phased_trajectories(
            phases, scenario.start_value, system_complexity,
            n_simulations, seed, max_workers, params,
        )
    else:
        config = TrajectoryConfig(
            n_changes=n_changes,
            engineering_rigor=scenario.engineering_rigor,
            start_value=scenario.start_value,
            system_complexity=system_complexity,
            failure_threshold=failure_threshold,
        )
        runs = run_trajectories(config, n_simulations, seed, max_workers, params)

    return summarize_runs(runs, failure_threshold)


def compare_scenarios(
    keys: Iterable[str],
    n_simulations: int = 1000,
    system_complexity: float = 1.0,
    n_changes: Optional[int] = None,
    seed: Optional[int] = None,
    max_workers: Optional[int] = None,
    params: ModelParams = DEFAULT_PARAMS,
) -> pd.DataFrame:
    """Headline metrics for several scenarios, one row each."""
    rows = []
    for key in keys:
        stats = simulate_scenario(
            key, n_simulations, system_complexity, n_changes, seed, max_workers,
            params=params,
        )
        rows.append({
            "scenario": key,
            "label": get_scenario(key).label,
            "average_final": stats.average_final,
            "average_min": stats.average_min,
            "failure_rate": stats.failure_rate,
            "average_total_time": stats.average_total_time,
            "time_overhead_percent": stats.time_overhead_percent,
        })
    return pd.DataFrame(rows)
