"""
Aggregation of Monte Carlo runs into summary statistics.

Many independent runs are reduced to average and percentile trajectories,
failure rates and time-overhead ratios. Every output is rounded to three
decimals; unrounded values are not kept.
"""

from dataclasses import asdict, dataclass
from typing import List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .numerics import average, minimum, percentile, round_to
from .trajectory import SimulationRun

RunLike = Union[SimulationRun, Sequence[float]]

BASELINE_TIME_PER_CHANGE = 1.0


@dataclass
class SimulationStats:
    """Summary of M runs. The only artifact handed to CLI and dashboard."""

    average_final: float
    average_min: float
    failure_rate: float
    average_trajectory: List[float]
    p10_trajectory: List[float]
    p90_trajectory: List[float]

    # Time metrics; None when the runs carry no time data
    average_total_time: Optional[float] = None
    average_time_per_change: Optional[float] = None
    baseline_time: Optional[float] = None
    time_overhead_percent: Optional[float] = None

    @property
    def n_changes(self) -> int:
        return len(self.average_trajectory) - 1

    def to_dict(self) -> dict:
        return asdict(self)

    def to_frame(self) -> pd.DataFrame:
        """Per-step table: change index, average, p10 and p90."""
        return pd.DataFrame({
            "change": range(len(self.average_trajectory)),
            "average": self.average_trajectory,
            "p10": self.p10_trajectory,
            "p90": self.p90_trajectory,
        })


def _health(run: RunLike) -> Sequence[float]:
    if isinstance(run, SimulationRun):
        return run.health_trajectory
    return run


def _padded_matrix(trajectories: List[Sequence[float]]) -> np.ndarray:
    """Stack runs as rows, repeating each run's last value out to the longest length."""
    length = max(len(h) for h in trajectories)
    matrix = np.empty((len(trajectories), length))
    for i, h in enumerate(trajectories):
        matrix[i, :len(h)] = h
        matrix[i, len(h):] = h[-1]
    return matrix


def summarize_runs(runs: Sequence[RunLike], failure_threshold: float = 3.0) -> SimulationStats:
    """Reduce runs to a SimulationStats record.

    ``runs`` must hold at least one run. A run fails when its minimum
    health ever reaches ``failure_threshold`` or below.

    The per-change average is clipped into the p10-p90 band. Runs pinned at
    the health floor can otherwise drag the band below the mean.
    """
    trajectories = [_health(run) for run in runs]
    finals = [h[-1] for h in trajectories]
    mins = np.array([minimum(h) for h in trajectories])
    failures = int(np.count_nonzero(mins <= failure_threshold))

    by_step = _padded_matrix(trajectories)
    p10 = percentile(by_step, 10)
    p90 = percentile(by_step, 90)
    mean = np.clip(by_step.mean(axis=0), p10, p90)

    stats = SimulationStats(
        average_final=round_to(average(finals)),
        average_min=round_to(average(mins)),
        failure_rate=round_to(failures / len(runs)),
        average_trajectory=round_to(mean),
        p10_trajectory=round_to(p10),
        p90_trajectory=round_to(p90),
    )

    if all(isinstance(run, SimulationRun) for run in runs):
        _add_time_metrics(stats, runs, n_changes=by_step.shape[1] - 1)
    return stats


def _add_time_metrics(stats: SimulationStats, runs: Sequence[SimulationRun], n_changes: int) -> None:
    average_total = average([run.total_time for run in runs])
    baseline = n_changes * BASELINE_TIME_PER_CHANGE

    stats.average_total_time = round_to(average_total)
    stats.baseline_time = baseline
    if n_changes == 0:
        stats.average_time_per_change = 0.0
        stats.time_overhead_percent = 0.0
        return
    stats.average_time_per_change = round_to(average_total / n_changes)
    stats.time_overhead_percent = round_to((average_total - baseline) / baseline * 100)
