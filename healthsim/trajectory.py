"""
Trajectory simulation.

Drives the dynamics engine one change at a time to produce a sampled
health trajectory, tracking cumulative time alongside. Multi-phase runs
hand the codebase from one agent to the next with health, change count
and elapsed time carried across the boundary.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from .config import DEFAULT_PARAMS, ModelParams, PhaseConfig, TrajectoryConfig
from .dynamics import DynamicsEngine
from .numerics import UniformSource


@dataclass
class SimulationRun:
    """One sampled run: health after each change, and cumulative time."""

    health_trajectory: List[float]
    time_trajectory: List[float] = field(default_factory=list)
    total_time: float = 0.0

    @property
    def n_changes(self) -> int:
        return len(self.health_trajectory) - 1

    @property
    def final_health(self) -> float:
        return self.health_trajectory[-1]

    @property
    def min_health(self) -> float:
        return min(self.health_trajectory)


class TrajectorySimulator:
    """Samples runs from one uniform source.

    The source is consumed sequentially, so a simulator must not be shared
    between threads.
    """

    def __init__(self, uniform: UniformSource, params: ModelParams = DEFAULT_PARAMS):
        self.uniform = uniform
        self.params = params

    def simulate(self, config: TrajectoryConfig) -> SimulationRun:
        engine = DynamicsEngine.for_agent(
            config.engineering_rigor, config.system_complexity, self.params
        )
        run = SimulationRun([config.start_value], [0.0], 0.0)
        self._step(engine, run, config.n_changes, change_offset=0)
        return run

    def simulate_phased(
        self,
        phases: Sequence[PhaseConfig],
        start_health: float,
        system_complexity: float = 1.0,
    ) -> SimulationRun:
        run = SimulationRun([start_health], [0.0], 0.0)
        total_changes = 0
        for phase in phases:
            engine = DynamicsEngine.for_agent(
                phase.engineering_rigor, system_complexity, self.params
            )
            self._step(engine, run, phase.n_changes, change_offset=total_changes)
            total_changes += phase.n_changes
        return run

    def _step(
        self,
        engine: DynamicsEngine,
        run: SimulationRun,
        n_changes: int,
        change_offset: int,
    ) -> None:
        health = run.health_trajectory[-1]
        elapsed = run.total_time
        for i in range(n_changes):
            # time is charged at the health the change starts from
            elapsed += engine.time_cost(health)
            health = engine.sample_next_health(health, change_offset + i, self.uniform)
            run.health_trajectory.append(health)
            run.time_trajectory.append(elapsed)
        run.total_time = elapsed


def _default_uniform() -> UniformSource:
    return np.random.default_rng().random


def simulate_trajectory(
    config: TrajectoryConfig,
    uniform: Optional[UniformSource] = None,
    params: ModelParams = DEFAULT_PARAMS,
) -> SimulationRun:
    """Sample one single-agent run.

    Without ``uniform`` the run draws from a fresh, unseeded numpy
    generator; pass a seeded source for reproducible output.
    """
    simulator = TrajectorySimulator(uniform or _default_uniform(), params)
    return simulator.simulate(config)


def simulate_phased_trajectory(
    phases: Sequence[PhaseConfig],
    start_health: float = 8.0,
    system_complexity: float = 1.0,
    uniform: Optional[UniformSource] = None,
    params: ModelParams = DEFAULT_PARAMS,
) -> SimulationRun:
    """Sample one run spanning all phases, ``1 + sum(n_changes)`` points long."""
    simulator = TrajectorySimulator(uniform or _default_uniform(), params)
    return simulator.simulate_phased(phases, start_health, system_complexity)
