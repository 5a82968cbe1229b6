"""
Agent traits derived from engineering rigor and system complexity.

Each agent (human or AI) is characterised by a single Engineering Rigor
value. Together with the complexity of the system it works on, that value
fixes the agent's personal health ceiling, its expected impact per change
before any state feedback, and how unpredictable its changes are.
"""

import math
from dataclasses import dataclass

from .config import BREAKEVEN_LINEAR, DEFAULT_PARAMS, ModelParams


def breakeven_rigor(system_complexity: float, params: ModelParams = DEFAULT_PARAMS) -> float:
    """Rigor at which an agent neither improves nor degrades the system.

    Non-decreasing in system complexity: complex systems demand more rigor
    just to avoid net damage. The exponential form steepens near SC=1
    (~0.5 at SC=0.85, ~0.9 at SC=1.0).
    """
    if params.breakeven_curve == BREAKEVEN_LINEAR:
        return params.breakeven_baseline + params.breakeven_linear_slope * system_complexity
    return params.breakeven_baseline + params.breakeven_exp_scale * math.exp(
        params.breakeven_exp_rate * system_complexity
    )


@dataclass(frozen=True)
class AgentTraits:
    """Immutable per-phase traits of one agent on one system."""

    engineering_rigor: float
    system_complexity: float
    max_health: float
    breakeven_rigor: float
    base_impact: float
    base_sigma: float

    @classmethod
    def from_inputs(
        cls,
        engineering_rigor: float,
        system_complexity: float = 1.0,
        params: ModelParams = DEFAULT_PARAMS,
    ) -> "AgentTraits":
        breakeven = breakeven_rigor(system_complexity, params)
        return cls(
            engineering_rigor=engineering_rigor,
            system_complexity=system_complexity,
            # vibe coders (~0.1) cap around 5.5, seniors (~0.8) around 9
            max_health=params.ceiling_base + params.ceiling_slope * engineering_rigor,
            breakeven_rigor=breakeven,
            base_impact=params.impact_slope * (engineering_rigor - breakeven),
            base_sigma=params.sigma_min
            + (params.sigma_max - params.sigma_min) * (1 - engineering_rigor),
        )

    @property
    def improves(self) -> bool:
        return self.base_impact > 0
