"""
Product health dynamics engine.

Models the per-change feedback loops between an agent and the codebase:

1. Traction
   Healthy systems let improvements land; frozen systems resist them.

2. Fragility
   Damage cascades harder in complex, low-health systems.

3. Diminishing Returns
   Improvement slows near the agent's personal ceiling and stops at it.

4. Bell-Curve Volatility
   Pristine and fully frozen systems both behave predictably; outcomes are
   most uncertain in the transition zone between them.

5. Ceiling Resistance
   Above the ceiling, all noise is dampened symmetrically so health
   plateaus without developing a directional bias.

6. Complexity Drift
   Maintenance debt accumulates with every change applied, regardless of
   which agent made it.

7. Velocity Loss
   Changes to degraded systems take longer.
"""

import math

from .config import CURVE_LOGISTIC, DEFAULT_PARAMS, ModelParams
from .model import AgentTraits
from .numerics import UniformSource, clamp, gaussian_sample, sigmoid


class DynamicsEngine:
    """Per-step quantities for one agent on one system."""

    def __init__(self, traits: AgentTraits, params: ModelParams = DEFAULT_PARAMS):
        self.traits = traits
        self.params = params

    @classmethod
    def for_agent(
        cls,
        engineering_rigor: float,
        system_complexity: float = 1.0,
        params: ModelParams = DEFAULT_PARAMS,
    ) -> "DynamicsEngine":
        return cls(AgentTraits.from_inputs(engineering_rigor, system_complexity, params), params)

    # ------------------------------------------------------------------
    # System state
    # ------------------------------------------------------------------

    def normalized_health(self, current_health: float) -> float:
        p = self.params
        return (current_health - p.health_min) / (p.health_max - p.health_min)

    def complexity_floor(self) -> float:
        """Tractability a system keeps even at minimum health.

        Shrinks to 0 as SC -> 1: enterprise systems get no forgiveness.
        """
        return (1 - self.traits.system_complexity) ** self.params.complexity_floor_exponent

    def apply_complexity_floor(self, raw_state: float) -> float:
        floor = self.complexity_floor()
        return floor + (1 - floor) * raw_state

    def _raw_state(self, current_health: float, exponent: float) -> float:
        p = self.params
        if p.tractability_curve == CURVE_LOGISTIC:
            return sigmoid(current_health - p.logistic_midpoint, p.logistic_steepness)
        return self.normalized_health(current_health) ** exponent

    def traction(self, current_health: float) -> float:
        """How well improvements land: resistance at low PH, good traction at high PH."""
        return self.apply_complexity_floor(
            self._raw_state(current_health, self.params.traction_exponent)
        )

    def system_state(self, current_health: float) -> float:
        """Tractability used for volatility, drift and time cost."""
        return self.apply_complexity_floor(
            self._raw_state(current_health, self.params.state_exponent)
        )

    def fragility(self, current_health: float) -> float:
        inverse = 1 - self.normalized_health(current_health)
        return inverse * inverse * self.traits.system_complexity

    # ------------------------------------------------------------------
    # Mean
    # ------------------------------------------------------------------

    def ceiling_factor(self, current_health: float) -> float:
        raw = 1 - (current_health / self.traits.max_health) ** self.params.ceiling_factor_exponent
        return max(0.0, raw)

    def expected_impact(self, current_health: float) -> float:
        """Mean health delta of the next change, before drift."""
        t = self.traits
        if not t.improves:
            return t.base_impact * self.fragility(current_health)
        return t.base_impact * self.traction(current_health) * self.ceiling_factor(current_health)

    def complexity_drift(self, system_state: float, change_count: int) -> float:
        """Accumulated maintenance cost; never positive.

        ``change_count`` is the total number of changes applied so far,
        across all phases of a run.
        """
        p = self.params
        rate = p.drift_base + p.drift_growth * change_count
        return -rate * system_state * self.traits.system_complexity

    # ------------------------------------------------------------------
    # Noise
    # ------------------------------------------------------------------

    @staticmethod
    def bell_curve(system_state: float) -> float:
        """4s(1-s): 0 at both extremes, 1 at s=0.5."""
        return 4 * system_state * (1 - system_state)

    def effective_sigma(self, current_health: float) -> float:
        p = self.params
        bell = self.bell_curve(self.system_state(current_health))
        return self.traits.base_sigma * (p.sigma_scale_floor + p.sigma_scale_range * bell)

    def variance_attenuation(self, system_state: float) -> float:
        p = self.params
        t = self.traits
        base = p.attenuation_floor + p.attenuation_range * self.bell_curve(system_state)
        challenge = (1 - t.engineering_rigor) * t.system_complexity
        boost = system_state * max(0.0, t.base_impact) * challenge * p.improvement_variance
        return base + boost

    def ceiling_resistance(self, current_health: float) -> float:
        """1.0 at or below the ceiling, decaying toward 0 with overshoot."""
        max_health = self.traits.max_health
        if current_health <= max_health:
            return 1.0
        overshoot = (current_health - max_health) / max_health
        return math.exp(-self.params.ceiling_decay * overshoot)

    def noise(self, current_health: float, system_state: float, uniform: UniformSource) -> float:
        return (
            self.effective_sigma(current_health)
            * self.variance_attenuation(system_state)
            * self.ceiling_resistance(current_health)
            * gaussian_sample(uniform)
        )

    # ------------------------------------------------------------------
    # Step
    # ------------------------------------------------------------------

    def time_cost(self, current_health: float) -> float:
        """Work units for the next change: time_base when healthy, up to time_max when frozen."""
        p = self.params
        return p.time_base + (p.time_max - p.time_base) * (1 - self.system_state(current_health))

    def sample_next_health(
        self, current_health: float, change_count: int, uniform: UniformSource
    ) -> float:
        state = self.system_state(current_health)
        delta = (
            self.expected_impact(current_health)
            + self.complexity_drift(state, change_count)
            + self.noise(current_health, state, uniform)
        )
        return clamp(current_health + delta, self.params.health_min, self.params.health_max)
