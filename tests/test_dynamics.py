"""
tests/test_dynamics.py - Per-step feedback model

Ceiling clamp, bell-curve volatility, drift, time cost and the sampled
step itself with deterministic uniform sources.
"""

import math

import pytest

from healthsim.config import BREAKEVEN_LINEAR, CURVE_LOGISTIC, DEFAULT_PARAMS, ModelParams
from healthsim.dynamics import DynamicsEngine
from healthsim.numerics import gaussian_sample

HEALTH_GRID = [1 + 0.25 * i for i in range(37)]


def const(value):
    return lambda: value


def draws(*values):
    """Uniform source that replays ``values`` in order."""
    it = iter(values)
    return lambda: next(it)


class TestSystemState:

    def test_normalized_health_bounds(self):
        engine = DynamicsEngine.for_agent(0.5, 0.5)
        assert engine.normalized_health(1) == 0.0
        assert engine.normalized_health(10) == 1.0

    def test_enterprise_has_no_floor(self):
        engine = DynamicsEngine.for_agent(0.5, 1.0)
        assert engine.complexity_floor() == 0.0
        assert engine.system_state(1) == 0.0

    def test_simple_system_keeps_tractability(self):
        engine = DynamicsEngine.for_agent(0.5, 0.25)
        assert engine.system_state(1) == pytest.approx(0.75 ** 4)

    @pytest.mark.parametrize("curve", ["power", CURVE_LOGISTIC])
    def test_state_and_traction_increase_with_health(self, curve):
        engine = DynamicsEngine.for_agent(0.5, 0.85, ModelParams(tractability_curve=curve))
        states = [engine.system_state(h) for h in HEALTH_GRID]
        traction = [engine.traction(h) for h in HEALTH_GRID]
        assert all(b > a for a, b in zip(states, states[1:]))
        assert all(b > a for a, b in zip(traction, traction[1:]))

    def test_fragility_scales_with_complexity(self):
        assert DynamicsEngine.for_agent(0.1, 1.0).fragility(3) > DynamicsEngine.for_agent(0.1, 0.5).fragility(3)
        assert DynamicsEngine.for_agent(0.1, 1.0).fragility(10) == 0.0


class TestExpectedImpact:

    @pytest.mark.parametrize("rigor,sc", [(0.8, 0.5), (0.95, 1.0), (1.0, 0.25)])
    def test_zero_at_ceiling(self, rigor, sc):
        engine = DynamicsEngine.for_agent(rigor, sc)
        assert engine.traits.improves
        assert engine.expected_impact(engine.traits.max_health) == 0.0

    def test_never_negative_above_ceiling(self):
        engine = DynamicsEngine.for_agent(0.8, 0.5)
        for health in (9.01, 9.5, 10.0):
            assert engine.ceiling_factor(health) == 0.0
            assert engine.expected_impact(health) == 0.0

    def test_diminishing_returns_near_ceiling(self):
        engine = DynamicsEngine.for_agent(0.8, 0.5)
        assert 0 < engine.expected_impact(8.5) < engine.expected_impact(5)

    def test_low_rigor_damage_cascades_at_low_health(self):
        engine = DynamicsEngine.for_agent(0.1, 1.0)
        low, high = engine.expected_impact(2), engine.expected_impact(8)
        assert low < high < 0
        assert low < -0.5


class TestVolatility:

    def test_bell_curve_shape(self):
        assert DynamicsEngine.bell_curve(0.0) == 0.0
        assert DynamicsEngine.bell_curve(1.0) == 0.0
        assert DynamicsEngine.bell_curve(0.5) == 1.0

    def test_sigma_peaks_in_transition_zone(self):
        engine = DynamicsEngine.for_agent(0.1, 1.0)
        mid = engine.effective_sigma(5.5)
        assert engine.effective_sigma(2) < engine.effective_sigma(8) < mid
        assert engine.effective_sigma(1) < mid
        assert engine.effective_sigma(10) < mid

    @pytest.mark.parametrize("rigor", [0.0, 0.5, 1.0])
    def test_sigma_strictly_positive(self, rigor):
        engine = DynamicsEngine.for_agent(rigor, 1.0)
        assert all(engine.effective_sigma(h) > 0 for h in HEALTH_GRID)

    def test_attenuation_has_floor(self):
        engine = DynamicsEngine.for_agent(0.3, 0.85)
        for state in (0.0, 0.25, 0.5, 1.0):
            assert engine.variance_attenuation(state) >= DEFAULT_PARAMS.attenuation_floor

    def test_attenuation_boost_only_for_improving_agents(self):
        degrading = DynamicsEngine.for_agent(0.1, 0.5)
        improving = DynamicsEngine.for_agent(0.7, 0.5)
        bell = DynamicsEngine.bell_curve(0.6)
        base = DEFAULT_PARAMS.attenuation_floor + DEFAULT_PARAMS.attenuation_range * bell
        assert degrading.variance_attenuation(0.6) == pytest.approx(base)
        assert improving.variance_attenuation(0.6) > base


class TestCeilingResistance:

    def test_no_resistance_at_or_below_ceiling(self):
        engine = DynamicsEngine.for_agent(0.8, 0.5)
        assert engine.ceiling_resistance(5) == 1.0
        assert engine.ceiling_resistance(engine.traits.max_health) == 1.0

    def test_exponential_decay_above_ceiling(self):
        engine = DynamicsEngine.for_agent(0.8, 0.5)
        expected = math.exp(-DEFAULT_PARAMS.ceiling_decay * (9.5 - 9.0) / 9.0)
        assert engine.ceiling_resistance(9.5) == pytest.approx(expected)
        assert engine.ceiling_resistance(10) < engine.ceiling_resistance(9.5) < 1.0


class TestDriftAndTime:

    def test_drift_is_never_positive(self):
        engine = DynamicsEngine.for_agent(0.9, 0.7)
        assert all(engine.complexity_drift(s, n) <= 0 for s in (0, 0.5, 1) for n in (0, 100, 5000))

    def test_drift_grows_with_change_count(self):
        engine = DynamicsEngine.for_agent(0.5, 1.0)
        assert engine.complexity_drift(0.8, 1000) < engine.complexity_drift(0.8, 0) < 0

    def test_no_drift_for_trivial_system(self):
        assert DynamicsEngine.for_agent(0.5, 0.0).complexity_drift(0.8, 500) == 0.0

    def test_time_cost_bounds(self):
        engine = DynamicsEngine.for_agent(0.3, 1.0)
        assert engine.time_cost(10) == pytest.approx(DEFAULT_PARAMS.time_base)
        assert engine.time_cost(1) == pytest.approx(DEFAULT_PARAMS.time_max)
        costs = [engine.time_cost(h) for h in HEALTH_GRID]
        assert all(DEFAULT_PARAMS.time_base <= c <= DEFAULT_PARAMS.time_max for c in costs)
        assert all(b < a for a, b in zip(costs, costs[1:]))


class TestSampleNextHealth:

    def test_breakeven_agent_moves_by_noise_and_drift_only(self):
        """With zero base impact the step is drift plus the attenuated noise term."""
        params = ModelParams(breakeven_curve=BREAKEVEN_LINEAR)
        engine = DynamicsEngine.for_agent(0.5, 1.0, params)
        assert engine.traits.base_impact == 0.0
        assert engine.expected_impact(5) == 0.0

        state = engine.system_state(5)
        noise = (
            engine.effective_sigma(5)
            * engine.variance_attenuation(state)
            * engine.ceiling_resistance(5)
            * gaussian_sample(const(0.5))
        )
        expected = 5 + engine.complexity_drift(state, 0) + noise
        assert engine.sample_next_health(5, 0, const(0.5)) == pytest.approx(expected)
        assert 4.5 < expected < 5

    def test_clamped_at_bottom_of_scale(self):
        """A degrading agent one step above the floor lands exactly on it."""
        engine = DynamicsEngine.for_agent(0.1, 1.0)
        assert engine.sample_next_health(1.05, 0, draws(0.999999, 0.5)) == 1
        assert engine.sample_next_health(1.05, 0, const(0.5)) == 1

    def test_clamped_at_top_of_scale(self):
        """A perfect agent on a simple system can overshoot 10 on a large draw."""
        engine = DynamicsEngine.for_agent(1.0, 0.0)
        assert engine.traits.max_health == 10
        assert engine.sample_next_health(9.99, 0, draws(0.999999, 0.0)) == 10

    def test_ceiling_resistance_dampens_both_directions(self):
        engine = DynamicsEngine.for_agent(0.8, 0.5)
        health = 9.5
        assert health > engine.traits.max_health
        assert engine.expected_impact(health) == 0.0
        resistance = engine.ceiling_resistance(health)
        assert resistance < 1

        state = engine.system_state(health)
        drift = engine.complexity_drift(state, 0)
        magnitude = math.sqrt(-2 * math.log(1 - 0.9))
        damped = engine.effective_sigma(health) * engine.variance_attenuation(state) * resistance * magnitude

        up = engine.sample_next_health(health, 0, draws(0.9, 0.0))
        down = engine.sample_next_health(health, 0, draws(0.9, 0.5))
        assert up == pytest.approx(health + drift + damped)
        assert down == pytest.approx(health + drift - damped)

    def test_clamped_at_top_above_ceiling(self):
        engine = DynamicsEngine.for_agent(0.8, 0.5)
        assert engine.sample_next_health(9.5, 0, const(0.999)) <= 10
        assert engine.sample_next_health(10, 0, const(0.001)) <= 10

    def test_deterministic_with_fixed_uniform(self):
        a = DynamicsEngine.for_agent(0.5, 1.0)
        b = DynamicsEngine.for_agent(0.5, 1.0)
        assert a.sample_next_health(5, 0, const(0.5)) == b.sample_next_health(5, 0, const(0.5))
