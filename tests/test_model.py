"""
tests/test_model.py - Agent traits from rigor and complexity
"""

import dataclasses
import math

import pytest

from healthsim.config import BREAKEVEN_LINEAR, DEFAULT_PARAMS, ModelParams
from healthsim.model import AgentTraits, breakeven_rigor

LINEAR = ModelParams(breakeven_curve=BREAKEVEN_LINEAR)
COMPLEXITY_GRID = [i / 20 for i in range(21)]


class TestMaxHealth:

    @pytest.mark.parametrize("rigor,expected", [(0.1, 5.5), (0.8, 9.0), (1.0, 10.0)])
    def test_ceiling_rises_with_rigor(self, rigor, expected):
        assert AgentTraits.from_inputs(rigor).max_health == pytest.approx(expected)


class TestBreakevenRigor:

    @pytest.mark.parametrize("params", [DEFAULT_PARAMS, LINEAR])
    def test_non_decreasing_in_complexity(self, params):
        values = [breakeven_rigor(sc, params) for sc in COMPLEXITY_GRID]
        assert all(b >= a for a, b in zip(values, values[1:])), values

    def test_exponential_range(self):
        """Trivial systems break even near 0.25, extreme ones need 0.9+."""
        assert breakeven_rigor(0.0) == pytest.approx(0.25, abs=0.01)
        assert breakeven_rigor(0.85) == pytest.approx(0.5, abs=0.01)
        assert breakeven_rigor(1.0) >= 0.9

    def test_linear_form(self):
        assert breakeven_rigor(0.0, LINEAR) == pytest.approx(0.25)
        assert breakeven_rigor(1.0, LINEAR) == 0.5


class TestBaseImpact:

    @pytest.mark.parametrize("sc", [0.1, 0.5, 0.85, 1.0])
    def test_zero_exactly_at_breakeven(self, sc):
        traits = AgentTraits.from_inputs(breakeven_rigor(sc), sc)
        assert traits.base_impact == 0.0
        assert not traits.improves

    @pytest.mark.parametrize("sc", [0.1, 0.5, 0.85])
    def test_sign_flips_at_breakeven(self, sc):
        breakeven = breakeven_rigor(sc)
        assert AgentTraits.from_inputs(breakeven - 0.01, sc).base_impact < 0
        assert AgentTraits.from_inputs(breakeven + 0.01, sc).base_impact > 0

    def test_same_rigor_does_less_on_complex_systems(self):
        simple = AgentTraits.from_inputs(0.9, 0.1)
        complex_ = AgentTraits.from_inputs(0.9, 0.9)
        assert complex_.base_impact < simple.base_impact

    def test_low_rigor_degrades_enterprise(self):
        assert AgentTraits.from_inputs(0.1, 1.0).base_impact < 0
        assert AgentTraits.from_inputs(0.95, 1.0).base_impact > 0


class TestBaseSigma:

    def test_decreases_with_rigor(self):
        sigmas = [AgentTraits.from_inputs(er).base_sigma for er in (0.2, 0.5, 0.8)]
        assert sigmas[0] > sigmas[1] > sigmas[2]

    def test_perfect_rigor_still_random(self):
        sigma = AgentTraits.from_inputs(1.0).base_sigma
        assert sigma > 0
        assert math.isclose(sigma, DEFAULT_PARAMS.sigma_min)


def test_traits_are_immutable():
    traits = AgentTraits.from_inputs(0.5, 0.5)
    with pytest.raises(dataclasses.FrozenInstanceError):
        traits.max_health = 10.0
