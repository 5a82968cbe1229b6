"""
Configuration for the Product Health Simulator.

Defines the tunable model constants, the agent and system-complexity
profiles, and the named scenario presets used by the CLI and dashboard.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


class ConfigurationError(ValueError):
    """Raised for unknown presets or out-of-domain configuration values."""


# Tractability curve shapes
CURVE_POWER = "power"
CURVE_LOGISTIC = "logistic"

# Breakeven rigor curve shapes
BREAKEVEN_LINEAR = "linear"
BREAKEVEN_EXPONENTIAL = "exponential"


@dataclass
class ModelParams:
    """All tunable constants for the product health dynamics."""

    # --- Expected Impact ---
    impact_slope: float = 2.4  # how much ER matters per unit above breakeven

    # --- Breakeven Rigor ---
    # ER at which expected impact is zero; rises with system complexity
    breakeven_curve: str = BREAKEVEN_EXPONENTIAL
    breakeven_baseline: float = 0.25  # trivial systems
    breakeven_linear_slope: float = 0.25
    breakeven_exp_scale: float = 0.00109  # SC=0.85 -> ~0.5, SC=1.0 -> ~0.9
    breakeven_exp_rate: float = 6.4

    # --- Volatility ---
    sigma_min: float = 0.1  # perfect rigor, still not deterministic
    sigma_max: float = 0.5  # zero rigor

    # --- Personal Ceiling ---
    ceiling_base: float = 5.0
    ceiling_slope: float = 5.0  # base + slope = 10 at perfect rigor

    # --- Health Scale ---
    health_min: float = 1.0
    health_max: float = 10.0

    # --- Tractability ---
    tractability_curve: str = CURVE_POWER
    traction_exponent: float = 1.5  # improvement traction
    state_exponent: float = 1.0  # system state for variance, drift and time
    logistic_midpoint: float = 5.0
    logistic_steepness: float = 1.5
    complexity_floor_exponent: float = 4.0  # floor = (1 - SC)^4

    # --- Sigma Scale (bell curve over system state) ---
    sigma_scale_floor: float = 0.15
    sigma_scale_range: float = 0.85

    # --- Variance Attenuation ---
    attenuation_floor: float = 0.4
    attenuation_range: float = 0.6
    improvement_variance: float = 2.0  # extra spread for imperfect agents improving complex systems

    # --- Diminishing Returns ---
    ceiling_factor_exponent: float = 2.0

    # --- Ceiling Resistance ---
    ceiling_decay: float = 5.0  # noise dampening per unit of fractional overshoot

    # --- Complexity Drift ---
    drift_base: float = 0.001
    drift_growth: float = 2e-6  # per accumulated change

    # --- Time Cost ---
    time_base: float = 1.0  # healthy system, one unit of work per change
    time_max: float = 3.0  # frozen system


DEFAULT_PARAMS = ModelParams()


@dataclass
class TrajectoryConfig:
    """A single-agent run."""

    n_changes: int
    engineering_rigor: float
    start_value: float = 8.0
    system_complexity: float = 1.0
    failure_threshold: float = 3.0

    def __post_init__(self):
        if self.n_changes < 0:
            raise ConfigurationError(f"n_changes must be >= 0, got {self.n_changes}")


@dataclass
class PhaseConfig:
    """One agent's stint in a multi-phase (handoff) run."""

    n_changes: int
    engineering_rigor: float
    start_value: Optional[float] = None

    def __post_init__(self):
        if self.n_changes < 0:
            raise ConfigurationError(f"n_changes must be >= 0, got {self.n_changes}")


@dataclass
class AgentProfile:
    name: str
    engineering_rigor: float


@dataclass
class ComplexityProfile:
    label: str
    system_complexity: float
    description: str


@dataclass
class ScenarioConfig:
    """A named preset: one agent throughout, or an ordered list of phases."""

    label: str
    engineering_rigor: float
    n_changes: int = 1000
    start_value: float = 8.0
    phases: List[PhaseConfig] = field(default_factory=list)

    @property
    def is_handoff(self) -> bool:
        return bool(self.phases)


AGENT_PROFILES: Dict[str, AgentProfile] = {
    "ai-vibe": AgentProfile("AI Vibe Coder", 0.3),  # no tests, no structure
    "ai-guardrails": AgentProfile("AI with Guardrails", 0.4),  # review, basic tests
    "junior": AgentProfile("Junior Engineer", 0.5),
    "senior": AgentProfile("Senior Engineer", 0.8),
}

COMPLEXITY_PROFILES: Dict[str, ComplexityProfile] = {
    "simple": ComplexityProfile(
        "Simple System", 0.25,
        "Off-the-shelf tools suffice (blog, marketing site, basic CMS)",
    ),
    "medium": ComplexityProfile(
        "Medium System", 0.5,
        "Standard SaaS app, libraries handle most logic",
    ),
    "enterprise": ComplexityProfile(
        "Enterprise System", 0.85,
        "Complex business rules, bespoke domain logic, many integrations",
    ),
}

DEFAULT_CHANGES = 1000
DEFAULT_START = 8.0
HANDOFF_FRACTION = 0.2  # share of the run before the second agent takes over


def _handoff(label: str, second: str) -> ScenarioConfig:
    first_changes = int(DEFAULT_CHANGES * HANDOFF_FRACTION)
    return ScenarioConfig(
        label,
        AGENT_PROFILES["ai-vibe"].engineering_rigor,
        phases=[
            PhaseConfig(first_changes, AGENT_PROFILES["ai-vibe"].engineering_rigor, DEFAULT_START),
            PhaseConfig(
                DEFAULT_CHANGES - first_changes,
                AGENT_PROFILES[second].engineering_rigor,
            ),
        ],
    )


# Named scenario presets
SCENARIOS: Dict[str, ScenarioConfig] = {
    "ai-vibe": ScenarioConfig(
        "AI Vibe Coding", AGENT_PROFILES["ai-vibe"].engineering_rigor,
    ),
    "ai-guardrails": ScenarioConfig(
        "AI with Guardrails", AGENT_PROFILES["ai-guardrails"].engineering_rigor,
    ),
    "junior-engineer": ScenarioConfig(
        "Junior Engineer", AGENT_PROFILES["junior"].engineering_rigor,
    ),
    "senior-engineers": ScenarioConfig(
        "Senior Engineers", AGENT_PROFILES["senior"].engineering_rigor,
    ),
    "ai-handoff": _handoff("AI to Senior Handoff", "senior"),
    "ai-junior-handoff": _handoff("AI to Junior Handoff", "junior"),
}


def get_scenario(key: str) -> ScenarioConfig:
    try:
        return SCENARIOS[key]
    except KeyError:
        raise ConfigurationError(
            f"Unknown scenario {key!r}. Options: {', '.join(SCENARIOS)}"
        ) from None


def get_complexity_profile(key: str) -> ComplexityProfile:
    try:
        return COMPLEXITY_PROFILES[key]
    except KeyError:
        raise ConfigurationError(
            f"Unknown complexity {key!r}. Options: {', '.join(COMPLEXITY_PROFILES)}"
        ) from None


def change_labels(n_changes: int) -> List[int]:
    """X-axis positions for a trajectory: 0 (start) through n_changes."""
    return list(range(n_changes + 1))
