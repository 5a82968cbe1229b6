"""
Product Health Simulator - Interactive Dashboard

Monte Carlo model of how codebase health evolves under repeated changes
by agents of differing engineering rigor, including handoffs where a
second agent takes over a degraded codebase.

Run with: streamlit run app.py
"""

from dataclasses import asdict, replace

import streamlit as st
import plotly.graph_objects as go
import plotly.express as px
import pandas as pd

from healthsim.config import (
    AGENT_PROFILES,
    COMPLEXITY_PROFILES,
    DEFAULT_PARAMS,
    HANDOFF_FRACTION,
    ModelParams,
    PhaseConfig,
    TrajectoryConfig,
    change_labels,
)
from healthsim.dynamics import DynamicsEngine
from healthsim.model import AgentTraits, breakeven_rigor
from healthsim.runner import run_phased_trajectories, run_trajectories
from healthsim.statistics import summarize_runs

# ── Page config ──────────────────────────────────────────────────────
st.set_page_config(
    page_title="Product Health Simulator",
    layout="wide",
    initial_sidebar_state="expanded",
)

COLORS = px.colors.qualitative.Set2
AGENT_COLORS = {p.name: COLORS[i % len(COLORS)] for i, p in enumerate(AGENT_PROFILES.values())}
HANDOFF_COLOR = "#8b5cf6"
SWEEP_STEPS = [("-20%", 0.8), ("+20%", 1.2)]  # multipliers for the sensitivity sweep

# Common layout for all charts
CHART_THEME = dict(
    template="simple_white",
    paper_bgcolor="rgba(0,0,0,0)",
    plot_bgcolor="rgba(0,0,0,0)",
    font=dict(color="#262730"),
)


def hex_to_rgba(color, alpha):
    color = color.lstrip("#")
    if color.startswith("rgb"):
        return color.replace("rgb(", "rgba(").replace(")", f",{alpha})")
    r, g, b = (int(color[i:i + 2], 16) for i in (0, 2, 4))
    return f"rgba({r},{g},{b},{alpha})"


# ── Helper: band chart ───────────────────────────────────────────────
def band_chart(x, series, title, show_bands=True, failure_threshold=None, height=460):
    """Average line per agent with a shaded p10-p90 band behind it."""
    fig = go.Figure()
    for name, (stats, color) in series.items():
        if show_bands:
            fig.add_trace(
                go.Scatter(
                    x=x, y=stats.p90_trajectory, mode="lines",
                    line=dict(width=0), hoverinfo="skip", showlegend=False,
                    legendgroup=name,
                )
            )
            fig.add_trace(
                go.Scatter(
                    x=x, y=stats.p10_trajectory, mode="lines",
                    line=dict(width=0), fill="tonexty",
                    fillcolor=hex_to_rgba(color, 0.15),
                    hoverinfo="skip", showlegend=False, legendgroup=name,
                )
            )
        fig.add_trace(
            go.Scatter(
                x=x, y=stats.average_trajectory, name=name, mode="lines",
                line=dict(color=color, width=2.5), legendgroup=name,
                hovertemplate=name + ": %{y:.2f}<extra></extra>",
            )
        )
    if failure_threshold is not None:
        fig.add_hline(
            y=failure_threshold, line_dash="dot", line_color="#d62728",
            annotation_text="failure threshold", annotation_position="bottom right",
        )
    fig.update_layout(
        **CHART_THEME,
        title=dict(text=title, font=dict(size=14)),
        xaxis_title="Changes", yaxis_title="Product Health",
        yaxis=dict(range=[1, 10]), height=height,
        margin=dict(l=50, r=20, t=35, b=30),
        hovermode="x unified",
        legend=dict(orientation="h", yanchor="bottom", y=-0.3, font=dict(size=10)),
    )
    return fig


def curve_chart(x, series_dict, title, yaxis, height=320):
    fig = go.Figure()
    for i, (name, vals) in enumerate(series_dict.items()):
        fig.add_trace(
            go.Scatter(
                x=x, y=vals, name=name, mode="lines",
                line=dict(color=AGENT_COLORS.get(name, COLORS[i % len(COLORS)]), width=2),
            )
        )
    fig.update_layout(
        **CHART_THEME,
        title=dict(text=title, font=dict(size=14)),
        xaxis_title="Product Health", yaxis_title=yaxis, height=height,
        margin=dict(l=50, r=20, t=35, b=30),
        hovermode="x unified",
        legend=dict(orientation="h", yanchor="bottom", y=-0.35, font=dict(size=10)),
    )
    return fig


def sensitivity_chart(rows, metric, title, xaxis, steps, colors):
    """Horizontal bars per constant, one overlaid series per sweep step.

    ``rows`` is a frame with ``param`` and ``step`` columns; constants whose
    steps move ``metric`` the most are drawn at the top.
    """
    table = rows.pivot(index="param", columns="step", values=metric)
    table = table.loc[table.abs().sum(axis=1).sort_values().index]

    fig = go.Figure()
    for (label, _), color in zip(steps, colors):
        fig.add_trace(go.Bar(
            y=table.index, x=table[label], name=label,
            orientation="h", marker_color=color,
        ))
    fig.update_layout(
        **CHART_THEME,
        title=dict(text=title, font=dict(size=14)),
        xaxis_title=xaxis, barmode="overlay", height=340,
        margin=dict(l=160, r=20, t=40, b=30),
        legend=dict(orientation="h", yanchor="bottom", y=-0.2),
    )
    fig.add_vline(x=0, line_color="#888", line_width=1)
    return fig


# ── Cached simulation ────────────────────────────────────────────────
@st.cache_data
def simulate_agent(rigor, system_complexity, n_changes, n_runs, seed, params_dict, failure_threshold=3.0):
    params = ModelParams(**params_dict)
    config = TrajectoryConfig(
        n_changes=n_changes, engineering_rigor=rigor,
        start_value=8.0, system_complexity=system_complexity,
        failure_threshold=failure_threshold,
    )
    runs = run_trajectories(config, n_runs, seed, params=params)
    return summarize_runs(runs, failure_threshold)


@st.cache_data
def simulate_handoff(first_rigor, second_rigor, system_complexity, n_changes, n_runs, seed,
                     params_dict, failure_threshold=3.0):
    params = ModelParams(**params_dict)
    handoff_at = int(n_changes * HANDOFF_FRACTION)
    phases = [
        PhaseConfig(handoff_at, first_rigor),
        PhaseConfig(n_changes - handoff_at, second_rigor),
    ]
    runs = run_phased_trajectories(phases, 8.0, system_complexity, n_runs, seed, params=params)
    return summarize_runs(runs, failure_threshold)


# ── Sidebar ──────────────────────────────────────────────────────────
st.sidebar.title("Simulation Controls")

profile_key = st.sidebar.selectbox(
    "System Complexity",
    list(COMPLEXITY_PROFILES.keys()) + ["custom"],
    index=2,  # default to enterprise
    format_func=lambda k: COMPLEXITY_PROFILES[k].label if k in COMPLEXITY_PROFILES else "Custom",
)
if profile_key == "custom":
    system_complexity = st.sidebar.slider("System Complexity (SC)", 0.0, 1.0, 0.7, step=0.05)
else:
    system_complexity = COMPLEXITY_PROFILES[profile_key].system_complexity
    st.sidebar.caption(COMPLEXITY_PROFILES[profile_key].description)

with st.sidebar.expander("Run Settings", expanded=True):
    n_changes = st.select_slider("Changes per run", [250, 500, 1000, 2000], value=1000)
    n_runs = st.slider(
        "Simulations", 50, 800, 200, step=50,
        help="Number of runs to average. Higher values are smoother but slower.",
    )
    seed = st.number_input("Seed", 0, 1_000_000, 42, step=1)
    show_bands = st.checkbox("Show p10-p90 bands", value=True)

with st.sidebar.expander("Agents", expanded=True):
    rigors = {}
    for key, profile in AGENT_PROFILES.items():
        rigors[profile.name] = st.slider(
            f"{profile.name} rigor", 0.0, 1.0, profile.engineering_rigor,
            step=0.05, key=f"er_{key}",
        )

with st.sidebar.expander("Handoff", expanded=False):
    enable_handoff = st.checkbox("Simulate handoff", value=True)
    agent_names = list(rigors)
    handoff_from = st.selectbox("First agent", agent_names, index=0)
    handoff_to = st.selectbox("Takes over at 20%", agent_names, index=len(agent_names) - 1)

with st.sidebar.expander("Advanced", expanded=False):
    failure_threshold = st.slider("Failure Threshold (PH)", 1.0, 6.0, 3.0, step=0.5)
    tractability_curve = st.selectbox("Tractability Curve", ["power", "logistic"])
    floor_exponent = st.slider(
        "Complexity Floor Exponent", 1.0, 6.0, DEFAULT_PARAMS.complexity_floor_exponent,
        step=0.5, help="Simplicity floor = (1 - SC)^exponent",
    )
    breakeven_curve = st.selectbox("Breakeven Curve", ["exponential", "linear"])

params = replace(
    DEFAULT_PARAMS,
    tractability_curve=tractability_curve,
    complexity_floor_exponent=floor_exponent,
    breakeven_curve=breakeven_curve,
)
params_dict = asdict(params)

# ── Run simulations ──────────────────────────────────────────────────
series = {}
for name, rigor in rigors.items():
    stats = simulate_agent(
        rigor, system_complexity, n_changes, n_runs, int(seed), params_dict, failure_threshold,
    )
    series[name] = (stats, AGENT_COLORS[name])

handoff_name = f"{handoff_from} → {handoff_to}"
if enable_handoff:
    stats = simulate_handoff(
        rigors[handoff_from], rigors[handoff_to], system_complexity,
        n_changes, n_runs, int(seed), params_dict, failure_threshold,
    )
    series[handoff_name] = (stats, HANDOFF_COLOR)

x = change_labels(n_changes)

# ── Header ───────────────────────────────────────────────────────────
st.title("Product Health Simulator")
st.markdown(
    "How codebase health evolves under repeated changes. Each agent's "
    "**Engineering Rigor** fixes its ceiling, its expected impact, and how "
    "unpredictable its changes are; the system's **complexity** decides how "
    "much rigor it takes just to break even."
)

# Key metrics row
cols = st.columns(len(series))
for col, (name, (stats, _)) in zip(cols, series.items()):
    col.metric(
        name, f"{stats.average_final:.1f} PH",
        f"{stats.average_final - 8.0:+.1f}",
    )
    col.caption(f"Time overhead {stats.time_overhead_percent:+.0f}%")

# ── Tabs ─────────────────────────────────────────────────────────────
tab_health, tab_time, tab_model, tab_method = st.tabs(
    ["Product Health", "Velocity", "Agent Model", "Methodology"]
)

# ── TAB: Product Health ──────────────────────────────────────────────
with tab_health:
    st.plotly_chart(
        band_chart(
            x, series, "Product Health over Changes (average, p10-p90)",
            show_bands=show_bands, failure_threshold=failure_threshold,
        ),
        use_container_width=True,
    )

    summary = pd.DataFrame([
        {
            "Agent": name,
            "Final PH": stats.average_final,
            "Minimum PH": stats.average_min,
            "p10 Final": stats.p10_trajectory[-1],
            "p90 Final": stats.p90_trajectory[-1],
            "Failure Rate": stats.failure_rate,
        }
        for name, (stats, _) in series.items()
    ])
    st.dataframe(summary, hide_index=True, use_container_width=True)

# ── TAB: Velocity ────────────────────────────────────────────────────
with tab_time:
    time_df = pd.DataFrame([
        {
            "Agent": name,
            "Total Time": stats.average_total_time,
            "Baseline": stats.baseline_time,
            "Time per Change": stats.average_time_per_change,
            "Overhead (%)": stats.time_overhead_percent,
        }
        for name, (stats, _) in series.items()
    ])
    fig = go.Figure(
        go.Bar(
            x=time_df["Agent"], y=time_df["Overhead (%)"],
            marker_color=[color for _, color in series.values()],
        )
    )
    fig.update_layout(
        **CHART_THEME,
        title=dict(text="Time Overhead vs Healthy Baseline (%)", font=dict(size=14)),
        yaxis_title="%", height=340,
        margin=dict(l=50, r=20, t=35, b=30),
    )
    st.plotly_chart(fig, use_container_width=True)
    st.dataframe(time_df, hide_index=True, use_container_width=True)

# ── TAB: Agent Model ─────────────────────────────────────────────────
with tab_model:
    health_grid = [1 + 0.1 * i for i in range(91)]
    engines = {
        name: DynamicsEngine(AgentTraits.from_inputs(rigor, system_complexity, params), params)
        for name, rigor in rigors.items()
    }

    col1, col2 = st.columns(2)
    with col1:
        st.plotly_chart(
            curve_chart(
                health_grid,
                {n: [e.expected_impact(h) for h in health_grid] for n, e in engines.items()},
                "Expected Impact per Change", "ΔPH",
            ),
            use_container_width=True,
        )
    with col2:
        st.plotly_chart(
            curve_chart(
                health_grid,
                {n: [e.effective_sigma(h) for h in health_grid] for n, e in engines.items()},
                "Effective Volatility (σ)", "σ",
            ),
            use_container_width=True,
        )

    st.subheader(f"Agent Traits at SC={system_complexity:.2f}")
    st.caption(f"Breakeven rigor: {breakeven_rigor(system_complexity, params):.3f}")
    traits_df = pd.DataFrame([
        {
            "Agent": name,
            "Rigor": e.traits.engineering_rigor,
            "Ceiling": round(e.traits.max_health, 2),
            "Base Impact": round(e.traits.base_impact, 3),
            "Base σ": round(e.traits.base_sigma, 3),
        }
        for name, e in engines.items()
    ])
    st.dataframe(traits_df, hide_index=True, use_container_width=True)

# ── TAB: Methodology ─────────────────────────────────────────────────
with tab_method:
    st.header("Model Structure")
    st.markdown("""
Each change event samples a health delta from a normal distribution whose
mean and spread depend on the agent and the current state of the codebase:

1. **Ceiling**: Higher rigor raises the health an agent can sustain (5 + 5 × ER)
2. **Breakeven**: Complex systems need more rigor just to avoid net damage
3. **Traction**: Improvements land poorly in degraded systems and well in healthy ones
4. **Fragility**: Damage from low-rigor agents cascades in low-health, complex systems
5. **Diminishing Returns**: Improvement slows near the agent's ceiling and stops at it
6. **Bell-Curve Volatility**: Outcomes are most uncertain between pristine and frozen
7. **Ceiling Resistance**: Above the ceiling, all noise is dampened so health plateaus
8. **Complexity Drift**: Maintenance debt grows with every change applied
9. **Velocity Loss**: Changes to degraded systems take up to 3× longer
""")

    st.header("Key Assumptions")
    st.markdown("""
- Product health is a single 1-10 scalar; 1 means nothing can be changed safely
- Rigor is fixed for an agent; complexity is fixed for a system
- Simple systems never freeze completely (a tractability floor of (1 - SC)^4)
- A handoff carries health, elapsed time and accumulated complexity to the next agent
""")

    st.header("Model Constants")
    const_df = pd.DataFrame(
        {"Parameter": list(params_dict.keys()), "Value": [str(v) for v in params_dict.values()]}
    )
    st.dataframe(const_df, hide_index=True, use_container_width=True)

    st.header("Known Limitations")
    st.markdown("""
- **Illustrative, not validated**: the recurrence reproduces qualitative dynamics, not measured data.
- **Single scalar health**: no distinction between test coverage, architecture, or documentation debt.
- **No learning**: agents do not become more rigorous over time.
- **Directions more reliable than magnitudes**: compare agents rather than reading absolute values.
""")

    # ── Sensitivity Analysis ──────────────────────────────────────
    st.header("Sensitivity Analysis")
    st.markdown(
        "Each model constant is varied **±20%** from current settings. "
        "Bars show how much the handoff scenario's final health changes."
    )

    @st.cache_data
    def run_sensitivity(base_params, first_rigor, second_rigor, sc, changes, seed):
        """Run ±20% sweeps for key constants and return final-health deltas."""
        sweep = [
            ("impact_slope", "Impact Slope"),
            ("sigma_max", "Max Sigma"),
            ("ceiling_slope", "Ceiling Slope"),
            ("traction_exponent", "Traction Exponent"),
            ("ceiling_decay", "Ceiling Decay"),
            ("drift_base", "Drift Base"),
            ("attenuation_floor", "Attenuation Floor"),
        ]
        base = simulate_handoff(first_rigor, second_rigor, sc, changes, 100, seed, base_params)
        rows = []
        for attr, label in sweep:
            for step, mult in SWEEP_STEPS:
                tweaked = dict(base_params)
                tweaked[attr] = base_params[attr] * mult
                r = simulate_handoff(first_rigor, second_rigor, sc, changes, 100, seed, tweaked)
                rows.append({
                    "param": label,
                    "step": step,
                    "final_delta": r.average_final - base.average_final,
                })
        return rows

    sens_df = pd.DataFrame(
        run_sensitivity(
            params_dict, rigors[handoff_from], rigors[handoff_to],
            system_complexity, n_changes, int(seed),
        )
    )

    st.plotly_chart(
        sensitivity_chart(
            sens_df, "final_delta", f"Final PH: {handoff_name}", "PH change",
            SWEEP_STEPS, [COLORS[2], COLORS[1]],
        ),
        use_container_width=True,
    )

# ── Footer ───────────────────────────────────────────────────────────
st.divider()
st.caption(
    "This is an illustrative Monte Carlo model for educational exploration. "
    "It captures qualitative dynamics of engineering rigor and codebase health "
    "but is not a validated software-engineering model. "
    "Parameters can be tuned in the sidebar to explore different scenarios."
)
