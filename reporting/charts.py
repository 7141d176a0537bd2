"""Plotly chart generators for backtest reporting.

Each function accepts a BacktestResult and returns a go.Figure object
ready for display or export, using the plotly_dark template.
"""

import numpy as np
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from engine.backtester import BacktestResult
from engine.report import compute_drawdown

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

COLOR_GREEN = "#26a69a"
COLOR_RED = "#ef5350"
COLOR_GRAY = "#888888"
TEMPLATE = "plotly_dark"

_OUTCOME_COLORS = {"PROFIT": COLOR_GREEN, "LOSS": COLOR_RED, "FLAT": COLOR_GRAY}


def _empty_figure(message: str, title: str = "") -> go.Figure:
    """Return an empty figure with a centered annotation."""
    fig = go.Figure()
    fig.add_annotation(text=message, showarrow=False, font=dict(size=14))
    fig.update_layout(template=TEMPLATE, title=title)
    return fig


# ---------------------------------------------------------------------------
# 1. Pool Balance & Drawdown
# ---------------------------------------------------------------------------

def create_balance_chart(result: BacktestResult) -> go.Figure:
    """Pool balance after each trade (top) with drawdown % (bottom).

    The first curve point is the initial balance and has no trade time,
    so it is dropped from the plot.
    """
    balances = result.balance_curve[1:]
    timestamps = result.timestamps

    if len(balances) == 0:
        return _empty_figure("No trades processed", "Pool Balance & Drawdown")

    dd_series, _ = compute_drawdown(result.balance_curve)

    fig = make_subplots(
        rows=2, cols=1,
        shared_xaxes=True,
        vertical_spacing=0.08,
        row_heights=[0.7, 0.3],
        subplot_titles=("Pool Balance", "Drawdown %"),
    )

    fig.add_trace(
        go.Scatter(
            x=timestamps,
            y=balances,
            mode="lines",
            name="Balance",
            line=dict(color=COLOR_GREEN, width=1.5),
        ),
        row=1, col=1,
    )
    fig.add_trace(
        go.Scatter(
            x=timestamps,
            y=dd_series[1:] * 100,
            mode="lines",
            name="Drawdown",
            fill="tozeroy",
            line=dict(color=COLOR_RED, width=1),
            fillcolor="rgba(239, 83, 80, 0.3)",
        ),
        row=2, col=1,
    )

    fig.update_layout(
        title=f"Pool Balance & Drawdown ({result.report.instrument})",
        height=600,
        template=TEMPLATE,
        showlegend=False,
    )
    fig.update_yaxes(title_text="Balance (USDC)", row=1, col=1)
    fig.update_yaxes(title_text="Drawdown %", row=2, col=1)

    return fig


# ---------------------------------------------------------------------------
# 2. Interest vs Holding Period
# ---------------------------------------------------------------------------

def create_interest_scatter(result: BacktestResult) -> go.Figure:
    """Interest charged per close chunk against days held, colored by outcome."""
    fills = result.fills
    if fills.empty:
        return _empty_figure("No closed positions", "Interest by Holding Period")

    fig = go.Figure()
    for outcome, color in _OUTCOME_COLORS.items():
        subset = fills[fills["outcome"] == outcome]
        if subset.empty:
            continue
        fig.add_trace(go.Scatter(
            x=subset["days_held"],
            y=subset["interest"],
            mode="markers",
            name=outcome,
            marker=dict(
                color=color,
                size=np.clip(np.sqrt(subset["initial_cost"].to_numpy()) / 10, 4, 30),
                opacity=0.7,
            ),
        ))

    fig.update_layout(
        title="Interest by Holding Period",
        xaxis_title="Days Held",
        yaxis_title="Interest (USDC)",
        template=TEMPLATE,
    )
    return fig
