"""Plotly visualisation helpers for the Budget Assistant.

Each function accepts records from :mod:`budget_assistant.models` and
returns a `plotly.graph_objects.Figure` that Streamlit renders via
``st.plotly_chart``.  Figures never mutate their inputs.
"""

from __future__ import annotations

from typing import Dict, Sequence

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .models import BudgetSnapshot

BUCKET_COLORS: Dict[str, str] = {
    "Splurge": "#EF553B",
    "Bills": "#636EFA",
    "Fire": "#FFA15A",
    "Smile": "#00CC96",
    "Mojo": "#AB63FA",
}


def _empty_figure(title: str = "No data to display") -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title=title)
    return fig


def allocation_breakdown(snapshot: BudgetSnapshot) -> pd.DataFrame:
    """Tabulate the five buckets of a calculation.

    Parameters
    ----------
    snapshot : BudgetSnapshot
        A calculated (saved or unsaved) budget.

    Returns
    -------
    pandas.DataFrame
        Columns ``Bucket`` and ``Amount`` (float), in display order.
    """
    return pd.DataFrame(
        {
            "Bucket": list(BUCKET_COLORS),
            "Amount": [
                float(snapshot.splurge),
                float(snapshot.bills_due),
                float(snapshot.fire_amt),
                float(snapshot.smile_amt),
                float(snapshot.mojo_amt),
            ],
        }
    )


def create_allocation_donut(snapshot: BudgetSnapshot, title: str | None = None) -> go.Figure:
    """Donut chart of where one pay cycle's income goes.

    Parameters
    ----------
    snapshot : BudgetSnapshot
        Calculation to chart.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        Pie chart with a hole.  Buckets that are zero or negative (for
        example when bills exceed income) are left out since a pie slice
        cannot be negative.
    """
    df = allocation_breakdown(snapshot)
    df = df[df["Amount"] > 0]
    if df.empty:
        return _empty_figure("Nothing to allocate")
    fig = px.pie(
        df,
        names="Bucket",
        values="Amount",
        hole=0.5,
        color="Bucket",
        color_discrete_map=BUCKET_COLORS,
    )
    fig.update_traces(textinfo="label+percent")
    fig.update_layout(title=title or "Pay cycle allocation", showlegend=True)
    return fig


def create_history_chart(snapshots: Sequence[BudgetSnapshot], title: str | None = None) -> go.Figure:
    """Line chart of total income and remaining over saved snapshots.

    Parameters
    ----------
    snapshots : sequence of BudgetSnapshot
        History in any order; points are sorted by timestamp.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        One trace per measure.
    """
    if not snapshots:
        return _empty_figure()
    df = pd.DataFrame(
        {
            "Saved": [snap.timestamp for snap in snapshots],
            "Total income": [float(snap.total_income) for snap in snapshots],
            "Remaining": [float(snap.remaining) for snap in snapshots],
        }
    ).sort_values("Saved")
    long_df = df.melt(id_vars="Saved", var_name="Measure", value_name="Amount")
    fig = px.line(long_df, x="Saved", y="Amount", color="Measure", markers=True)
    fig.update_layout(
        title=title or "Budget history",
        xaxis_title="Saved",
        yaxis_title="Amount",
    )
    return fig
