"""Plotly figures for the dashboard view models.

Each function takes the plain records produced by :mod:`aggregations` or
:mod:`budgets` and returns a ``plotly.graph_objects.Figure`` that a front
end can render as is.
"""

from __future__ import annotations

from typing import Dict, List, Mapping

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .budgets import BudgetProgress


def _empty_figure(message: str) -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title=message)
    return fig


def create_category_pie_chart(categories: List[Dict[str, object]], title: str | None = None) -> go.Figure:
    """Pie chart of expense totals per category.

    Parameters
    ----------
    categories : list of dict
        ``[{'name': ..., 'value': ...}]`` as returned by
        :func:`aggregations.spending_by_category`.
    title : str, optional
        Chart title.
    """
    if not categories:
        return _empty_figure("No expenses to display")
    df = pd.DataFrame(categories).fillna({'name': 'Uncategorized'})
    fig = px.pie(df, names="name", values="value")
    fig.update_layout(title=title or "Spending by category")
    return fig


def create_cash_flow_chart(series: List[Dict[str, object]], title: str | None = None) -> go.Figure:
    """Grouped daily income/expense bars with the net as a line."""
    if not series:
        return _empty_figure("No cash flow to display")
    df = pd.DataFrame(series)
    fig = go.Figure()
    fig.add_trace(go.Bar(x=df["day"], y=df["income"], name="Income", marker_color="#22C55E"))
    fig.add_trace(go.Bar(x=df["day"], y=df["expense"], name="Expense", marker_color="#EF4444"))
    fig.add_trace(go.Scatter(x=df["day"], y=df["net"], name="Net", mode="lines+markers"))
    fig.update_layout(
        title=title or "Daily cash flow",
        barmode="group",
        xaxis_title="Day of month",
        yaxis_title="Amount",
    )
    return fig


def create_budget_chart(progress: Mapping[str, BudgetProgress], title: str | None = None) -> go.Figure:
    """Horizontal bars of the share of each budget used (capped at 100%)."""
    if not progress:
        return _empty_figure("No budgets to display")
    df = pd.DataFrame(
        [{"Category": category, "Used": item.percentage, "Spent": item.spent} for category, item in progress.items()]
    )
    fig = px.bar(df, x="Used", y="Category", orientation="h", hover_data=["Spent"], range_x=[0, 100])
    fig.update_layout(title=title or "Budget usage (%)", xaxis_title="% of limit", yaxis_title="")
    return fig
