"""Category breakdown, category choices and daily cash-flow series."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

import pandas as pd

from .config import EXPENSE_CATEGORIES, INCOME_SOURCES
from .dates import DateLike, current_month, month_dates
from .frames import TransactionLike, expense_rows, transactions_frame


def spending_by_category(transactions: Iterable[TransactionLike] | None) -> List[Dict[str, object]]:
    """Sum expense amounts per category.

    Returns ``[{'name': category, 'value': total}, ...]`` in order of first
    appearance, totals rounded to cents.
    """
    df = transactions_frame(transactions)
    expenses = expense_rows(df)
    if expenses.empty:
        return []
    totals = expenses.groupby('category', sort=False, dropna=False)['amount'].sum()
    return [
        {'name': None if pd.isna(name) else name, 'value': round(float(value), 2)}
        for name, value in totals.items()
    ]


def category_options(transactions: Iterable[TransactionLike] | None = None, kind: str = 'expense') -> List[str]:
    """Default categories (or income sources) followed by custom ones in use.

    Custom names are matched case-insensitively against the list so far and
    appended in order of first appearance.
    """
    if kind == 'expense':
        options, column = list(EXPENSE_CATEGORIES), 'category'
    elif kind == 'income':
        options, column = list(INCOME_SOURCES), 'income_source'
    else:
        raise ValueError(f"unknown category kind: {kind!r}")

    df = transactions_frame(transactions)
    seen = {name.lower() for name in options}
    for name in df.loc[df['type'] == kind, column].dropna():
        text = str(name).strip()
        if text and text.lower() not in seen:
            seen.add(text.lower())
            options.append(text)
    return options


def daily_cash_flow(
    transactions: Iterable[TransactionLike] | None,
    now: Optional[DateLike] = None,
) -> List[Dict[str, object]]:
    """Income, expense and net for every day of the current month.

    The series is dense: one record per calendar day, zero-filled, sorted by
    date. ``day`` is the 1-based day-of-month label.
    """
    dates = month_dates(now)
    month_key = current_month(now)
    df = transactions_frame(transactions)
    df = df[
        (df['amount'] != 0)
        & df['type'].isin(['income', 'expense'])
        & df['date'].astype(str).str.startswith(month_key)
    ]

    if df.empty:
        pivot = pd.DataFrame(0.0, index=dates, columns=['income', 'expense'])
    else:
        pivot = (
            df.pivot_table(index='date', columns='type', values='amount', aggfunc='sum', fill_value=0.0)
            .reindex(index=dates, columns=['income', 'expense'], fill_value=0.0)
            .fillna(0.0)
        )

    series = []
    for position, (date_key, row) in enumerate(pivot.iterrows(), start=1):
        income = float(row['income'])
        expense = float(row['expense'])
        series.append({
            'day': str(position),
            'date': date_key,
            'income': round(income, 2),
            'expense': round(expense, 2),
            'net': round(income - expense, 2),
        })
    return series
