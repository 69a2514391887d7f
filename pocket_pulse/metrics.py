"""Headline dashboard metrics."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from .balances import balance_map
from .config import AVERAGE_EXPENSE_WINDOW_DAYS
from .dates import DateLike, current_date, current_month, days_ago, start_of_week
from .frames import TransactionLike, expense_rows, income_rows, transactions_frame
from .models import INCOME_TYPES, OUTFLOW_TYPES, Account, Summary


@dataclass
class FinancialMetrics:
    net_worth: float = 0.0
    monthly_income: float = 0.0
    monthly_expenses: float = 0.0
    daily_expenses: float = 0.0
    weekly_expenses: float = 0.0
    avg_daily_expense: float = 0.0
    savings_rate: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def savings_rate(monthly_income: float, monthly_expenses: float) -> float:
    """Share of income kept this month, as a percentage in [-100, 100]."""
    try:
        income = float(monthly_income)
        expenses = float(monthly_expenses)
    except (TypeError, ValueError):
        return 0.0
    if not income > 0:
        return 0.0
    rate = (income - expenses) / income * 100
    if math.isnan(rate):
        return 0.0
    return max(-100.0, min(100.0, rate))


def calculate_metrics(
    accounts: Union[Mapping[str, float], Iterable[Account], Iterable[Mapping], None],
    transactions: Iterable[TransactionLike] | None,
    now: Optional[DateLike] = None,
) -> FinancialMetrics:
    """Compute net worth and the month/week/day expense and income totals.

    "Now" is resolved once; the weekly window runs from Monday through today
    and the average daily expense divides the trailing 30-day total by a
    fixed 30.
    """
    net_worth = sum(balance_map(accounts).values())
    df = transactions_frame(transactions)
    if df.empty:
        return FinancialMetrics(net_worth=round(net_worth, 2))

    month_key = current_month(now)
    today_key = current_date(now)
    week_start = start_of_week(now).isoformat()
    # 30 calendar days ending today
    window_start = days_ago(AVERAGE_EXPENSE_WINDOW_DAYS - 1, now).isoformat()

    expenses = expense_rows(df)
    income = income_rows(df)

    monthly_income = float(income.loc[income['date'].str.startswith(month_key), 'amount'].sum())
    monthly_expenses = float(expenses.loc[expenses['date'].str.startswith(month_key), 'amount'].sum())
    daily_expenses = float(expenses.loc[expenses['date'] == today_key, 'amount'].sum())
    weekly_mask = (expenses['date'] >= week_start) & (expenses['date'] <= today_key)
    weekly_expenses = float(expenses.loc[weekly_mask, 'amount'].sum())
    trailing_mask = (expenses['date'] >= window_start) & (expenses['date'] <= today_key)
    trailing = float(expenses.loc[trailing_mask, 'amount'].sum())

    return FinancialMetrics(
        net_worth=round(net_worth, 2),
        monthly_income=round(monthly_income, 2),
        monthly_expenses=round(monthly_expenses, 2),
        daily_expenses=round(daily_expenses, 2),
        weekly_expenses=round(weekly_expenses, 2),
        avg_daily_expense=round(trailing / AVERAGE_EXPENSE_WINDOW_DAYS, 2),
        savings_rate=round(savings_rate(monthly_income, monthly_expenses), 2),
    )


def summarize(transactions: Iterable[TransactionLike] | None) -> Summary:
    """Income vs. outflow totals for a statement (loans count as income)."""
    df = transactions_frame(transactions)
    if df.empty:
        return Summary()
    income = float(df.loc[df['type'].isin(INCOME_TYPES), 'amount'].sum())
    expenses = float(df.loc[df['type'].isin(OUTFLOW_TYPES), 'amount'].sum())
    return Summary(income=round(income, 2), expenses=round(expenses, 2), count=len(df))
