"""Budget limits and current-month progress against them."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .dates import DateLike, current_month
from .frames import TransactionLike, expense_rows, transactions_frame
from .models import Budget


@dataclass
class BudgetProgress:
    spent: float
    limit: float
    percentage: float

    @property
    def remaining(self) -> float:
        return round(_limit_value(self.limit) - self.spent, 2)

    @property
    def over_budget(self) -> bool:
        return self.spent > _limit_value(self.limit)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _limit_value(limit: Any) -> float:
    try:
        value = float(limit)
    except (TypeError, ValueError):
        return 0.0
    return value if math.isfinite(value) else 0.0


def budget_progress(
    budgets: Mapping[str, Any],
    transactions: Iterable[TransactionLike] | None,
    now: Optional[DateLike] = None,
) -> Dict[str, BudgetProgress]:
    """Spending against each budgeted category for the current month.

    ``percentage`` is capped at 100 while ``spent`` is reported as is. A
    missing or zero limit yields a percentage of 0.
    """
    if not budgets:
        return {}
    df = transactions_frame(transactions)
    expenses = expense_rows(df)
    month_key = current_month(now)
    if not expenses.empty:
        expenses = expenses[expenses['date'].str.startswith(month_key)]
        spent_by_category = expenses.groupby('category')['amount'].sum()
    else:
        spent_by_category = {}

    progress: Dict[str, BudgetProgress] = {}
    for category, raw_limit in budgets.items():
        spent = round(float(spent_by_category.get(category, 0.0)), 2)
        limit = _limit_value(raw_limit)
        percentage = min(spent / limit * 100, 100.0) if limit > 0 else 0.0
        progress[category] = BudgetProgress(spent=spent, limit=raw_limit, percentage=round(percentage, 2))
    return progress


def budgets_from_documents(documents: Iterable[Union[Budget, Mapping[str, Any]]]) -> Dict[str, float]:
    """Collapse budget documents into ``{category: limit}``."""
    result: Dict[str, float] = {}
    for doc in documents:
        budget = doc if isinstance(doc, Budget) else Budget.from_dict(dict(doc))
        result[budget.category] = budget.limit
    return result


def split_budget_updates(updates: Mapping[str, Any]) -> Tuple[Dict[str, float], List[str]]:
    """Separate a bulk edit into limits to store and categories to remove.

    Empty, non-numeric, zero or negative limits mean "remove this budget".
    """
    to_set: Dict[str, float] = {}
    to_delete: List[str] = []
    for category, raw_limit in updates.items():
        limit = _limit_value(raw_limit) if raw_limit not in (None, '') else 0.0
        if limit > 0:
            to_set[category] = limit
        else:
            to_delete.append(category)
    return to_set, to_delete
