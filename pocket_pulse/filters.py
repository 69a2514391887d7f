"""Search and structured filtering of transaction lists."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Iterable, List, Mapping, Optional, Union

import pandas as pd

from .frames import TransactionLike, as_transactions, transactions_frame
from .models import Transaction


@dataclass
class TransactionFilters:
    """Structured filter set; empty values mean "no constraint"."""

    type: Optional[str] = None
    category: Optional[str] = None
    account: Optional[str] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    amount_min: Union[str, float, None] = None
    amount_max: Union[str, float, None] = None

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'TransactionFilters':
        if not data:
            return cls()
        aliases = {
            'dateFrom': 'date_from',
            'dateTo': 'date_to',
            'amountMin': 'amount_min',
            'amountMax': 'amount_max',
        }
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            name = aliases.get(key, key)
            if name in known:
                kwargs[name] = value
        return cls(**kwargs)

    def is_empty(self) -> bool:
        return not any(_is_set(getattr(self, f.name)) for f in fields(self))


def _is_set(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ''
    return True


def _as_bound(value: Any) -> Optional[float]:
    """Parse an amount bound; unset or unparsable bounds impose nothing."""
    if not _is_set(value):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _amount_text(amount: Any) -> str:
    """Render an amount the way users type it: 50 not 50.0, 12.5 not 12.50."""
    try:
        number = float(amount)
    except (TypeError, ValueError):
        return str(amount)
    if number.is_integer():
        return str(int(number))
    return repr(number)


def filter_transactions(
    transactions: Iterable[TransactionLike] | None,
    search_term: Optional[str] = '',
    filters: Union[TransactionFilters, Mapping[str, Any], None] = None,
) -> List[Transaction]:
    """Return the transactions matching the search term and every active filter.

    The search is a case-insensitive substring match on description,
    category, income source or the amount. Date and amount bounds are
    inclusive. Input order is preserved and the input list is not modified.
    """
    records = as_transactions(transactions)
    if not records:
        return []
    if not isinstance(filters, TransactionFilters):
        filters = TransactionFilters.from_dict(filters)

    df = transactions_frame(records)
    mask = pd.Series(True, index=df.index)

    term = (search_term or '').lower()
    if term:
        text_match = pd.Series(False, index=df.index)
        for column in ('description', 'category', 'income_source'):
            text_match |= df[column].fillna('').astype(str).str.lower().str.contains(term, regex=False)
        amounts = pd.Series([_amount_text(txn.amount) for txn in records], index=df.index)
        text_match |= amounts.str.contains(term, regex=False)
        mask &= text_match

    for column in ('type', 'category', 'account'):
        wanted = getattr(filters, column)
        if _is_set(wanted):
            mask &= df[column] == wanted

    if _is_set(filters.date_from):
        mask &= df['date'] >= filters.date_from
    if _is_set(filters.date_to):
        mask &= df['date'] <= filters.date_to

    amount_min = _as_bound(filters.amount_min)
    if amount_min is not None:
        mask &= df['amount'] >= amount_min
    amount_max = _as_bound(filters.amount_max)
    if amount_max is not None:
        mask &= df['amount'] <= amount_max

    return [records[int(position)] for position in df.loc[mask, 'position']]
