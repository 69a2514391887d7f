"""Conversion between ledger records and pandas DataFrames."""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Union

import numpy as np
import pandas as pd

from .models import INCOME_TYPES, OUTFLOW_TYPES, Account, Transaction

TRANSACTION_COLUMNS = [
    'position', 'id', 'type', 'amount', 'description', 'category',
    'income_source', 'account', 'date', 'effect',
]

TransactionLike = Union[Transaction, Mapping[str, Any]]


def as_transaction(value: TransactionLike) -> Transaction:
    """Accept a ``Transaction`` or a store document and return a ``Transaction``."""
    if isinstance(value, Transaction):
        return value
    if isinstance(value, Mapping):
        return Transaction.from_dict(dict(value))
    raise TypeError(f"expected a Transaction or mapping, got {type(value).__name__}")


def as_transactions(values: Iterable[TransactionLike] | None) -> List[Transaction]:
    return [as_transaction(value) for value in (values or [])]


def as_account(value: Union[Account, Mapping[str, Any]]) -> Account:
    if isinstance(value, Account):
        return value
    if isinstance(value, Mapping):
        return Account.from_dict(dict(value))
    raise TypeError(f"expected an Account or mapping, got {type(value).__name__}")


def transactions_frame(transactions: Iterable[TransactionLike] | None) -> pd.DataFrame:
    """Build a DataFrame with one row per transaction.

    ``position`` records the input order and ``effect`` the signed balance
    contribution (0 for unknown types). Missing amounts count as 0.
    """
    records = as_transactions(transactions)
    if not records:
        return pd.DataFrame(columns=TRANSACTION_COLUMNS)

    df = pd.DataFrame([
        {
            'position': position,
            'id': txn.id,
            'type': txn.type,
            'amount': txn.amount,
            'description': txn.description,
            'category': txn.category,
            'income_source': txn.income_source,
            'account': txn.account,
            'date': txn.date or '',
        }
        for position, txn in enumerate(records)
    ])
    df['account'] = df['account'].fillna('').astype(str)
    df['amount'] = pd.to_numeric(df['amount'], errors='coerce').fillna(0.0).astype(float)
    df['effect'] = np.where(
        df['type'].isin(INCOME_TYPES),
        df['amount'],
        np.where(df['type'].isin(OUTFLOW_TYPES), -df['amount'], 0.0),
    )
    return df[TRANSACTION_COLUMNS]


def expense_rows(df: pd.DataFrame) -> pd.DataFrame:
    return df[df['type'] == 'expense']


def income_rows(df: pd.DataFrame) -> pd.DataFrame:
    return df[df['type'] == 'income']
