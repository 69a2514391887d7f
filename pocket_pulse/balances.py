"""Running balance reconstruction and balance bookkeeping.

Account documents store the authoritative *current* balance. The helpers
here derive everything else from it: the balance right after each
transaction (walking newest to oldest and undoing effects), balances at a
point in time, and the per-account adjustments needed when a transaction is
created, edited or deleted.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable, List, Mapping, Optional, Union

import pandas as pd

from .dates import DateLike, format_date
from .frames import TransactionLike, as_account, as_transactions, transactions_frame
from .logging_setup import get_logger
from .models import Account, AnnotatedTransaction, balance_effect

logger = get_logger(__name__)

BalanceSource = Union[Mapping[str, float], Iterable[Account], Iterable[Mapping]]


def balance_map(source: BalanceSource | None) -> Dict[str, float]:
    """Normalise ``{account_id: balance}`` or a list of accounts to a dict."""
    if source is None:
        return {}
    if isinstance(source, Mapping):
        return {str(key): float(value or 0.0) for key, value in source.items()}
    balances: Dict[str, float] = {}
    for item in source:
        account = as_account(item)
        balances[account.id] = float(account.balance or 0.0)
    return balances


def _sorted_newest_first(df: pd.DataFrame) -> pd.DataFrame:
    # mergesort is stable: same-date rows keep their input order
    return df.sort_values('date', ascending=False, kind='mergesort')


def reconstruct_balances(
    transactions: Iterable[TransactionLike],
    current_balances: BalanceSource | None,
    account_id: Optional[str] = None,
) -> List[AnnotatedTransaction]:
    """Annotate each transaction with the balance right after it.

    Within each account the newest transaction receives the account's current
    balance; each older one receives that balance with every newer effect
    undone. Accounts absent from ``current_balances`` start from 0. The result
    is ordered newest first; same-date transactions keep their input order.
    """
    records = as_transactions(transactions)
    if account_id is not None:
        records = [txn for txn in records if txn.account == account_id]
    if not records:
        return []

    balances = balance_map(current_balances)
    df = _sorted_newest_first(transactions_frame(records))

    starting = df['account'].map(lambda acc: balances.get(acc, 0.0)).astype(float)
    # Effects of strictly newer transactions on the same account
    newer_effects = df.groupby('account', sort=False, dropna=False)['effect'].cumsum() - df['effect']
    df['balance_after'] = (starting - newer_effects).round(2)

    return [
        AnnotatedTransaction(records[int(position)], float(balance))
        for position, balance in zip(df['position'], df['balance_after'])
    ]


def opening_balances(
    transactions: Iterable[TransactionLike],
    current_balances: BalanceSource | None,
) -> Dict[str, float]:
    """Balance of each account before its oldest recorded transaction."""
    balances = balance_map(current_balances)
    df = transactions_frame(transactions)
    if df.empty:
        return dict(balances)
    totals = df.groupby('account', sort=False)['effect'].sum()
    opening = dict(balances)
    for account, total in totals.items():
        opening[account] = round(balances.get(account, 0.0) - float(total), 2)
    return opening


def balance_at_date(
    transactions: Iterable[TransactionLike],
    initial_balance: float,
    on_date: DateLike,
) -> float:
    """Replay every effect dated on or before ``on_date`` onto ``initial_balance``."""
    df = transactions_frame(transactions)
    if df.empty:
        return round(float(initial_balance), 2)
    cutoff = format_date(on_date)
    applied = df.loc[(df['date'] != '') & (df['date'] <= cutoff), 'effect'].sum()
    return round(float(initial_balance) + float(applied), 2)


def account_balances(
    accounts: Iterable[Union[Account, Mapping]],
    transactions: Iterable[TransactionLike],
) -> Dict[str, float]:
    """Replay each account's transactions onto its stored base balance."""
    df = transactions_frame(transactions)
    totals = df.groupby('account')['effect'].sum() if not df.empty else pd.Series(dtype=float)
    result: Dict[str, float] = {}
    for item in accounts:
        account = as_account(item)
        result[account.id] = round(float(account.balance or 0.0) + float(totals.get(account.id, 0.0)), 2)
    return result


# ---------------------------------------------------------------------------
# Transaction application
# ---------------------------------------------------------------------------


def _add(deltas: Dict[str, float], account: str, amount: float) -> None:
    if not account:
        return
    deltas[account] = round(deltas.get(account, 0.0) + amount, 2)


def creation_deltas(txn: TransactionLike) -> Dict[str, float]:
    """Balance adjustments for recording a new transaction."""
    record = as_transactions([txn])[0]
    deltas: Dict[str, float] = {}
    _add(deltas, record.account, balance_effect(record.type, record.amount))
    return deltas


def deletion_deltas(txn: TransactionLike) -> Dict[str, float]:
    """Balance adjustments that reverse a transaction before it is removed."""
    record = as_transactions([txn])[0]
    deltas: Dict[str, float] = {}
    _add(deltas, record.account, -balance_effect(record.type, record.amount))
    return deltas


def edit_deltas(old: TransactionLike, new: TransactionLike) -> Dict[str, float]:
    """Reverse ``old`` and apply ``new``; both accounts move when it changed."""
    before, after = as_transactions([old, new])
    deltas: Dict[str, float] = {}
    _add(deltas, before.account, -balance_effect(before.type, before.amount))
    _add(deltas, after.account, balance_effect(after.type, after.amount))
    return {account: delta for account, delta in deltas.items() if delta != 0}


def apply_deltas(accounts: Iterable[Union[Account, Mapping]], deltas: Mapping[str, float]) -> List[Account]:
    """Return updated copies of the accounts touched by ``deltas``.

    Deltas for accounts that no longer exist are dropped with a warning.
    """
    by_id = {account.id: account for account in (as_account(item) for item in accounts)}
    updated: List[Account] = []
    for account_id, delta in deltas.items():
        account = by_id.get(account_id)
        if account is None:
            logger.warning("Skipping balance change of %.2f for missing account %s", delta, account_id)
            continue
        updated.append(replace(account, balance=round(float(account.balance or 0.0) + delta, 2)))
    return updated
