"""Ledger record types shared by every Pocket Pulse module.

Records mirror the documents kept in the per-user store collections
(``accounts``, ``transactions``, ``budgets``, ``recurring`` and ``loans``).
Attributes are snake_case; ``to_dict``/``from_dict`` translate to the
camelCase document keys used by the store. Dates are ``YYYY-MM-DD``
strings so they compare chronologically as plain strings.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, Optional

ACCOUNT_TYPES = ('checking', 'savings', 'credit', 'investment')
TRANSACTION_TYPES = ('income', 'expense', 'loan', 'loan-payment')
INCOME_TYPES = frozenset({'income', 'loan'})
OUTFLOW_TYPES = frozenset({'expense', 'loan-payment'})
RECURRING_TYPES = ('income', 'expense')
FREQUENCIES = ('daily', 'weekly', 'biweekly', 'monthly', 'quarterly', 'yearly')
LOAN_STATUSES = ('active', 'paid')

FREQUENCY_LABELS = {
    'daily': 'Daily',
    'weekly': 'Weekly',
    'biweekly': 'Bi-weekly (every 2 weeks)',
    'monthly': 'Monthly',
    'quarterly': 'Quarterly (every 3 months)',
    'yearly': 'Yearly',
}


def balance_effect(txn_type: str, amount: float) -> float:
    """Signed contribution of a transaction to its account balance."""
    if txn_type in INCOME_TYPES:
        return float(amount)
    if txn_type in OUTFLOW_TYPES:
        return -float(amount)
    raise ValueError(f"unknown transaction type: {txn_type!r}")


def _snake_to_camel(name: str) -> str:
    head, *rest = name.split('_')
    return head + ''.join(part.title() for part in rest)


class _Document:
    """Mixin translating dataclass attributes to store documents."""

    def to_dict(self) -> Dict[str, Any]:
        return {_snake_to_camel(key): value for key, value in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any], doc_id: Optional[str] = None):
        known = {f.name: f for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for name in known:
            camel = _snake_to_camel(name)
            if camel in data:
                kwargs[name] = data[camel]
            elif name in data:
                kwargs[name] = data[name]
        if doc_id is not None:
            kwargs['id'] = doc_id
        return cls(**kwargs)


@dataclass
class Account(_Document):
    name: str
    type: str = 'checking'
    balance: float = 0.0
    id: str = ''
    created_at: Optional[str] = None


@dataclass
class Transaction(_Document):
    type: str
    amount: float
    description: str
    account: str
    date: str
    category: Optional[str] = None
    income_source: Optional[str] = None
    id: str = ''
    notes: Optional[str] = None
    loan_id: Optional[str] = None
    loan_name: Optional[str] = None
    recurring_id: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def effect(self) -> float:
        return balance_effect(self.type, self.amount)


@dataclass
class AnnotatedTransaction:
    """A transaction paired with the account balance right after it."""

    transaction: Transaction
    balance_after: float

    def to_dict(self) -> Dict[str, Any]:
        row = self.transaction.to_dict()
        row['balanceAfter'] = self.balance_after
        return row


@dataclass
class Budget(_Document):
    category: str
    limit: float
    updated_at: Optional[str] = None


@dataclass
class RecurringRule(_Document):
    type: str
    amount: float
    description: str
    account: str
    frequency: str
    start_date: str
    category: Optional[str] = None
    income_source: Optional[str] = None
    end_date: Optional[str] = None
    next_occurrence: Optional[str] = None
    is_active: bool = True
    auto_create: bool = True
    last_created: Optional[str] = None
    id: str = ''
    created_at: Optional[str] = None


@dataclass
class Loan(_Document):
    name: str
    amount: float
    account: str = ''
    lender: Optional[str] = None
    interest_rate: float = 0.0
    due_date: Optional[str] = None
    notes: str = ''
    status: str = 'active'
    remaining_amount: Optional[float] = None
    last_payment_date: Optional[str] = None
    last_payment_amount: Optional[float] = None
    id: str = ''
    created_at: Optional[str] = None

    def __post_init__(self) -> None:
        if self.remaining_amount is None:
            self.remaining_amount = self.amount


@dataclass
class Summary:
    income: float = 0.0
    expenses: float = 0.0
    count: int = 0

    @property
    def net(self) -> float:
        return round(self.income - self.expenses, 2)


@dataclass
class Ledger:
    """Snapshot of one user's collections, as handed to the engines."""

    accounts: list = field(default_factory=list)
    transactions: list = field(default_factory=list)
    budgets: Dict[str, float] = field(default_factory=dict)
    recurring: list = field(default_factory=list)
    loans: list = field(default_factory=list)

    def account_names(self) -> Dict[str, str]:
        return {account.id: account.name for account in self.accounts}
