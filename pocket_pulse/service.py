"""Application service tying the ledger engines to the document store.

The engines in this package are pure; ``LedgerService`` loads a fresh
snapshot from the store for every call, runs the engines, and writes back
whatever they ask for.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Union

import plotly.graph_objects as go

from . import recurring as schedule
from .aggregations import daily_cash_flow, spending_by_category
from .balances import creation_deltas, deletion_deltas, edit_deltas, reconstruct_balances
from .budgets import BudgetProgress, budget_progress, split_budget_updates
from .charts import create_budget_chart, create_cash_flow_chart, create_category_pie_chart
from .config import UNKNOWN_ACCOUNT_LABEL
from .dates import DateLike, today as resolve_today
from .filters import TransactionFilters, filter_transactions
from .loans import create_loan, record_payment
from .logging_setup import get_logger
from .metrics import FinancialMetrics, calculate_metrics, summarize
from .models import Account, AnnotatedTransaction, Loan, RecurringRule, Summary, Transaction
from .store import LedgerStore
from .validators import (
    ensure_valid,
    validate_account,
    validate_loan,
    validate_loan_payment,
    validate_recurring_rule,
    validate_transaction,
)

logger = get_logger(__name__)


@dataclass
class Dashboard:
    metrics: FinancialMetrics
    categories: List[Dict[str, Any]]
    cash_flow: List[Dict[str, Any]]
    budgets: Dict[str, BudgetProgress]
    transactions: List[AnnotatedTransaction]
    account_names: Dict[str, str] = field(default_factory=dict)

    def account_label(self, account_id: Optional[str]) -> str:
        return self.account_names.get(account_id or '', UNKNOWN_ACCOUNT_LABEL)

    def figures(self) -> Dict[str, go.Figure]:
        """Plotly figures for the category, cash-flow and budget panels."""
        return {
            'categories': create_category_pie_chart(self.categories),
            'cash_flow': create_cash_flow_chart(self.cash_flow),
            'budgets': create_budget_chart(self.budgets),
        }


@dataclass
class Statement:
    rows: List[AnnotatedTransaction]
    summary: Summary


class LedgerService:
    def __init__(self, store: LedgerStore):
        self.store = store
        self._recurring_locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    # -- views --------------------------------------------------------------

    def dashboard(self, user_id: str, now: Optional[DateLike] = None) -> Dashboard:
        ledger = self.store.load_ledger(user_id)
        return Dashboard(
            metrics=calculate_metrics(ledger.accounts, ledger.transactions, now),
            categories=spending_by_category(ledger.transactions),
            cash_flow=daily_cash_flow(ledger.transactions, now),
            budgets=budget_progress(ledger.budgets, ledger.transactions, now),
            transactions=reconstruct_balances(ledger.transactions, ledger.accounts),
            account_names=ledger.account_names(),
        )

    def statement(
        self,
        user_id: str,
        search_term: str = '',
        filters: Union[TransactionFilters, Mapping[str, Any], None] = None,
    ) -> Statement:
        """Filtered, balance-annotated rows plus totals for export."""
        ledger = self.store.load_ledger(user_id)
        annotated = reconstruct_balances(ledger.transactions, ledger.accounts)
        kept = {id(txn) for txn in filter_transactions([row.transaction for row in annotated], search_term, filters)}
        rows = [row for row in annotated if id(row.transaction) in kept]
        return Statement(rows=rows, summary=summarize([row.transaction for row in rows]))

    # -- accounts -----------------------------------------------------------

    def add_account(self, user_id: str, data: Mapping[str, Any]) -> str:
        ensure_valid(validate_account(data))
        account = Account.from_dict(dict(data))
        account.balance = float(account.balance)
        return self.store.create(user_id, 'accounts', account)

    def update_account(self, user_id: str, account_id: str, updates: Mapping[str, Any]) -> Account:
        with self.store.batch(user_id) as writer:
            merged = {**writer.get('accounts', account_id), **updates}
            ensure_valid(validate_account(merged))
            merged['balance'] = float(merged['balance'])
            return Account.from_dict(writer.update('accounts', account_id, merged))

    def delete_account(self, user_id: str, account_id: str) -> bool:
        """Remove an account; its transactions stay and show as an unknown account."""
        deleted = self.store.delete(user_id, 'accounts', account_id)
        if deleted:
            logger.info("Deleted account %s for %s", account_id, user_id)
        return deleted

    # -- transactions -------------------------------------------------------

    def add_transaction(self, user_id: str, data: Mapping[str, Any]) -> str:
        ensure_valid(validate_transaction(data))
        txn = Transaction.from_dict(dict(data))
        txn.amount = float(txn.amount)
        with self.store.batch(user_id) as writer:
            txn_id = writer.create('transactions', txn)
            writer.apply_deltas(creation_deltas(txn))
        return txn_id

    def edit_transaction(self, user_id: str, txn_id: str, data: Mapping[str, Any]) -> None:
        ensure_valid(validate_transaction(data))
        with self.store.batch(user_id) as writer:
            old = Transaction.from_dict(writer.get('transactions', txn_id))
            new = replace(Transaction.from_dict(dict(data)), id=txn_id, created_at=old.created_at)
            new.amount = float(new.amount)
            writer.put('transactions', txn_id, new)
            writer.apply_deltas(edit_deltas(old, new))

    def delete_transaction(self, user_id: str, txn_id: str) -> None:
        with self.store.batch(user_id) as writer:
            old = Transaction.from_dict(writer.get('transactions', txn_id))
            writer.apply_deltas(deletion_deltas(old))
            writer.delete('transactions', txn_id)

    # -- budgets ------------------------------------------------------------

    def update_budgets(self, user_id: str, updates: Mapping[str, Any]) -> Dict[str, float]:
        """Store positive limits and remove categories cleared to zero/empty."""
        to_set, to_delete = split_budget_updates(updates)
        with self.store.batch(user_id) as writer:
            for category, limit in to_set.items():
                writer.put('budgets', category, {'category': category, 'limit': limit})
            for category in to_delete:
                writer.delete('budgets', category)
        return to_set

    # -- recurring ----------------------------------------------------------

    def create_recurring(self, user_id: str, data: Mapping[str, Any], today: Optional[DateLike] = None) -> str:
        ensure_valid(validate_recurring_rule(data))
        rule = schedule.new_rule(data, resolve_today(today))
        rule.amount = float(rule.amount)
        return self.store.create(user_id, 'recurring', rule)

    def set_recurring_active(self, user_id: str, rule_id: str, active: bool) -> None:
        self.store.update(user_id, 'recurring', rule_id, {'isActive': bool(active)})

    def _recurring_lock(self, user_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._recurring_locks.setdefault(user_id, threading.Lock())

    def run_recurring(self, user_id: str, today: Optional[DateLike] = None) -> List[Transaction]:
        """Materialise due recurring transactions for ``user_id``.

        Passes for the same user are serialised, and each rule update is
        committed together with its transaction only if the stored rule has
        not moved on in the meantime.
        """
        day = resolve_today(today)
        created: List[Transaction] = []
        with self._recurring_lock(user_id):
            rules = [RecurringRule.from_dict(doc) for doc in self.store.list(user_id, 'recurring')]
            by_id = {rule.id: rule for rule in rules}
            result = schedule.process_due(rules, day)
            for outcome in result.outcomes:
                if not outcome.changed:
                    continue
                before = by_id[outcome.rule.id]
                deltas = creation_deltas(outcome.transaction) if outcome.transaction is not None else None
                committed = self.store.commit_occurrence(
                    user_id, outcome.rule, before.next_occurrence, outcome.transaction, deltas,
                )
                if committed and outcome.transaction is not None:
                    created.append(outcome.transaction)
        if created:
            logger.info("Created %d recurring transaction(s) for %s", len(created), user_id)
        return created

    def upcoming_recurring(self, user_id: str, today: Optional[DateLike] = None) -> List[RecurringRule]:
        rules = [RecurringRule.from_dict(doc) for doc in self.store.list(user_id, 'recurring')]
        return schedule.upcoming(rules, today)

    # -- loans --------------------------------------------------------------

    def add_loan(self, user_id: str, data: Mapping[str, Any]) -> str:
        ensure_valid(validate_loan(data))
        loan = create_loan(
            name=data['name'],
            amount=float(data['amount']),
            account=data.get('account') or '',
            lender=data.get('lender'),
            interest_rate=float(data.get('interestRate', data.get('interest_rate')) or 0.0),
            due_date=data.get('dueDate', data.get('due_date')),
            notes=data.get('notes') or '',
        )
        return self.store.create(user_id, 'loans', loan)

    def record_loan_payment(self, user_id: str, loan_id: str, amount: Any, on_date: DateLike) -> Loan:
        with self.store.batch(user_id) as writer:
            loan = Loan.from_dict(writer.get('loans', loan_id))
            ensure_valid(validate_loan_payment(loan.remaining_amount, amount))
            payment = record_payment(loan, amount, on_date)
            writer.put('loans', loan_id, payment.loan)
            payment.transaction.id = writer.create('transactions', payment.transaction)
            writer.apply_deltas(creation_deltas(payment.transaction))
        return payment.loan
