"""Loan tracking: remaining balance and the transactions payments produce."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Iterable, List, Mapping, Optional, Union

from .config import LOAN_PAYMENT_CATEGORY
from .dates import DateLike, format_date
from .errors import ValidationError
from .logging_setup import get_logger
from .models import Loan, Transaction

logger = get_logger(__name__)

LoanLike = Union[Loan, Mapping[str, Any]]


def as_loan(value: LoanLike) -> Loan:
    if isinstance(value, Loan):
        return value
    if isinstance(value, Mapping):
        return Loan.from_dict(dict(value))
    raise TypeError(f"expected a Loan or mapping, got {type(value).__name__}")


@dataclass
class LoanPayment:
    loan: Loan
    transaction: Transaction


def create_loan(
    name: str,
    amount: float,
    account: str = '',
    lender: Optional[str] = None,
    interest_rate: float = 0.0,
    due_date: Optional[str] = None,
    notes: str = '',
) -> Loan:
    """New active loan with nothing repaid yet."""
    return Loan(
        name=name,
        amount=float(amount),
        account=account,
        lender=lender,
        interest_rate=float(interest_rate or 0.0),
        due_date=due_date,
        notes=notes,
        status='active',
        remaining_amount=float(amount),
    )


def record_payment(loan: LoanLike, amount: float, on_date: DateLike) -> LoanPayment:
    """Apply a payment to ``loan``.

    Payments must be positive. Callers are expected to reject payments above
    the remaining amount; if one slips through the remaining amount stops at
    zero instead of going negative.
    """
    current = as_loan(loan)
    try:
        value = float(amount)
    except (TypeError, ValueError):
        raise ValidationError({'amount': 'Please enter a valid amount'}) from None
    if not value > 0:
        raise ValidationError({'amount': 'Payment amount must be greater than zero'})

    paid_on = format_date(on_date)
    remaining = round(float(current.remaining_amount or 0.0) - value, 2)
    if remaining < 0:
        logger.warning("Payment of %.2f exceeds remaining %.2f on loan %s; clamping to 0",
                       value, float(current.remaining_amount or 0.0), current.id or current.name)
        remaining = 0.0
    status = 'paid' if remaining <= 0 else 'active'
    if status == 'paid':
        logger.info("Loan %s paid off on %s", current.id or current.name, paid_on)

    updated = replace(
        current,
        remaining_amount=remaining,
        status=status,
        last_payment_date=paid_on,
        last_payment_amount=value,
    )
    transaction = Transaction(
        type='loan-payment',
        amount=value,
        description=f"Payment for {current.name}",
        account=current.account or '',
        date=paid_on,
        category=LOAN_PAYMENT_CATEGORY,
        loan_id=current.id or None,
        loan_name=current.name,
    )
    return LoanPayment(loan=updated, transaction=transaction)


def active_loans(loans: Iterable[LoanLike]) -> List[Loan]:
    return [loan for loan in (as_loan(item) for item in loans) if loan.status == 'active']


def total_outstanding(loans: Iterable[LoanLike]) -> float:
    return round(sum(float(loan.remaining_amount or 0.0) for loan in active_loans(loans)), 2)


def paid_fraction(loan: LoanLike) -> float:
    """Share of the principal repaid, between 0 and 1."""
    current = as_loan(loan)
    principal = float(current.amount or 0.0)
    if principal <= 0:
        return 0.0
    repaid = principal - float(current.remaining_amount or 0.0)
    return max(0.0, min(1.0, repaid / principal))
