"""Form-level validation producing ``{field: message}`` dictionaries."""

from __future__ import annotations

import math
from typing import Any, Dict, Mapping

from .dates import is_valid_date_string
from .errors import ValidationError
from .models import ACCOUNT_TYPES, FREQUENCIES, LOAN_STATUSES, RECURRING_TYPES, TRANSACTION_TYPES

Errors = Dict[str, str]


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def is_valid_amount(value: Any) -> bool:
    """Numeric and strictly positive."""
    number = _as_number(value)
    return number is not None and number > 0


def is_required(value: Any) -> bool:
    return value is not None and str(value).strip() != ''


def is_valid_date(value: Any) -> bool:
    return is_valid_date_string(value)


def _get(data: Mapping[str, Any], name: str, camel: str | None = None) -> Any:
    if name in data:
        return data[name]
    if camel and camel in data:
        return data[camel]
    return None


def validate_account(data: Mapping[str, Any]) -> Errors:
    errors: Errors = {}
    if not is_required(data.get('name')):
        errors['name'] = 'Account name is required'
    # Credit accounts may carry a negative balance; only the number is checked.
    if _as_number(data.get('balance')) is None:
        errors['balance'] = 'Please enter a valid balance'
    if data.get('type') not in ACCOUNT_TYPES:
        errors['type'] = 'Please select an account type'
    return errors


def validate_transaction(data: Mapping[str, Any]) -> Errors:
    errors: Errors = {}
    txn_type = data.get('type')
    if txn_type not in TRANSACTION_TYPES:
        errors['type'] = 'Please select a transaction type'
    if not is_valid_amount(data.get('amount')):
        errors['amount'] = 'Please enter a valid amount'
    if not is_required(data.get('description')):
        errors['description'] = 'Description is required'
    if not is_required(data.get('account')):
        errors['account'] = 'Please select an account'
    if txn_type == 'expense' and not is_required(data.get('category')):
        errors['category'] = 'Please select a category'
    if txn_type == 'income' and not is_required(_get(data, 'income_source', 'incomeSource')):
        errors['income_source'] = 'Please select an income source'
    if not is_valid_date(data.get('date')):
        errors['date'] = 'Please enter a valid date'
    return errors


def validate_recurring_rule(data: Mapping[str, Any]) -> Errors:
    start_date = _get(data, 'start_date', 'startDate')
    end_date = _get(data, 'end_date', 'endDate')

    # A rule is validated like a transaction dated at its start
    errors = validate_transaction({**data, 'date': start_date})
    errors.pop('date', None)
    if data.get('type') not in RECURRING_TYPES:
        errors['type'] = 'Recurring transactions must be income or expense'

    if data.get('frequency') not in FREQUENCIES:
        errors['frequency'] = 'Please select a frequency'
    if not is_valid_date(start_date):
        errors['start_date'] = 'Please enter a valid start date'
    if end_date:
        if not is_valid_date(end_date):
            errors['end_date'] = 'Please enter a valid end date'
        elif is_valid_date(start_date) and end_date < start_date:
            errors['end_date'] = 'End date must be after start date'
    return errors


def validate_loan(data: Mapping[str, Any]) -> Errors:
    errors: Errors = {}
    if not is_required(data.get('name')):
        errors['name'] = 'Loan name is required'
    if not is_valid_amount(data.get('amount')):
        errors['amount'] = 'Please enter a valid amount'
    rate = _get(data, 'interest_rate', 'interestRate')
    if is_required(rate) and (_as_number(rate) is None or _as_number(rate) < 0):
        errors['interest_rate'] = 'Interest rate cannot be negative'
    due_date = _get(data, 'due_date', 'dueDate')
    if due_date and not is_valid_date(due_date):
        errors['due_date'] = 'Please enter a valid due date'
    if data.get('status') is not None and data.get('status') not in LOAN_STATUSES:
        errors['status'] = 'Loan status must be active or paid'
    return errors


def validate_loan_payment(remaining_amount: Any, amount: Any, on_date: Any = None) -> Errors:
    errors: Errors = {}
    if not is_valid_amount(amount):
        errors['amount'] = 'Please enter a valid amount'
    elif float(amount) > float(remaining_amount or 0.0):
        errors['amount'] = 'Payment cannot exceed the remaining balance'
    if on_date is not None and not is_valid_date(on_date):
        errors['date'] = 'Please enter a valid date'
    return errors


def ensure_valid(errors: Errors) -> None:
    """Raise ``ValidationError`` when ``errors`` is non-empty."""
    if errors:
        raise ValidationError(errors)
