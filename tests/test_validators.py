import pytest

from pocket_pulse.errors import NotFoundError, ValidationError
from pocket_pulse.validators import (
    ensure_valid,
    is_valid_amount,
    validate_account,
    validate_loan,
    validate_loan_payment,
    validate_recurring_rule,
    validate_transaction,
)


def test_is_valid_amount():
    assert is_valid_amount('12.50')
    assert is_valid_amount(1)
    assert not is_valid_amount(0)
    assert not is_valid_amount('-3')
    assert not is_valid_amount('ten')
    assert not is_valid_amount(float('inf'))
    assert not is_valid_amount(True)


def test_validate_account_allows_negative_balance():
    assert validate_account({'name': 'Card', 'type': 'credit', 'balance': -120}) == {}
    errors = validate_account({'name': ' ', 'type': 'wallet', 'balance': 'x'})
    assert set(errors) == {'name', 'type', 'balance'}


def test_validate_transaction_requires_category_or_source_by_type():
    base = {'amount': 20, 'description': 'Lunch', 'account': 'a1', 'date': '2024-03-01'}

    assert validate_transaction({**base, 'type': 'expense', 'category': 'Dining'}) == {}
    assert set(validate_transaction({**base, 'type': 'expense'})) == {'category'}
    assert set(validate_transaction({**base, 'type': 'income'})) == {'income_source'}
    assert validate_transaction({**base, 'type': 'income', 'incomeSource': 'Freelance'}) == {}
    assert validate_transaction({**base, 'type': 'loan'}) == {}
    assert set(validate_transaction({'type': 'gift', 'date': '2024-02-30'})) == {
        'type', 'amount', 'description', 'account', 'date',
    }


def test_validate_recurring_rule():
    rule = {
        'type': 'expense', 'amount': 15, 'description': 'Gym', 'category': 'Healthcare',
        'account': 'a1', 'frequency': 'monthly', 'startDate': '2024-01-01',
    }

    assert validate_recurring_rule(rule) == {}
    assert set(validate_recurring_rule({**rule, 'frequency': 'hourly'})) == {'frequency'}
    assert set(validate_recurring_rule({**rule, 'endDate': '2023-12-31'})) == {'end_date'}
    assert set(validate_recurring_rule({**rule, 'type': 'loan'})) == {'type'}
    assert set(validate_recurring_rule({**rule, 'startDate': ''})) == {'start_date'}


def test_validate_loan_and_payment():
    assert validate_loan({'name': 'Car', 'amount': 1000, 'interestRate': 4.5, 'dueDate': '2025-01-01'}) == {}
    assert set(validate_loan({'name': '', 'amount': 0, 'interestRate': -1, 'dueDate': 'soon', 'status': 'closed'})) == {
        'name', 'amount', 'interest_rate', 'due_date', 'status',
    }
    assert validate_loan_payment(100, 40, '2024-03-01') == {}
    assert 'amount' in validate_loan_payment(30, 50)
    assert 'amount' in validate_loan_payment(30, 0)
    assert 'date' in validate_loan_payment(30, 10, '03/01/2024')


def test_ensure_valid_raises_with_field_errors():
    ensure_valid({})
    with pytest.raises(ValidationError) as excinfo:
        ensure_valid({'amount': 'Please enter a valid amount'})
    assert excinfo.value.errors == {'amount': 'Please enter a valid amount'}
    assert 'amount' in str(excinfo.value)


def test_not_found_error_is_a_key_error():
    err = NotFoundError('loans', 'l9')

    assert isinstance(err, KeyError)
    assert str(err) == 'loans/l9 not found'
