import pytest

from pocket_pulse.errors import ValidationError
from pocket_pulse.loans import active_loans, create_loan, paid_fraction, record_payment, total_outstanding
from pocket_pulse.models import Loan


def _loan(**overrides):
    loan = create_loan('Car loan', 100.0, account='a1', lender='Bank')
    loan.id = 'l1'
    for key, value in overrides.items():
        setattr(loan, key, value)
    return loan


def test_partial_payment_keeps_loan_active():
    payment = record_payment(_loan(), 40.0, '2024-03-01')

    assert payment.loan.remaining_amount == 60.0
    assert payment.loan.status == 'active'
    assert payment.loan.last_payment_date == '2024-03-01'
    assert payment.loan.last_payment_amount == 40.0
    assert paid_fraction(payment.loan) == 0.4


def test_final_payment_marks_loan_paid_and_builds_transaction():
    loan = _loan(remaining_amount=40.0)

    payment = record_payment(loan, 40, '2024-04-01')

    assert payment.loan.remaining_amount == 0.0
    assert payment.loan.status == 'paid'
    txn = payment.transaction
    assert txn.type == 'loan-payment'
    assert txn.amount == 40.0
    assert txn.category == 'Loan Payment'
    assert txn.description == 'Payment for Car loan'
    assert (txn.loan_id, txn.loan_name, txn.account, txn.date) == ('l1', 'Car loan', 'a1', '2024-04-01')
    assert txn.effect == -40.0
    # original record untouched
    assert loan.remaining_amount == 40.0


def test_overpayment_clamps_remaining_at_zero():
    payment = record_payment(_loan(remaining_amount=30.0), 50.0, '2024-04-01')

    assert payment.loan.remaining_amount == 0.0
    assert payment.loan.status == 'paid'


@pytest.mark.parametrize('amount', [0, -5, 'abc', None])
def test_non_positive_payment_is_rejected(amount):
    with pytest.raises(ValidationError) as excinfo:
        record_payment(_loan(), amount, '2024-04-01')
    assert 'amount' in excinfo.value.errors


def test_outstanding_totals_ignore_paid_loans():
    loans = [
        _loan(remaining_amount=60.0),
        Loan(name='Old', amount=50.0, remaining_amount=0.0, status='paid'),
        {'name': 'Family', 'amount': 200.0, 'remainingAmount': 150.5, 'status': 'active'},
    ]

    assert [loan.name for loan in active_loans(loans)] == ['Car loan', 'Family']
    assert total_outstanding(loans) == 210.5


def test_new_loan_starts_with_full_remaining_amount():
    loan = Loan.from_dict({'name': 'Phone', 'amount': 300})

    assert loan.remaining_amount == 300
    assert loan.status == 'active'
    assert paid_fraction(loan) == 0.0
