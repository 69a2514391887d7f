from datetime import date

from pocket_pulse.budgets import budget_progress, budgets_from_documents, split_budget_updates
from pocket_pulse.models import Transaction

NOW = date(2024, 6, 15)


def _expense(amount, day, category):
    return Transaction(type='expense', amount=amount, description='x', account='a1', date=day, category=category)


def test_overspent_budget_caps_percentage_but_reports_full_spend():
    transactions = [
        _expense(200.0, '2024-06-02', 'Groceries'),
        _expense(250.0, '2024-06-14', 'Groceries'),
        _expense(100.0, '2024-05-30', 'Groceries'),
    ]

    progress = budget_progress({'Groceries': 300}, transactions, now=NOW)

    groceries = progress['Groceries']
    assert groceries.spent == 450.0
    assert groceries.limit == 300
    assert groceries.percentage == 100.0
    assert groceries.over_budget
    assert groceries.remaining == -150.0


def test_partial_and_unspent_budgets():
    transactions = [_expense(25.0, '2024-06-01', 'Dining')]

    progress = budget_progress({'Dining': 100.0, 'Rent': 1200.0}, transactions, now=NOW)

    assert progress['Dining'].percentage == 25.0
    assert progress['Rent'].spent == 0.0
    assert progress['Rent'].percentage == 0.0
    assert not progress['Rent'].over_budget


def test_zero_limit_gives_zero_percentage():
    transactions = [_expense(10.0, '2024-06-01', 'Dining')]

    progress = budget_progress({'Dining': 0}, transactions, now=NOW)

    assert progress['Dining'].spent == 10.0
    assert progress['Dining'].percentage == 0.0


def test_only_budgeted_categories_are_reported():
    transactions = [_expense(10.0, '2024-06-01', 'Dining'), _expense(5.0, '2024-06-01', 'Shopping')]

    assert set(budget_progress({'Dining': 50}, transactions, now=NOW)) == {'Dining'}
    assert budget_progress({}, transactions, now=NOW) == {}


def test_budgets_from_documents():
    docs = [{'category': 'Dining', 'limit': 50.0}, {'category': 'Rent', 'limit': 1200.0, 'updatedAt': 'x'}]

    assert budgets_from_documents(docs) == {'Dining': 50.0, 'Rent': 1200.0}


def test_split_budget_updates():
    to_set, to_delete = split_budget_updates({'Dining': '75', 'Rent': 0, 'Shopping': '', 'Other': 'n/a'})

    assert to_set == {'Dining': 75.0}
    assert sorted(to_delete) == ['Other', 'Rent', 'Shopping']
