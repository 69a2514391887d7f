from datetime import date

from pocket_pulse.aggregations import category_options, daily_cash_flow, spending_by_category
from pocket_pulse.charts import create_budget_chart, create_cash_flow_chart, create_category_pie_chart
from pocket_pulse.budgets import BudgetProgress
from pocket_pulse.models import Transaction


def _txn(txn_type, amount, day, category=None):
    return Transaction(type=txn_type, amount=amount, description='x', account='a1', date=day, category=category)


def test_spending_by_category_keeps_first_appearance_order():
    transactions = [
        _txn('expense', 20.0, '2024-02-01', 'Rent'),
        _txn('income', 500.0, '2024-02-01'),
        _txn('expense', 0.1, '2024-02-02', 'Dining'),
        _txn('expense', 0.2, '2024-01-15', 'Dining'),
        _txn('expense', 5.0, '2024-02-03', 'Rent'),
        _txn('loan-payment', 40.0, '2024-02-03', 'Loan Payment'),
    ]

    result = spending_by_category(transactions)

    assert result == [{'name': 'Rent', 'value': 25.0}, {'name': 'Dining', 'value': 0.3}]


def test_spending_by_category_empty():
    assert spending_by_category([]) == []
    assert spending_by_category([_txn('income', 1.0, '2024-02-01')]) == []


def test_category_options_append_custom_names_once():
    transactions = [
        _txn('expense', 5.0, '2024-02-01', 'Pets'),
        _txn('expense', 5.0, '2024-02-02', 'groceries'),
        _txn('expense', 5.0, '2024-02-03', 'pets'),
        _txn('expense', 5.0, '2024-02-04', 'Gifts'),
    ]

    options = category_options(transactions)

    assert options[:2] == ['Groceries', 'Rent']
    assert options[-2:] == ['Pets', 'Gifts']
    assert options.count('Groceries') == 1
    assert category_options(kind='income')[0] == 'Full-time Salary'


def test_daily_cash_flow_is_dense_for_the_month():
    transactions = [
        _txn('income', 100.0, '2024-02-01'),
        _txn('expense', 40.0, '2024-02-01', 'Dining'),
        _txn('expense', 15.5, '2024-02-29', 'Dining'),
        _txn('expense', 10.0, '2024-03-01', 'Dining'),
        _txn('loan', 300.0, '2024-02-05'),
    ]

    series = daily_cash_flow(transactions, now=date(2024, 2, 10))

    assert len(series) == 29
    assert [entry['day'] for entry in series[:3]] == ['1', '2', '3']
    assert series[0] == {'day': '1', 'date': '2024-02-01', 'income': 100.0, 'expense': 40.0, 'net': 60.0}
    assert series[4]['income'] == 0.0
    assert series[-1]['date'] == '2024-02-29'
    assert series[-1]['net'] == -15.5
    assert all(entry['net'] == round(entry['income'] - entry['expense'], 2) for entry in series)


def test_daily_cash_flow_without_transactions_is_all_zero():
    series = daily_cash_flow([], now=date(2023, 4, 30))

    assert len(series) == 30
    assert all(entry['income'] == entry['expense'] == entry['net'] == 0.0 for entry in series)


def test_charts_build_figures():
    categories = [{'name': 'Rent', 'value': 25.0}]
    series = daily_cash_flow([_txn('income', 100.0, '2024-02-01')], now=date(2024, 2, 10))
    progress = {'Rent': BudgetProgress(spent=25.0, limit=100.0, percentage=25.0)}

    assert len(create_category_pie_chart(categories).data) == 1
    assert len(create_cash_flow_chart(series).data) == 3
    assert len(create_budget_chart(progress).data) == 1
    assert len(create_category_pie_chart([]).data) == 0
