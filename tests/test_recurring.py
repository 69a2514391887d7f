from datetime import date

import pytest

from pocket_pulse.models import RecurringRule
from pocket_pulse.recurring import (
    DEACTIVATED,
    DUE,
    INACTIVE,
    MATERIALIZED,
    SKIPPED,
    WAITING,
    advance,
    new_rule,
    next_occurrence,
    pause,
    preview_occurrences,
    process_due,
    process_rule,
    resume,
    rule_state,
    upcoming,
)


def _rule(**overrides):
    data = {
        'id': 'r1',
        'type': 'expense',
        'amount': 15.0,
        'description': 'Streaming',
        'category': 'Entertainment',
        'account': 'a1',
        'frequency': 'monthly',
        'start_date': '2024-01-31',
        'next_occurrence': '2024-01-31',
    }
    data.update(overrides)
    return RecurringRule(**data)


def test_month_end_rule_clips_and_returns_to_anchor_day():
    assert advance('2024-01-31', 'monthly') == date(2024, 2, 29)
    assert advance('2024-02-29', 'monthly', '2024-01-31') == date(2024, 3, 31)
    assert advance('2024-03-31', 'monthly', '2024-01-31') == date(2024, 4, 30)
    assert advance('2023-01-31', 'monthly') == date(2023, 2, 28)


def test_fixed_and_multi_month_steps():
    assert advance('2024-12-31', 'daily') == date(2025, 1, 1)
    assert advance('2024-02-26', 'weekly') == date(2024, 3, 4)
    assert advance('2024-02-26', 'biweekly') == date(2024, 3, 11)
    assert advance('2024-11-30', 'quarterly', '2024-11-30') == date(2025, 2, 28)
    assert advance('2025-02-28', 'quarterly', '2024-11-30') == date(2025, 5, 30)


def test_yearly_from_leap_day():
    assert advance('2024-02-29', 'yearly') == date(2025, 2, 28)
    assert advance('2025-02-28', 'yearly', '2024-02-29') == date(2026, 2, 28)
    assert advance('2027-02-28', 'yearly', '2024-02-29') == date(2028, 2, 29)


def test_advance_is_strictly_increasing():
    for frequency in ('daily', 'weekly', 'biweekly', 'monthly', 'quarterly', 'yearly'):
        current = date(2024, 1, 31)
        for _ in range(24):
            following = advance(current, frequency, '2024-01-31')
            assert following > current
            current = following


def test_unknown_frequency_is_rejected():
    with pytest.raises(ValueError):
        advance('2024-01-01', 'fortnightly')


def test_next_occurrence_keeps_future_base():
    assert next_occurrence('2024-05-01', 'monthly', '2024-05-01', today='2024-04-15') == date(2024, 5, 1)
    assert next_occurrence('2024-04-15', 'monthly', '2024-04-15', today='2024-04-15') == date(2024, 5, 15)


def test_due_month_end_rule_materialises_and_advances():
    rule = _rule()

    outcome = process_rule(rule, today='2024-02-01')

    assert outcome.action == MATERIALIZED
    txn = outcome.transaction
    assert txn.date == '2024-01-31'
    assert (txn.type, txn.amount, txn.category, txn.account) == ('expense', 15.0, 'Entertainment', 'a1')
    assert txn.recurring_id == 'r1'
    assert outcome.rule.next_occurrence == '2024-02-29'
    assert outcome.rule.last_created == '2024-01-31'
    # input untouched
    assert rule.next_occurrence == '2024-01-31'

    again = process_rule(outcome.rule, today='2024-02-01')
    assert again.action == WAITING
    assert again.transaction is None

    march = process_rule(outcome.rule, today='2024-02-29')
    assert march.transaction.date == '2024-02-29'
    assert march.rule.next_occurrence == '2024-03-31'


def test_missed_periods_catch_up_one_step_per_pass():
    rule = _rule(start_date='2024-01-15', next_occurrence='2024-01-15')

    first = process_due([rule], today='2024-04-20')
    second = process_due(first.updated_rules, today='2024-04-20')

    assert [txn.date for txn in first.created] == ['2024-01-15']
    assert first.updated_rules[0].next_occurrence == '2024-02-15'
    assert [txn.date for txn in second.created] == ['2024-02-15']
    assert second.updated_rules[0].next_occurrence == '2024-03-15'


def test_ended_rule_is_deactivated_without_transaction():
    rule = _rule(end_date='2024-01-31', next_occurrence='2024-02-29')

    outcome = process_rule(rule, today='2024-03-01')

    assert outcome.action == DEACTIVATED
    assert outcome.transaction is None
    assert outcome.rule.is_active is False
    assert outcome.changed


def test_inactive_or_manual_rules_are_skipped():
    result = process_due(
        [_rule(is_active=False), _rule(id='r2', auto_create=False), {'id': 'r3', 'type': 'income', 'amount': 10,
         'description': 'Pay', 'account': 'a1', 'frequency': 'weekly', 'startDate': '2024-01-01',
         'nextOccurrence': '2024-01-01', 'incomeSource': 'Freelance'}],
        today='2024-01-05',
    )

    assert [o.action for o in result.outcomes] == [SKIPPED, SKIPPED, MATERIALIZED]
    assert result.created_count == 1
    assert result.created[0].income_source == 'Freelance'
    assert result.outcomes[2].rule.next_occurrence == '2024-01-08'


def test_rule_states_and_pause_resume():
    rule = _rule()

    assert rule_state(rule, '2024-01-30') == WAITING
    assert rule_state(rule, '2024-01-31') == DUE
    paused = pause(rule)
    assert rule_state(paused, '2024-01-31') == INACTIVE
    assert rule.is_active
    assert rule_state(resume(paused), '2024-01-31') == DUE


def test_new_rule_sets_first_occurrence():
    future = new_rule(_rule(start_date='2024-05-01', next_occurrence=None), today='2024-04-15')
    past = new_rule(_rule(start_date='2024-01-01', next_occurrence=None), today='2024-03-10')

    assert future.next_occurrence == '2024-05-01'
    assert future.is_active and future.last_created is None
    assert past.next_occurrence == '2024-02-01'


def test_preview_occurrences():
    assert preview_occurrences(_rule()) == ['2024-01-31', '2024-02-29', '2024-03-31', '2024-04-30', '2024-05-31']
    assert preview_occurrences(_rule(frequency='weekly', start_date='2024-01-01'), count=3) == [
        '2024-01-01', '2024-01-08', '2024-01-15',
    ]
    assert preview_occurrences(_rule(), count=0) == []


def test_upcoming_is_sorted_and_windowed():
    rules = [
        _rule(id='late', next_occurrence='2024-03-30'),
        _rule(id='soon', next_occurrence='2024-03-02'),
        _rule(id='far', next_occurrence='2024-04-15'),
        _rule(id='paused', next_occurrence='2024-03-05', is_active=False),
        _rule(id='today', next_occurrence='2024-03-01'),
    ]

    assert [rule.id for rule in upcoming(rules, today='2024-03-01')] == ['today', 'soon', 'late']
