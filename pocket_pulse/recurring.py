"""Recurring transaction scheduling.

A rule moves between three states for a given evaluation date::

    inactive  (is_active False, or end date passed and deactivated)
    waiting   (active, next_occurrence after today)
    due       (active, next_occurrence on or before today)

``process_due`` performs one scan: every due rule with auto-create enabled
yields exactly one transaction dated at its ``next_occurrence`` and the rule
advances one frequency step from that date. A rule that missed several
periods therefore catches up one step per pass rather than replaying the
whole backlog.

The scan is pure. Callers must persist each (rule update, new transaction)
pair as a single unit and must not run two scans for the same user at once,
otherwise an occurrence can be materialised twice.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Any, Iterable, List, Mapping, Optional, Union

from dateutil.relativedelta import relativedelta

from .config import DEFAULT_PREVIEW_COUNT, UPCOMING_WINDOW_DAYS
from .dates import DateLike, parse_date, today as resolve_today
from .logging_setup import get_logger
from .models import FREQUENCIES, RecurringRule, Transaction

logger = get_logger(__name__)

INACTIVE = 'inactive'
WAITING = 'waiting'
DUE = 'due'

SKIPPED = 'skipped'
DEACTIVATED = 'deactivated'
MATERIALIZED = 'materialized'

_FIXED_STEPS = {
    'daily': timedelta(days=1),
    'weekly': timedelta(days=7),
    'biweekly': timedelta(days=14),
}
_MONTH_STEPS = {
    'monthly': 1,
    'quarterly': 3,
}

RuleLike = Union[RecurringRule, Mapping[str, Any]]


def as_rule(value: RuleLike) -> RecurringRule:
    if isinstance(value, RecurringRule):
        return value
    if isinstance(value, Mapping):
        return RecurringRule.from_dict(dict(value))
    raise TypeError(f"expected a RecurringRule or mapping, got {type(value).__name__}")


def advance(base: DateLike, frequency: str, start_date: Optional[DateLike] = None) -> date:
    """Move ``base`` forward by one ``frequency`` step.

    Month-based steps pin the day of month to ``start_date``'s day (clipped
    to the length of the target month), so a rule started on the 31st lands
    on the last day of short months and returns to the 31st afterwards.
    Yearly steps pin both month and day to ``start_date``.
    """
    current = parse_date(base)
    anchor = parse_date(start_date) if start_date is not None else current

    if frequency in _FIXED_STEPS:
        return current + _FIXED_STEPS[frequency]
    if frequency in _MONTH_STEPS:
        return current + relativedelta(months=_MONTH_STEPS[frequency], day=anchor.day)
    if frequency == 'yearly':
        return current + relativedelta(years=1, month=anchor.month, day=anchor.day)
    raise ValueError(f"unknown frequency: {frequency!r} (expected one of {', '.join(FREQUENCIES)})")


def next_occurrence(
    base: DateLike,
    frequency: str,
    start_date: Optional[DateLike] = None,
    today: Optional[DateLike] = None,
) -> date:
    """Next date to materialise after ``base``.

    A ``base`` that is still in the future is already the next occurrence and
    is returned unchanged.
    """
    current = parse_date(base)
    if current > resolve_today(today):
        return current
    return advance(current, frequency, start_date)


def preview_occurrences(rule: RuleLike, count: int = DEFAULT_PREVIEW_COUNT) -> List[str]:
    """First ``count`` occurrence dates of a (possibly unsaved) rule."""
    candidate = as_rule(rule)
    if count <= 0 or not candidate.start_date:
        return []
    current = parse_date(candidate.start_date)
    dates = []
    for _ in range(count):
        dates.append(current.isoformat())
        current = advance(current, candidate.frequency, candidate.start_date)
    return dates


def new_rule(rule: RuleLike, today: Optional[DateLike] = None) -> RecurringRule:
    """Initialise scheduling fields for a rule about to be saved."""
    candidate = as_rule(rule)
    first = next_occurrence(candidate.start_date, candidate.frequency, candidate.start_date, today)
    return replace(candidate, next_occurrence=first.isoformat(), is_active=True, last_created=None)


def rule_state(rule: RuleLike, today: Optional[DateLike] = None) -> str:
    candidate = as_rule(rule)
    if not candidate.is_active:
        return INACTIVE
    day = resolve_today(today).isoformat()
    if candidate.next_occurrence and candidate.next_occurrence <= day:
        return DUE
    return WAITING


def pause(rule: RuleLike) -> RecurringRule:
    return replace(as_rule(rule), is_active=False)


def resume(rule: RuleLike) -> RecurringRule:
    return replace(as_rule(rule), is_active=True)


def occurrence_transaction(rule: RecurringRule, on_date: str) -> Transaction:
    """Transaction generated by ``rule`` for ``on_date``."""
    return Transaction(
        type=rule.type,
        amount=rule.amount,
        description=rule.description,
        category=rule.category,
        income_source=rule.income_source,
        account=rule.account,
        date=on_date,
        recurring_id=rule.id or None,
    )


@dataclass
class RuleOutcome:
    action: str
    rule: RecurringRule
    transaction: Optional[Transaction] = None

    @property
    def changed(self) -> bool:
        return self.action in (DEACTIVATED, MATERIALIZED)


@dataclass
class ProcessingResult:
    outcomes: List[RuleOutcome] = field(default_factory=list)

    @property
    def created(self) -> List[Transaction]:
        return [o.transaction for o in self.outcomes if o.transaction is not None]

    @property
    def updated_rules(self) -> List[RecurringRule]:
        return [o.rule for o in self.outcomes if o.changed]

    @property
    def created_count(self) -> int:
        return len(self.created)


def process_rule(rule: RuleLike, today: Optional[DateLike] = None) -> RuleOutcome:
    """Evaluate a single rule for ``today``; the input is never modified."""
    candidate = as_rule(rule)
    day = resolve_today(today)
    day_key = day.isoformat()

    if not candidate.is_active or not candidate.auto_create:
        return RuleOutcome(SKIPPED, candidate)

    if candidate.end_date and candidate.end_date < day_key:
        logger.info("Deactivating recurring rule %s: ended %s", candidate.id or candidate.description, candidate.end_date)
        return RuleOutcome(DEACTIVATED, replace(candidate, is_active=False))

    if candidate.next_occurrence and candidate.next_occurrence <= day_key:
        due_on = candidate.next_occurrence
        following = next_occurrence(due_on, candidate.frequency, candidate.start_date, day)
        updated = replace(candidate, next_occurrence=following.isoformat(), last_created=due_on)
        logger.info(
            "Materialising %s %.2f for recurring rule %s on %s (next %s)",
            candidate.type, float(candidate.amount), candidate.id or candidate.description, due_on, updated.next_occurrence,
        )
        return RuleOutcome(MATERIALIZED, updated, occurrence_transaction(candidate, due_on))

    return RuleOutcome(WAITING, candidate)


def process_due(rules: Iterable[RuleLike], today: Optional[DateLike] = None) -> ProcessingResult:
    """Run one scheduling pass over ``rules``."""
    day = resolve_today(today)
    result = ProcessingResult()
    for rule in rules:
        result.outcomes.append(process_rule(rule, day))
    return result


def upcoming(
    rules: Iterable[RuleLike],
    today: Optional[DateLike] = None,
    days: int = UPCOMING_WINDOW_DAYS,
) -> List[RecurringRule]:
    """Active rules whose next occurrence falls within the next ``days`` days."""
    day = resolve_today(today)
    start, end = day.isoformat(), (day + timedelta(days=days)).isoformat()
    selected = [
        rule for rule in (as_rule(r) for r in rules)
        if rule.is_active and rule.next_occurrence and start <= rule.next_occurrence <= end
    ]
    return sorted(selected, key=lambda rule: rule.next_occurrence)
