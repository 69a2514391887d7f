#!/usr/bin/env python3
"""Materialise due recurring transactions for a user and print the dashboard."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from pocket_pulse.logging_setup import configure_logging
from pocket_pulse.models import FREQUENCY_LABELS
from pocket_pulse.service import LedgerService
from pocket_pulse.store import LedgerStore


def main(user_id: str, db_path: str | None = None, today: str | None = None, level: str | None = None) -> None:
    configure_logging(level)
    service = LedgerService(LedgerStore(db_path))

    created = service.run_recurring(user_id, today)
    print(f"Created {len(created)} recurring transaction(s)")
    for txn in created:
        print(f"  {txn.date}  {txn.type:<8} {txn.amount:>10,.2f}  {txn.description}")

    dashboard = service.dashboard(user_id, today)
    print("\nMetrics:")
    for name, value in dashboard.metrics.to_dict().items():
        print(f"  {name:<18} {value:>12,.2f}")

    if dashboard.budgets:
        print("\nBudgets:")
        for category, progress in dashboard.budgets.items():
            print(f"  {category:<18} {progress.spent:>10,.2f} / {float(progress.limit):,.2f} ({progress.percentage:.0f}%)")

    upcoming = service.upcoming_recurring(user_id, today)
    if upcoming:
        print("\nUpcoming:")
        for rule in upcoming:
            print(f"  {rule.next_occurrence}  {rule.description} ({FREQUENCY_LABELS.get(rule.frequency, rule.frequency)})")


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Process due recurring transactions for a user.')
    parser.add_argument('user_id', help='User whose ledger should be processed')
    parser.add_argument('--db', dest='db_path', default=None, help='SQLite database path (defaults to POCKET_PULSE_DB_PATH)')
    parser.add_argument('--today', default=None, help='Evaluation date as YYYY-MM-DD (defaults to today)')
    parser.add_argument('--log-level', default=None, help='Logging level (defaults to POCKET_PULSE_LOG_LEVEL)')
    args = parser.parse_args()
    main(args.user_id, db_path=args.db_path, today=args.today, level=args.log_level)
