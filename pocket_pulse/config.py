"""Paths, environment overrides and ledger defaults for Pocket Pulse."""

from __future__ import annotations

import os
from pathlib import Path

# Base project root - assumes this file is in pocket_pulse/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("POCKET_PULSE_DATA_DIR", _PROJECT_ROOT / "data"))

# Database
DB_PATH = Path(
    os.getenv("POCKET_PULSE_DB_PATH", DATA_DIR / "pocket_pulse.db")
).resolve()

# Logging
LOG_LEVEL = os.getenv("POCKET_PULSE_LOG_LEVEL", "INFO")

# Ledger defaults
LOAN_PAYMENT_CATEGORY = "Loan Payment"
UNKNOWN_ACCOUNT_LABEL = "Unknown account"
AVERAGE_EXPENSE_WINDOW_DAYS = 30
UPCOMING_WINDOW_DAYS = 30
DEFAULT_PREVIEW_COUNT = 5

EXPENSE_CATEGORIES = [
    'Groceries',
    'Rent',
    'Utilities',
    'Transportation',
    'Entertainment',
    'Healthcare',
    'Education',
    'Shopping',
    'Dining',
    'Other',
]

INCOME_SOURCES = [
    'Full-time Salary',
    'Freelance',
    'Consulting',
    'Investment',
    'Business',
    'Rental Income',
    'Other',
]


def ensure_data_directories() -> None:
    """Create the data directory (and the database parent) if missing."""
    for directory in [DATA_DIR, DB_PATH.parent]:
        directory.mkdir(parents=True, exist_ok=True)
