"""Top-level package for Pocket Pulse.

Pocket Pulse turns a user's raw ledger (accounts, transactions, budgets,
recurring rules and loans) into the numbers a finance dashboard shows.
The primary modules are:

* ``balances`` – running balances and account bookkeeping
* ``metrics`` – net worth, income/expense totals and savings rate
* ``aggregations`` – category breakdown and daily cash flow
* ``filters`` – transaction search and filtering
* ``budgets`` – current-month budget progress
* ``charts`` – plotly figures for the dashboard panels
* ``recurring`` – recurring transaction scheduling
* ``loans`` – loan payments
* ``store`` / ``service`` – SQLite document store and the service using it

All calculation modules are pure and accept an explicit ``now``/``today``.
"""

from . import aggregations  # noqa: F401  # re-exported for convenience
from . import balances  # noqa: F401
from . import budgets  # noqa: F401
from . import charts  # noqa: F401
from . import filters  # noqa: F401
from . import loans  # noqa: F401
from . import metrics  # noqa: F401
from . import recurring  # noqa: F401

__all__ = [
    "aggregations",
    "balances",
    "budgets",
    "charts",
    "filters",
    "loans",
    "metrics",
    "recurring",
]

__version__ = "0.1.0"
