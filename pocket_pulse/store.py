"""SQLite-backed per-user document store.

Each user owns the collections ``accounts``, ``transactions``, ``budgets``,
``recurring`` and ``loans``; documents are JSON objects keyed by id (budgets
are keyed by category). Writes made through :meth:`LedgerStore.batch` commit
together, and transaction-collection subscribers are notified after commit.
"""

from __future__ import annotations

import json
import sqlite3
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

from .balances import apply_deltas as updated_balances
from .budgets import budgets_from_documents
from .config import DB_PATH, ensure_data_directories
from .errors import NotFoundError
from .logging_setup import get_logger
from .models import Account, Ledger, Loan, RecurringRule, Transaction

logger = get_logger(__name__)

COLLECTIONS = ('accounts', 'transactions', 'budgets', 'recurring', 'loans')

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

CREATE TABLE IF NOT EXISTS documents (
    user_id TEXT NOT NULL,
    collection TEXT NOT NULL,
    id TEXT NOT NULL,
    data TEXT NOT NULL,
    created_at TEXT,
    updated_at TEXT,
    PRIMARY KEY (user_id, collection, id)
);

CREATE INDEX IF NOT EXISTS ix_documents_user_collection ON documents (user_id, collection);
"""

Subscriber = Callable[[List[Dict[str, Any]]], None]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _check_collection(collection: str) -> None:
    if collection not in COLLECTIONS:
        raise ValueError(f"unknown collection: {collection!r}")


def _document(record: Union[Dict[str, Any], Any]) -> Dict[str, Any]:
    data = record.to_dict() if hasattr(record, 'to_dict') else dict(record)
    data.pop('id', None)
    return data


class _Batch:
    """Writes sharing one SQLite transaction."""

    def __init__(self, conn: sqlite3.Connection, user_id: str):
        self.conn = conn
        self.user_id = user_id
        self.touched: set = set()

    def get(self, collection: str, doc_id: str) -> Dict[str, Any]:
        _check_collection(collection)
        row = self.conn.execute(
            "SELECT data FROM documents WHERE user_id = ? AND collection = ? AND id = ?",
            (self.user_id, collection, doc_id),
        ).fetchone()
        if row is None:
            raise NotFoundError(collection, doc_id)
        data = json.loads(row[0])
        data['id'] = doc_id
        return data

    def create(self, collection: str, record: Any, doc_id: Optional[str] = None) -> str:
        _check_collection(collection)
        data = _document(record)
        new_id = doc_id or getattr(record, 'id', None) or uuid.uuid4().hex
        stamp = _now_iso()
        if not data.get('createdAt'):
            data['createdAt'] = stamp
        self.conn.execute(
            "INSERT INTO documents (user_id, collection, id, data, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?)",
            (self.user_id, collection, new_id, json.dumps(data, sort_keys=True), stamp, stamp),
        )
        self.touched.add(collection)
        return new_id

    def put(self, collection: str, doc_id: str, record: Any) -> None:
        """Create or fully replace a document."""
        _check_collection(collection)
        stamp = _now_iso()
        self.conn.execute(
            "INSERT INTO documents (user_id, collection, id, data, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?) "
            "ON CONFLICT (user_id, collection, id) DO UPDATE SET data = excluded.data, updated_at = excluded.updated_at",
            (self.user_id, collection, doc_id, json.dumps(_document(record), sort_keys=True), stamp, stamp),
        )
        self.touched.add(collection)

    def update(self, collection: str, doc_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        """Merge ``updates`` into an existing document and return the result."""
        current = self.get(collection, doc_id)
        current.update({key: value for key, value in updates.items() if key != 'id'})
        current.pop('id', None)
        self.conn.execute(
            "UPDATE documents SET data = ?, updated_at = ? WHERE user_id = ? AND collection = ? AND id = ?",
            (json.dumps(current, sort_keys=True), _now_iso(), self.user_id, collection, doc_id),
        )
        self.touched.add(collection)
        current['id'] = doc_id
        return current

    def delete(self, collection: str, doc_id: str) -> bool:
        _check_collection(collection)
        cur = self.conn.execute(
            "DELETE FROM documents WHERE user_id = ? AND collection = ? AND id = ?",
            (self.user_id, collection, doc_id),
        )
        if cur.rowcount:
            self.touched.add(collection)
        return bool(cur.rowcount)

    def apply_deltas(self, deltas: Dict[str, float]) -> List[Account]:
        """Add ``{account_id: delta}`` to stored balances; missing accounts are skipped."""
        accounts = []
        for account_id in deltas:
            try:
                accounts.append(self.get('accounts', account_id))
            except NotFoundError:
                continue
        updated = updated_balances(accounts, deltas)
        for account in updated:
            self.update('accounts', account.id, {'balance': account.balance})
        return updated


class LedgerStore:
    """Per-user collections kept in a single SQLite database file."""

    def __init__(self, db_path: Union[str, Path, None] = None):
        self.db_path = Path(db_path) if db_path is not None else DB_PATH
        self._subscribers: Dict[str, List[Subscriber]] = {}
        self._lock = threading.Lock()
        self.init_db()

    # -- connection handling ------------------------------------------------

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        if self.db_path == DB_PATH:
            ensure_data_directories()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path), isolation_level=None, timeout=30)
        try:
            yield conn
        finally:
            conn.close()

    def init_db(self) -> None:
        with self.connect() as conn:
            conn.executescript(SCHEMA_SQL)

    @contextmanager
    def batch(self, user_id: str) -> Iterator[_Batch]:
        """Group writes into one transaction; roll back if the block raises."""
        with self.connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            writer = _Batch(conn, user_id)
            try:
                yield writer
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        if 'transactions' in writer.touched:
            self._notify(user_id)

    # -- reads --------------------------------------------------------------

    def list(self, user_id: str, collection: str) -> List[Dict[str, Any]]:
        _check_collection(collection)
        with self.connect() as conn:
            rows = conn.execute(
                "SELECT id, data FROM documents WHERE user_id = ? AND collection = ? ORDER BY created_at, id",
                (user_id, collection),
            ).fetchall()
        documents = []
        for doc_id, payload in rows:
            data = json.loads(payload)
            data['id'] = doc_id
            documents.append(data)
        return documents

    def get(self, user_id: str, collection: str, doc_id: str) -> Dict[str, Any]:
        with self.connect() as conn:
            return _Batch(conn, user_id).get(collection, doc_id)

    def load_ledger(self, user_id: str) -> Ledger:
        """Fetch every collection for ``user_id`` as ledger records."""
        budgets = budgets_from_documents(self.list(user_id, 'budgets'))
        return Ledger(
            accounts=[Account.from_dict(doc) for doc in self.list(user_id, 'accounts')],
            transactions=[Transaction.from_dict(doc) for doc in self.list(user_id, 'transactions')],
            budgets=budgets,
            recurring=[RecurringRule.from_dict(doc) for doc in self.list(user_id, 'recurring')],
            loans=[Loan.from_dict(doc) for doc in self.list(user_id, 'loans')],
        )

    # -- single-document writes ----------------------------------------------

    def create(self, user_id: str, collection: str, record: Any, doc_id: Optional[str] = None) -> str:
        with self.batch(user_id) as writer:
            return writer.create(collection, record, doc_id)

    def update(self, user_id: str, collection: str, doc_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        with self.batch(user_id) as writer:
            return writer.update(collection, doc_id, updates)

    def delete(self, user_id: str, collection: str, doc_id: str) -> bool:
        with self.batch(user_id) as writer:
            return writer.delete(collection, doc_id)

    def set_budget(self, user_id: str, category: str, limit: float) -> None:
        with self.batch(user_id) as writer:
            writer.put('budgets', category, {'category': category, 'limit': float(limit), 'updatedAt': _now_iso()})

    def delete_budget(self, user_id: str, category: str) -> bool:
        return self.delete(user_id, 'budgets', category)

    # -- recurring ----------------------------------------------------------

    def commit_occurrence(
        self,
        user_id: str,
        rule: RecurringRule,
        expected_next: Optional[str],
        transaction: Optional[Transaction] = None,
        account_deltas: Optional[Dict[str, float]] = None,
    ) -> bool:
        """Store a processed rule together with the transaction it produced.

        The write only happens if the stored rule still has
        ``nextOccurrence == expected_next``; otherwise another pass already
        handled this occurrence and ``False`` is returned. On success the
        stored id is set on ``transaction``.
        """
        with self.batch(user_id) as writer:
            stored = writer.get('recurring', rule.id)
            if stored.get('nextOccurrence') != expected_next or stored.get('isActive') is False:
                logger.info("Recurring rule %s already advanced; skipping occurrence %s", rule.id, expected_next)
                return False
            writer.update('recurring', rule.id, {
                'nextOccurrence': rule.next_occurrence,
                'lastCreated': rule.last_created,
                'isActive': rule.is_active,
            })
            if transaction is not None:
                transaction.id = writer.create('transactions', transaction)
            writer.apply_deltas(account_deltas or {})
        return True

    # -- subscriptions --------------------------------------------------------

    def subscribe(self, user_id: str, callback: Subscriber) -> Callable[[], None]:
        """Call ``callback(transactions)`` whenever the user's transactions change.

        Returns a function that removes the subscription.
        """
        with self._lock:
            self._subscribers.setdefault(user_id, []).append(callback)

        def unsubscribe() -> None:
            with self._lock:
                callbacks = self._subscribers.get(user_id, [])
                if callback in callbacks:
                    callbacks.remove(callback)

        return unsubscribe

    def _notify(self, user_id: str) -> None:
        with self._lock:
            callbacks = list(self._subscribers.get(user_id, []))
        if not callbacks:
            return
        transactions = self.list(user_id, 'transactions')
        for callback in callbacks:
            # subscriber errors are logged, never raised past a commit
            try:
                callback(transactions)
            except Exception:
                logger.exception("Transaction subscriber for %s failed", user_id)
