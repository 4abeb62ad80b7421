"""
Watermark and expense stores.

In-memory versions for tests and single-process use, SQLite versions for
durable state. Expense stores suppress duplicates on
(amount, occurred_at, category).
"""

import logging
import sqlite3
import threading
from collections import OrderedDict
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from ..records import ExpenseRecord, InsertResult
from .orchestrator import ExpenseStoreError

logger = logging.getLogger(__name__)


def _to_millis(when: datetime) -> int:
    # naive datetimes are taken as local time
    return int(when.timestamp() * 1000)


def _dedup_key(record: ExpenseRecord) -> Tuple[str, int, str]:
    return (str(record.amount), _to_millis(record.occurred_at), record.category)


# ─────────────────────────────────────────────────────────────
# Watermark stores
# ─────────────────────────────────────────────────────────────

class InMemoryWatermarkStore:
    """Key-value settings held in a dict."""

    def __init__(self, initial: Optional[Dict[str, int]] = None):
        self._values = dict(initial or {})

    def get(self, key: str) -> Optional[int]:
        return self._values.get(key)

    def put(self, key: str, value: int) -> None:
        self._values[key] = int(value)


class SqliteWatermarkStore:
    """Key-value settings in a SQLite `settings` table."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        with self._conn:
            self._conn.execute(
                "CREATE TABLE IF NOT EXISTS settings ("
                " key TEXT PRIMARY KEY,"
                " long_value INTEGER,"
                " string_value TEXT)"
            )

    def get(self, key: str) -> Optional[int]:
        row = self._conn.execute(
            "SELECT long_value FROM settings WHERE key = ?", (key,)
        ).fetchone()
        if row is None or row[0] is None:
            return None
        return int(row[0])

    def put(self, key: str, value: int) -> None:
        with self._conn:
            self._conn.execute(
                "INSERT OR REPLACE INTO settings (key, long_value, string_value) VALUES (?, ?, NULL)",
                (key, int(value)),
            )

    def close(self) -> None:
        self._conn.close()


# ─────────────────────────────────────────────────────────────
# Expense stores
# ─────────────────────────────────────────────────────────────

class InMemoryExpenseStore:
    """Expense records in insertion order, duplicates ignored."""

    def __init__(self):
        self._records: "OrderedDict[Tuple[str, int, str], ExpenseRecord]" = OrderedDict()
        self._lock = threading.Lock()

    def insert(self, record: ExpenseRecord) -> InsertResult:
        key = _dedup_key(record)
        with self._lock:
            if key in self._records:
                return InsertResult.DUPLICATE_IGNORED
            self._records[key] = record
        return InsertResult.INSERTED

    def all_expenses(self) -> List[ExpenseRecord]:
        return list(self._records.values())

    def get_expenses_by_date_range(self, start: datetime, end: datetime) -> List[ExpenseRecord]:
        """Records with start <= occurred_at <= end, newest first."""
        low, high = _to_millis(start), _to_millis(end)
        matches = [
            r for r in self._records.values()
            if low <= _to_millis(r.occurred_at) <= high
        ]
        return sorted(matches, key=lambda r: _to_millis(r.occurred_at), reverse=True)

    def get_total_for_period(self, start: datetime, end: datetime) -> Decimal:
        return sum(
            (r.amount for r in self.get_expenses_by_date_range(start, end)),
            Decimal("0.00"),
        )

    def get_totals_by_category(self) -> Dict[str, Decimal]:
        totals: Dict[str, Decimal] = {}
        for record in self._records.values():
            totals[record.category] = totals.get(record.category, Decimal("0.00")) + record.amount
        return totals


class SqliteExpenseStore:
    """Expense records in a SQLite `expenses` table."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        with self._conn:
            self._conn.execute(
                "CREATE TABLE IF NOT EXISTS expenses ("
                " id INTEGER PRIMARY KEY AUTOINCREMENT,"
                " amount TEXT NOT NULL,"
                " category TEXT NOT NULL,"
                " occurred_at TEXT NOT NULL,"
                " occurred_at_millis INTEGER NOT NULL,"
                " description TEXT,"
                " source TEXT,"
                " merchant_name TEXT,"
                " UNIQUE (amount, occurred_at_millis, category))"
            )
            self._conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_expenses_occurred_at"
                " ON expenses (occurred_at_millis)"
            )

    def insert(self, record: ExpenseRecord) -> InsertResult:
        try:
            with self._conn:
                cursor = self._conn.execute(
                    "INSERT OR IGNORE INTO expenses"
                    " (amount, category, occurred_at, occurred_at_millis, description, source, merchant_name)"
                    " VALUES (?, ?, ?, ?, ?, ?, ?)",
                    (
                        str(record.amount),
                        record.category,
                        record.occurred_at.isoformat(),
                        _to_millis(record.occurred_at),
                        record.raw_text,
                        record.source,
                        record.merchant_name,
                    ),
                )
        except sqlite3.Error as e:
            raise ExpenseStoreError(f"Insert failed: {e}") from e

        if cursor.rowcount == 0:
            logger.debug("Duplicate expense ignored: %s %s", record.amount, record.category)
            return InsertResult.DUPLICATE_IGNORED
        return InsertResult.INSERTED

    def _rows_to_records(self, rows) -> List[ExpenseRecord]:
        return [
            ExpenseRecord(
                amount=Decimal(amount),
                category=category,
                occurred_at=datetime.fromisoformat(occurred_at),
                raw_text=description,
                source=source,
                merchant_name=merchant_name,
            )
            for amount, category, occurred_at, description, source, merchant_name in rows
        ]

    def all_expenses(self) -> List[ExpenseRecord]:
        rows = self._conn.execute(
            "SELECT amount, category, occurred_at, description, source, merchant_name"
            " FROM expenses ORDER BY id"
        ).fetchall()
        return self._rows_to_records(rows)

    def get_expenses_by_date_range(self, start: datetime, end: datetime) -> List[ExpenseRecord]:
        """Records with start <= occurred_at <= end, newest first."""
        rows = self._conn.execute(
            "SELECT amount, category, occurred_at, description, source, merchant_name"
            " FROM expenses WHERE occurred_at_millis BETWEEN ? AND ?"
            " ORDER BY occurred_at_millis DESC, id DESC",
            (_to_millis(start), _to_millis(end)),
        ).fetchall()
        return self._rows_to_records(rows)

    def get_total_for_period(self, start: datetime, end: datetime) -> Decimal:
        # amounts are summed as Decimal, not SQL REAL
        rows = self._conn.execute(
            "SELECT amount FROM expenses WHERE occurred_at_millis BETWEEN ? AND ?",
            (_to_millis(start), _to_millis(end)),
        ).fetchall()
        return sum((Decimal(row[0]) for row in rows), Decimal("0.00"))

    def get_totals_by_category(self) -> Dict[str, Decimal]:
        totals: Dict[str, Decimal] = {}
        for category, amount in self._conn.execute("SELECT category, amount FROM expenses"):
            totals[category] = totals.get(category, Decimal("0.00")) + Decimal(amount)
        return totals

    def close(self) -> None:
        self._conn.close()
