from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

from . import config
from .config import ensure_data_directories
from .models import Bill, BudgetSnapshot, Debt, Goal
from .record_mapping import (
    bill_to_record,
    debt_to_record,
    goal_to_record,
    records_to_bills,
    records_to_debts,
    records_to_goals,
    records_to_snapshots,
    snapshot_to_record,
)
from .store import BudgetStore

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

CREATE TABLE IF NOT EXISTS bills (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    amount TEXT NOT NULL,
    frequency TEXT NOT NULL,
    start_date TEXT,
    custom_unit TEXT,
    custom_value INTEGER
);

CREATE TABLE IF NOT EXISTS debts (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    amount TEXT NOT NULL,
    min_payment TEXT,
    interest TEXT,
    priority TEXT,
    initial_amount TEXT
);

CREATE TABLE IF NOT EXISTS goals (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    target_amount TEXT NOT NULL,
    saved_amount TEXT,
    deadline TEXT,
    priority TEXT
);

CREATE TABLE IF NOT EXISTS snapshots (
    id TEXT PRIMARY KEY,
    timestamp TEXT NOT NULL,
    pay_cycle_start TEXT,
    income1 TEXT,
    income2 TEXT,
    splurge TEXT,
    bills_due TEXT,
    fire_pct TEXT,
    smile_pct TEXT,
    fire_amt TEXT,
    smile_amt TEXT,
    mojo_amt TEXT,
    remaining TEXT,
    total_income TEXT
);

CREATE INDEX IF NOT EXISTS ix_snapshots_timestamp ON snapshots (timestamp);
"""

# Columns added after the first release, per table.
MIGRATIONS = {
    'bills': [('custom_unit', 'TEXT'), ('custom_value', 'INTEGER')],
    'debts': [('initial_amount', 'TEXT')],
}

TABLES = ('bills', 'debts', 'goals', 'snapshots')


def _resolve_path(db_path: Optional[PathLike]) -> Path:
    return Path(db_path) if db_path is not None else Path(config.DB_PATH)


@contextmanager
def connect(db_path: Optional[PathLike] = None) -> Iterator[sqlite3.Connection]:
    path = _resolve_path(db_path)
    if db_path is None:
        ensure_data_directories()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


def init_db(db_path: Optional[PathLike] = None) -> None:
    with connect(db_path) as conn:
        conn.executescript(SCHEMA_SQL)
        conn.commit()
        # Run migrations to add new columns if they don't exist
        _migrate_database(conn)


def _migrate_database(conn: sqlite3.Connection) -> None:
    """Add columns that older database files are missing."""
    cursor = conn.cursor()
    for table, columns in MIGRATIONS.items():
        cursor.execute(f"PRAGMA table_info({table})")
        existing_columns = [row[1] for row in cursor.fetchall()]
        for column_name, column_type in columns:
            if column_name in existing_columns:
                continue
            try:
                cursor.execute(f"ALTER TABLE {table} ADD COLUMN {column_name} {column_type}")
                logger.info("Added column %s to %s table", column_name, table)
            except sqlite3.OperationalError as e:
                if "duplicate column name" not in str(e):
                    raise
    conn.commit()


def _upsert(conn: sqlite3.Connection, table: str, record: Mapping[str, Any]) -> None:
    columns = list(record.keys())
    placeholders = ", ".join("?" for _ in columns)
    updates = ", ".join(f"{col} = excluded.{col}" for col in columns if col != 'id')
    # ON CONFLICT keeps the rowid, so list order survives edits.
    sql = (
        f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders}) "
        f"ON CONFLICT(id) DO UPDATE SET {updates}"
    )
    conn.execute(sql, [record[col] for col in columns])


def _delete(table: str, record_id: str, db_path: Optional[PathLike]) -> bool:
    with connect(db_path) as conn:
        cursor = conn.execute(f"DELETE FROM {table} WHERE id = ?", (record_id,))
        conn.commit()
        return cursor.rowcount > 0


def _save(table: str, record: Mapping[str, Any], db_path: Optional[PathLike]) -> None:
    with connect(db_path) as conn:
        _upsert(conn, table, record)
        conn.commit()


def _fetch(conn: sqlite3.Connection, sql: str) -> List[Dict[str, Any]]:
    return [dict(row) for row in conn.execute(sql).fetchall()]


def load_store(db_path: Optional[PathLike] = None) -> BudgetStore:
    """Read every table into a fresh :class:`BudgetStore`."""
    with connect(db_path) as conn:
        bills = _fetch(conn, "SELECT * FROM bills ORDER BY rowid")
        debts = _fetch(conn, "SELECT * FROM debts ORDER BY rowid")
        goals = _fetch(conn, "SELECT * FROM goals ORDER BY rowid")
        snapshots = _fetch(conn, "SELECT * FROM snapshots ORDER BY timestamp, rowid")
    return BudgetStore(
        bills=records_to_bills(bills),
        debts=records_to_debts(debts),
        goals=records_to_goals(goals),
        history=records_to_snapshots(snapshots),
    )


def save_bill(bill: Bill, db_path: Optional[PathLike] = None) -> None:
    _save('bills', bill_to_record(bill), db_path)


def delete_bill(bill_id: str, db_path: Optional[PathLike] = None) -> bool:
    return _delete('bills', bill_id, db_path)


def save_debt(debt: Debt, db_path: Optional[PathLike] = None) -> None:
    _save('debts', debt_to_record(debt), db_path)


def delete_debt(debt_id: str, db_path: Optional[PathLike] = None) -> bool:
    return _delete('debts', debt_id, db_path)


def save_goal(goal: Goal, db_path: Optional[PathLike] = None) -> None:
    _save('goals', goal_to_record(goal), db_path)


def delete_goal(goal_id: str, db_path: Optional[PathLike] = None) -> bool:
    return _delete('goals', goal_id, db_path)


def save_snapshot(snapshot: BudgetSnapshot, db_path: Optional[PathLike] = None) -> None:
    _save('snapshots', snapshot_to_record(snapshot), db_path)


def delete_snapshot(snapshot_id: str, db_path: Optional[PathLike] = None) -> bool:
    return _delete('snapshots', snapshot_id, db_path)


def replace_all(store: BudgetStore, db_path: Optional[PathLike] = None) -> None:
    """Overwrite every table with the contents of ``store`` in one transaction."""
    with connect(db_path) as conn:
        for table in TABLES:
            conn.execute(f"DELETE FROM {table}")
        for bill in store.bills:
            _upsert(conn, 'bills', bill_to_record(bill))
        for debt in store.debts:
            _upsert(conn, 'debts', debt_to_record(debt))
        for goal in store.goals:
            _upsert(conn, 'goals', goal_to_record(goal))
        for snapshot in store.history:
            _upsert(conn, 'snapshots', snapshot_to_record(snapshot))
        conn.commit()


def clear_database(db_path: Optional[PathLike] = None) -> bool:
    """Clear all budget data from the database. Returns True if successful."""
    with connect(db_path) as conn:
        for table in TABLES:
            conn.execute(f"DELETE FROM {table}")
        conn.commit()
        return True
