"""CSV and JSON export/import for budget history and full backups."""

from __future__ import annotations

import io
import json
import logging
from typing import Any, Dict, List, Sequence

import pandas as pd

from .errors import BackupFormatError
from .models import BudgetSnapshot
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

HISTORY_COLUMNS = [
    'ts',
    'pay_cycle',
    'income1',
    'income2',
    'splurge',
    'bills_due',
    'fire_pct',
    'smile_pct',
    'fire_amt',
    'smile_amt',
    'mojo_amt',
    'remaining',
    'total_income',
]

BACKUP_SECTIONS = {
    'bills': records_to_bills,
    'debts': records_to_debts,
    'goals': records_to_goals,
    'history': records_to_snapshots,
}


def history_to_dataframe(snapshots: Sequence[BudgetSnapshot]) -> pd.DataFrame:
    """Tabulate snapshots using the history CSV column names.

    Money stays as :class:`~decimal.Decimal` in an object column so that
    writing the frame to CSV keeps every digit.
    """
    rows = [
        {
            'ts': snap.timestamp,
            'pay_cycle': snap.pay_cycle_start,
            'income1': snap.income1,
            'income2': snap.income2,
            'splurge': snap.splurge,
            'bills_due': snap.bills_due,
            'fire_pct': snap.fire_pct,
            'smile_pct': snap.smile_pct,
            'fire_amt': snap.fire_amt,
            'smile_amt': snap.smile_amt,
            'mojo_amt': snap.mojo_amt,
            'remaining': snap.remaining,
            'total_income': snap.total_income,
        }
        for snap in snapshots
    ]
    return pd.DataFrame(rows, columns=HISTORY_COLUMNS)


def export_history_csv(snapshots: Sequence[BudgetSnapshot]) -> str:
    frame = history_to_dataframe(snapshots)
    if not frame.empty:
        frame['ts'] = frame['ts'].map(lambda value: value.isoformat())
        frame['pay_cycle'] = frame['pay_cycle'].map(lambda value: value.isoformat() if value else '')
    return frame.to_csv(index=False)


def read_history_csv(text: str) -> List[BudgetSnapshot]:
    """Parse a history CSV written by :func:`export_history_csv`.

    Every column is read as text so amounts convert straight to Decimal.
    """
    try:
        frame = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False)
    except pd.errors.EmptyDataError:
        return []
    except pd.errors.ParserError as exc:
        raise BackupFormatError(f"History CSV could not be parsed: {exc}") from exc
    missing = [col for col in ('ts', 'income1', 'income2') if col not in frame.columns]
    if missing:
        raise BackupFormatError(f"History CSV is missing columns: {', '.join(missing)}")
    return records_to_snapshots(frame.to_dict('records'))


def export_backup_json(store: BudgetStore) -> str:
    payload = {
        'bills': [bill_to_record(bill) for bill in store.bills],
        'debts': [debt_to_record(debt) for debt in store.debts],
        'goals': [goal_to_record(goal) for goal in store.goals],
        'history': [snapshot_to_record(snap) for snap in store.history_oldest_first()],
    }
    return json.dumps(payload, indent=2)


def read_backup_json(text: str) -> Dict[str, List[Any]]:
    """Parse a JSON backup into record lists.

    Only sections present in the file appear in the result, so an import
    never wipes a collection the backup does not mention.

    Raises:
        BackupFormatError: If the text is not JSON, is not an object, or a
            section is not a list.
    """
    try:
        payload = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise BackupFormatError(f"Backup is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise BackupFormatError("Backup must be a JSON object")

    result: Dict[str, List[Any]] = {}
    for key, mapper in BACKUP_SECTIONS.items():
        if key not in payload:
            continue
        section = payload[key]
        if not isinstance(section, list):
            raise BackupFormatError(f"Backup section '{key}' must be a list")
        result[key] = mapper(section)
        logger.info("Read %d of %d %s from backup", len(result[key]), len(section), key)
    return result
