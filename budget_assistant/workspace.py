"""Application shell that owns the budget data for one session.

:class:`BudgetWorkspace` validates every change, applies it to the
in-memory :class:`~budget_assistant.store.BudgetStore` and persists it,
to sqlite in local mode or to Supabase when a :class:`CloudSync` is
attached.  Pages only ever talk to a workspace.
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Optional, Union

from . import db
from .allocation import build_snapshot, calculate_budget
from .cloud_sync import BILLS_TABLE, DEBTS_TABLE, GOALS_TABLE, HISTORY_TABLE, CloudSync
from .errors import CloudSyncError, RecordError, UnparseableDate, ValidationError
from .exporters import export_backup_json, export_history_csv, read_backup_json, read_history_csv
from .models import (
    DEFAULT_PRIORITY,
    PRIORITIES,
    ZERO,
    Allocation,
    Bill,
    BudgetInputs,
    BudgetSnapshot,
    Debt,
    Frequency,
    Goal,
    coerce_date,
    new_id,
    to_decimal,
)
from .record_mapping import (
    bill_to_row,
    debt_to_row,
    goal_to_row,
    parse_custom_unit,
    parse_frequency,
    snapshot_to_row,
)
from .store import BudgetStore
from .summary import DashboardSummary, build_dashboard

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _name(value: Any, kind: str) -> str:
    text = str(value or '').strip()
    if not text:
        raise ValidationError(f"{kind} name is required.")
    return text


def _amount(value: Any, label: str) -> Decimal:
    try:
        return to_decimal(value)
    except ValueError as exc:
        raise ValidationError(f"{label} must be a number.") from exc


def _positive(value: Any, label: str) -> Decimal:
    number = _amount(value, label)
    if number <= 0:
        raise ValidationError(f"{label} must be greater than zero.")
    return number


def _non_negative(value: Any, label: str) -> Decimal:
    number = _amount(value, label)
    if number < 0:
        raise ValidationError(f"{label} cannot be negative.")
    return number


def _priority(value: Any) -> str:
    priority = value or DEFAULT_PRIORITY
    if priority not in PRIORITIES:
        raise ValidationError(f"Priority must be one of {', '.join(PRIORITIES)}.")
    return priority


def _optional_deadline(value: Any) -> Optional[date]:
    if value in (None, ''):
        return None
    try:
        return coerce_date(value)
    except UnparseableDate as exc:
        raise ValidationError("Deadline is not a valid date.") from exc


def build_bill(
    bill_id: str,
    name: Any,
    amount: Any,
    frequency: Any,
    start_date: Any,
    custom_unit: Any = None,
    custom_value: Any = None,
) -> Bill:
    """Validate bill form values and return a :class:`Bill`."""
    try:
        freq = parse_frequency(frequency)
    except RecordError as exc:
        raise ValidationError(str(exc)) from exc
    try:
        start = coerce_date(start_date)
    except UnparseableDate as exc:
        raise ValidationError("Start date is not a valid date.") from exc

    unit = None
    value = None
    if freq is Frequency.CUSTOM:
        if custom_unit in (None, ''):
            raise ValidationError("Custom bills need a repeat unit.")
        try:
            unit = parse_custom_unit(custom_unit)
        except RecordError as exc:
            raise ValidationError(str(exc)) from exc
        try:
            value = int(custom_value)
        except (TypeError, ValueError) as exc:
            raise ValidationError("Repeat every must be a whole number.") from exc
        if value < 1:
            raise ValidationError("Repeat every must be at least 1.")

    return Bill(
        id=bill_id,
        name=_name(name, 'Bill'),
        amount=_positive(amount, 'Amount'),
        frequency=freq,
        start_date=start,
        custom_unit=unit,
        custom_value=value,
    )


# ---------------------------------------------------------------------------
# Workspace
# ---------------------------------------------------------------------------


class BudgetWorkspace:
    def __init__(
        self,
        store: Optional[BudgetStore] = None,
        db_path: Optional[Union[str, Path]] = None,
        cloud: Optional[CloudSync] = None,
    ):
        self.store = store if store is not None else BudgetStore()
        self.db_path = db_path
        self.cloud = cloud
        self.last_inputs: Optional[BudgetInputs] = None
        self.last_allocation: Optional[Allocation] = None
        self.last_snapshot: Optional[BudgetSnapshot] = None

    @classmethod
    def open(
        cls,
        db_path: Optional[Union[str, Path]] = None,
        cloud: Optional[CloudSync] = None,
    ) -> 'BudgetWorkspace':
        """Create the schema if needed and load the local database."""
        db.init_db(db_path)
        return cls(store=db.load_store(db_path), db_path=db_path, cloud=cloud)

    @property
    def is_cloud(self) -> bool:
        return self.cloud is not None

    # sqlite holds this machine's records; a cloud session writes only to the cloud.
    def _save_local(self, save, record) -> None:
        if not self.is_cloud:
            save(record, self.db_path)

    def _delete_local(self, delete, record_id: str) -> None:
        if not self.is_cloud:
            delete(record_id, self.db_path)

    @staticmethod
    def _adopt_id(record, remote_id: Optional[str]) -> None:
        if remote_id:
            record.id = remote_id

    # Bills ---------------------------------------------------------------
    def add_bill(self, name, amount, frequency, start_date, custom_unit=None, custom_value=None) -> Bill:
        bill = build_bill(new_id(), name, amount, frequency, start_date, custom_unit, custom_value)
        if self.cloud:
            self._adopt_id(bill, self.cloud.insert_bill(bill))
        self._save_local(db.save_bill, bill)
        self.store.add_bill(bill)
        logger.info("Added bill %s", bill.name)
        return bill

    def update_bill(self, bill_id, name, amount, frequency, start_date, custom_unit=None, custom_value=None) -> Bill:
        self.store.get_bill(bill_id)
        bill = build_bill(bill_id, name, amount, frequency, start_date, custom_unit, custom_value)
        self.store.update_bill(bill)
        self._save_local(db.save_bill, bill)
        if self.cloud:
            self.cloud.update_bill(bill)
        return bill

    def delete_bill(self, bill_id: str) -> Bill:
        bill = self.store.remove_bill(bill_id)
        self._delete_local(db.delete_bill, bill_id)
        if self.cloud:
            self.cloud.delete_bill(bill_id)
        return bill

    # Debts ---------------------------------------------------------------
    def add_debt(self, name, amount, min_payment=0, interest=0, priority=DEFAULT_PRIORITY) -> Debt:
        debt = Debt(
            id=new_id(),
            name=_name(name, 'Debt'),
            amount=_non_negative(amount, 'Amount owed'),
            min_payment=_non_negative(min_payment, 'Minimum payment'),
            interest=_non_negative(interest, 'Interest'),
            priority=_priority(priority),
        )
        if self.cloud:
            self._adopt_id(debt, self.cloud.insert_debt(debt))
        self._save_local(db.save_debt, debt)
        self.store.add_debt(debt)
        logger.info("Added debt %s", debt.name)
        return debt

    def update_debt(self, debt_id, name, amount, min_payment=0, interest=0, priority=DEFAULT_PRIORITY) -> Debt:
        existing = self.store.get_debt(debt_id)
        debt = Debt(
            id=debt_id,
            name=_name(name, 'Debt'),
            amount=_non_negative(amount, 'Amount owed'),
            min_payment=_non_negative(min_payment, 'Minimum payment'),
            interest=_non_negative(interest, 'Interest'),
            priority=_priority(priority),
            initial_amount=existing.initial_amount,
        )
        return self._store_debt(debt)

    def pay_debt(self, debt_id: str, payment: Any) -> Debt:
        """Reduce a balance by ``payment``; the balance never drops below zero."""
        amount = _positive(payment, 'Payment')
        debt = self.store.get_debt(debt_id)
        paid = dataclasses.replace(debt, amount=max(ZERO, debt.amount - amount))
        return self._store_debt(paid)

    def _store_debt(self, debt: Debt) -> Debt:
        self.store.update_debt(debt)
        self._save_local(db.save_debt, debt)
        if self.cloud:
            self.cloud.update_debt(debt)
        return debt

    def delete_debt(self, debt_id: str) -> Debt:
        debt = self.store.remove_debt(debt_id)
        self._delete_local(db.delete_debt, debt_id)
        if self.cloud:
            self.cloud.delete_debt(debt_id)
        return debt

    # Goals ---------------------------------------------------------------
    def add_goal(self, name, target_amount, saved_amount=0, deadline=None, priority=DEFAULT_PRIORITY) -> Goal:
        goal = Goal(
            id=new_id(),
            name=_name(name, 'Goal'),
            target_amount=_positive(target_amount, 'Target'),
            saved_amount=_non_negative(saved_amount, 'Saved'),
            deadline=_optional_deadline(deadline),
            priority=_priority(priority),
        )
        if self.cloud:
            self._adopt_id(goal, self.cloud.insert_goal(goal))
        self._save_local(db.save_goal, goal)
        self.store.add_goal(goal)
        logger.info("Added goal %s", goal.name)
        return goal

    def update_goal(self, goal_id, name, target_amount, saved_amount=0, deadline=None, priority=DEFAULT_PRIORITY) -> Goal:
        self.store.get_goal(goal_id)
        goal = Goal(
            id=goal_id,
            name=_name(name, 'Goal'),
            target_amount=_positive(target_amount, 'Target'),
            saved_amount=_non_negative(saved_amount, 'Saved'),
            deadline=_optional_deadline(deadline),
            priority=_priority(priority),
        )
        return self._store_goal(goal)

    def deposit_goal(self, goal_id: str, deposit: Any) -> Goal:
        """Add ``deposit`` to a goal; savings stop at the target."""
        amount = _positive(deposit, 'Deposit')
        goal = self.store.get_goal(goal_id)
        saved = min(goal.target_amount, goal.saved_amount + amount)
        return self._store_goal(dataclasses.replace(goal, saved_amount=saved))

    def _store_goal(self, goal: Goal) -> Goal:
        self.store.update_goal(goal)
        self._save_local(db.save_goal, goal)
        if self.cloud:
            self.cloud.update_goal(goal)
        return goal

    def delete_goal(self, goal_id: str) -> Goal:
        goal = self.store.remove_goal(goal_id)
        self._delete_local(db.delete_goal, goal_id)
        if self.cloud:
            self.cloud.delete_goal(goal_id)
        return goal

    # Budget --------------------------------------------------------------
    def calculate(self, inputs: BudgetInputs) -> BudgetSnapshot:
        """Run the allocation and hold the result until it is saved.

        Raises:
            InvalidAllocationInput: If the percentages exceed 100 or an
                input is not numeric.
        """
        allocation = calculate_budget(self.store.bills, inputs)
        self.last_inputs = inputs
        self.last_allocation = allocation
        self.last_snapshot = build_snapshot(inputs, allocation)
        return self.last_snapshot

    def save_snapshot(self) -> BudgetSnapshot:
        """Append the pending calculation to history and clear it."""
        if self.last_snapshot is None:
            raise ValidationError("Calculate a budget before saving it.")
        snapshot = self.last_snapshot
        if self.cloud:
            remote_id = self.cloud.insert_snapshot(snapshot)
            if remote_id and remote_id != snapshot.id:
                snapshot = dataclasses.replace(snapshot, id=remote_id)
        self._save_local(db.save_snapshot, snapshot)
        self.store.append_snapshot(snapshot)
        self.last_snapshot = None
        self.last_allocation = None
        logger.info("Saved budget snapshot %s", snapshot.timestamp.isoformat())
        return snapshot

    def delete_snapshot(self, snapshot_id: str) -> BudgetSnapshot:
        snapshot = self.store.remove_snapshot(snapshot_id)
        self._delete_local(db.delete_snapshot, snapshot_id)
        if self.cloud:
            self.cloud.delete_snapshot(snapshot_id)
        return snapshot

    def dashboard(self, inputs: BudgetInputs) -> DashboardSummary:
        """Dashboard figures; "remaining" comes from the unsaved calculation only."""
        store = self.store
        return build_dashboard(store.bills, store.debts, store.goals, inputs, self.last_allocation)

    # Sync ----------------------------------------------------------------
    def refresh_from_cloud(self) -> bool:
        """Show the cloud copy in this session.

        The local database is not touched, so records created before
        signing in remain available to :meth:`migrate_local_to_cloud`.
        Returns ``False`` in local mode.

        Raises:
            CloudSyncError: If the cloud could not be read; the session
                keeps what it had.
        """
        if not self.cloud:
            return False
        data = self.cloud.fetch_all()
        self.store.replace_all(**data)
        logger.info("Loaded cloud data: %s", {key: len(records) for key, records in data.items()})
        return True

    def _push_all(self, local: BudgetStore) -> Dict[str, int]:
        plan = [
            ('bills', BILLS_TABLE, [bill_to_row(bill) for bill in local.bills]),
            ('debts', DEBTS_TABLE, [debt_to_row(debt) for debt in local.debts]),
            ('goals', GOALS_TABLE, [goal_to_row(goal) for goal in local.goals]),
            ('history', HISTORY_TABLE, [snapshot_to_row(snap) for snap in local.history_oldest_first()]),
        ]
        counts: Dict[str, int] = {}
        for key, table, rows in plan:
            written = self.cloud.insert_many(table, rows)
            if written < len(rows):
                raise CloudSyncError(f"Only {written} of {len(rows)} {key} reached the cloud.")
            counts[key] = written
        return counts

    def migrate_local_to_cloud(self) -> Dict[str, int]:
        """Upload the records stored on this machine, then reload from the cloud.

        Raises:
            CloudSyncError: In local mode, or when an upload is incomplete.
                The session keeps its current data in either case.
        """
        if not self.cloud:
            raise CloudSyncError("Sign in to a cloud account before migrating.")
        counts = self._push_all(db.load_store(self.db_path))
        self.refresh_from_cloud()
        logger.info("Migrated local data to the cloud: %s", counts)
        return counts

    # Backup --------------------------------------------------------------
    def export_backup(self) -> str:
        return export_backup_json(self.store)

    def import_backup(self, text: str) -> Dict[str, int]:
        """Replace the sections a JSON backup provides in the local database.

        When signed in, the session keeps showing the cloud account; use
        :meth:`migrate_local_to_cloud` to upload the restored records.

        Raises:
            BackupFormatError: If the text is not a usable backup.
        """
        data = read_backup_json(text)
        local = db.load_store(self.db_path) if self.is_cloud else self.store
        local.replace_all(**data)
        db.replace_all(local, self.db_path)
        counts = {key: len(records) for key, records in data.items()}
        logger.info("Imported backup: %s", counts)
        return counts

    def export_history_csv(self) -> str:
        return export_history_csv(self.store.history_oldest_first())

    def import_history_csv(self, text: str) -> int:
        """Append snapshots from a history CSV, skipping timestamps already stored."""
        known = {snap.timestamp for snap in self.store.history}
        added = 0
        for snapshot in read_history_csv(text):
            if snapshot.timestamp in known:
                continue
            known.add(snapshot.timestamp)
            if self.cloud:
                remote_id = self.cloud.insert_snapshot(snapshot)
                if remote_id:
                    snapshot = dataclasses.replace(snapshot, id=remote_id)
            self._save_local(db.save_snapshot, snapshot)
            self.store.append_snapshot(snapshot)
            added += 1
        logger.info("Imported %d snapshots from CSV", added)
        return added

    def clear_local_data(self) -> bool:
        """Delete the records stored on this machine.

        The session is emptied too in local mode; a cloud session is left
        as it is.
        """
        cleared = db.clear_database(self.db_path)
        if not self.is_cloud:
            self.store.replace_all(bills=[], debts=[], goals=[], history=[])
        logger.info("Cleared local data")
        return cleared
