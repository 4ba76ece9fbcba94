"""Mapping between stored rows and canonical records.

Rows arrive in several shapes: sqlite rows, Supabase rows with their own
column names, and JSON backups written by older versions of the app that
used camelCase keys.  Every tolerant fallback lives here so the rest of
the package only ever sees :mod:`budget_assistant.models` records.

``*_from_record`` functions raise :class:`RecordError` on rows that
cannot be used; the ``records_to_*`` helpers skip those rows with a
warning so one bad row does not block a whole refresh.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, TypeVar

import pandas as pd

from .allocation import allocate
from .errors import InvalidAllocationInput, RecordError, UnparseableDate
from .models import (
    DEFAULT_PRIORITY,
    PRIORITIES,
    ZERO,
    Bill,
    BudgetSnapshot,
    CustomUnit,
    Debt,
    Frequency,
    Goal,
    coerce_date,
    new_id,
    optional_date,
    to_decimal,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')

FREQUENCY_ALIASES = {
    'onceoff': Frequency.ONCE_OFF,
    'oneoff': Frequency.ONCE_OFF,
    'once': Frequency.ONCE_OFF,
    'weekly': Frequency.WEEKLY,
    'fortnightly': Frequency.FORTNIGHTLY,
    'biweekly': Frequency.FORTNIGHTLY,
    'monthly': Frequency.MONTHLY,
    'annually': Frequency.ANNUALLY,
    'annual': Frequency.ANNUALLY,
    'yearly': Frequency.ANNUALLY,
    'custom': Frequency.CUSTOM,
}

UNIT_ALIASES = {
    'day': CustomUnit.DAY,
    'days': CustomUnit.DAY,
    'week': CustomUnit.WEEK,
    'weeks': CustomUnit.WEEK,
    'month': CustomUnit.MONTH,
    'months': CustomUnit.MONTH,
    'year': CustomUnit.YEAR,
    'years': CustomUnit.YEAR,
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _normalise_key(value: Any) -> str:
    return ''.join(ch for ch in str(value).lower() if ch.isalnum())


def _pick(row: Mapping[str, Any], *names: str, default: Any = None) -> Any:
    """Return the first non-empty value among ``names``."""
    for name in names:
        value = row.get(name)
        if value is not None and value != '':
            return value
    return default


def _money(row: Mapping[str, Any], *names: str, default: Optional[Decimal] = None) -> Decimal:
    value = _pick(row, *names)
    if value is None:
        if default is None:
            raise RecordError(f"Missing {names[0]}")
        return default
    try:
        return to_decimal(value)
    except ValueError as exc:
        raise RecordError(f"Invalid {names[0]}: {value!r}") from exc


def _priority(value: Any) -> str:
    text = str(value or '').strip().title()
    return text if text in PRIORITIES else DEFAULT_PRIORITY


def _iso(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def _plain(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else str(value)


def parse_frequency(value: Any) -> Frequency:
    if isinstance(value, Frequency):
        return value
    try:
        return FREQUENCY_ALIASES[_normalise_key(value)]
    except KeyError as exc:
        raise RecordError(f"Unknown frequency: {value!r}") from exc


def parse_custom_unit(value: Any) -> CustomUnit:
    if isinstance(value, CustomUnit):
        return value
    try:
        return UNIT_ALIASES[_normalise_key(value)]
    except KeyError as exc:
        raise RecordError(f"Unknown custom unit: {value!r}") from exc


def parse_timestamp(value: Any) -> datetime:
    """Read a snapshot timestamp as a naive datetime (UTC if it had a zone)."""
    if isinstance(value, datetime):
        stamp = pd.Timestamp(value)
    else:
        try:
            stamp = pd.to_datetime(value, errors='coerce')
        except (TypeError, ValueError, OverflowError) as exc:
            raise RecordError(f"Invalid timestamp: {value!r}") from exc
    if pd.isna(stamp):
        raise RecordError(f"Invalid timestamp: {value!r}")
    if stamp.tzinfo is not None:
        stamp = stamp.tz_convert(None)
    return stamp.to_pydatetime()


def _record_id(row: Mapping[str, Any]) -> str:
    value = _pick(row, 'id')
    return str(value) if value is not None else new_id()


# ---------------------------------------------------------------------------
# Bills
# ---------------------------------------------------------------------------


def bill_from_record(row: Mapping[str, Any]) -> Bill:
    name = str(_pick(row, 'name', default='')).strip()
    if not name:
        raise RecordError("Bill is missing a name")
    frequency = parse_frequency(_pick(row, 'frequency', default=Frequency.FORTNIGHTLY.value))
    raw_start = _pick(row, 'start_date', 'startDate', 'start')
    try:
        start_date = coerce_date(raw_start)
    except UnparseableDate:
        # Keep the original text so it survives a save; the engine skips it.
        logger.warning("Bill %r has an unreadable start date %r", name, raw_start)
        start_date = raw_start if isinstance(raw_start, str) else None
    custom_unit = None
    custom_value = None
    if frequency is Frequency.CUSTOM:
        custom_unit = parse_custom_unit(_pick(row, 'custom_unit', 'customUnit', default=CustomUnit.WEEK.value))
        raw_value = _pick(row, 'custom_value', 'customValue', default=1)
        try:
            custom_value = int(Decimal(str(raw_value)))
        except (ArithmeticError, ValueError) as exc:
            raise RecordError(f"Invalid custom value: {raw_value!r}") from exc
        if custom_value < 1:
            raise RecordError(f"Custom value must be at least 1, got {custom_value}")
    return Bill(
        id=_record_id(row),
        name=name,
        amount=_money(row, 'amount', 'amt', 'value'),
        frequency=frequency,
        start_date=start_date,
        custom_unit=custom_unit,
        custom_value=custom_value,
    )


def bill_to_record(bill: Bill) -> Dict[str, Any]:
    return {
        'id': bill.id,
        'name': bill.name,
        'amount': _plain(bill.amount),
        'frequency': Frequency(bill.frequency).value,
        'start_date': _iso(bill.start_date),
        'custom_unit': CustomUnit(bill.custom_unit).value if bill.custom_unit else None,
        'custom_value': bill.custom_value,
    }


def bill_to_row(bill: Bill) -> Dict[str, Any]:
    return {
        'name': bill.name,
        'amount': float(bill.amount),
        'frequency': Frequency(bill.frequency).value,
        'start_date': _iso(bill.start_date),
        'custom_unit': CustomUnit(bill.custom_unit).value if bill.custom_unit else None,
        'custom_value': bill.custom_value,
    }


# ---------------------------------------------------------------------------
# Debts
# ---------------------------------------------------------------------------


def debt_from_record(row: Mapping[str, Any]) -> Debt:
    amount = _money(row, 'amount', 'owed', 'balance')
    return Debt(
        id=_record_id(row),
        name=str(_pick(row, 'name', default='Debt')).strip() or 'Debt',
        amount=amount,
        min_payment=_money(row, 'min_payment', 'minPayment', default=ZERO),
        interest=_money(row, 'interest', 'interest_rate', default=ZERO),
        priority=_priority(_pick(row, 'priority')),
        initial_amount=_money(row, 'initial_amount', 'initialAmount', default=amount),
    )


def debt_to_record(debt: Debt) -> Dict[str, Any]:
    return {
        'id': debt.id,
        'name': debt.name,
        'amount': _plain(debt.amount),
        'min_payment': _plain(debt.min_payment),
        'interest': _plain(debt.interest),
        'priority': debt.priority,
        'initial_amount': _plain(debt.initial_amount),
    }


def debt_to_row(debt: Debt) -> Dict[str, Any]:
    return {
        'name': debt.name,
        'amount': float(debt.amount),
        'min_payment': float(debt.min_payment),
        'interest': float(debt.interest),
        'priority': debt.priority,
        'initial_amount': float(debt.initial_amount if debt.initial_amount is not None else debt.amount),
    }


# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------


def goal_from_record(row: Mapping[str, Any]) -> Goal:
    name = str(_pick(row, 'name', default='')).strip()
    if not name:
        raise RecordError("Goal is missing a name")
    return Goal(
        id=_record_id(row),
        name=name,
        target_amount=_money(row, 'target_amount', 'targetAmount', 'target', default=ZERO),
        saved_amount=_money(row, 'saved_amount', 'savedAmount', 'saved', default=ZERO),
        deadline=optional_date(_pick(row, 'deadline', 'target_date', 'date')),
        priority=_priority(_pick(row, 'priority')),
    )


def goal_to_record(goal: Goal) -> Dict[str, Any]:
    return {
        'id': goal.id,
        'name': goal.name,
        'target_amount': _plain(goal.target_amount),
        'saved_amount': _plain(goal.saved_amount),
        'deadline': _iso(goal.deadline),
        'priority': goal.priority,
    }


def goal_to_row(goal: Goal) -> Dict[str, Any]:
    return {
        'name': goal.name,
        'target': float(goal.target_amount),
        'saved': float(goal.saved_amount),
        'deadline': _iso(goal.deadline),
        'priority': goal.priority,
    }


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------

SNAPSHOT_AMOUNT_FIELDS = ('fire_amt', 'smile_amt', 'mojo_amt', 'remaining', 'total_income')


def snapshot_from_record(row: Mapping[str, Any]) -> BudgetSnapshot:
    timestamp = parse_timestamp(_pick(row, 'timestamp', 'ts'))
    income1 = _money(row, 'income1', default=ZERO)
    income2 = _money(row, 'income2', default=ZERO)
    splurge = _money(row, 'splurge', default=ZERO)
    bills_due = _money(row, 'bills_due', 'bills', default=ZERO)
    fire_pct = _money(row, 'fire_pct', default=ZERO)
    smile_pct = _money(row, 'smile_pct', default=ZERO)

    amounts: Dict[str, Decimal] = {}
    for name in SNAPSHOT_AMOUNT_FIELDS:
        if _pick(row, name) is not None:
            amounts[name] = _money(row, name)
    if len(amounts) < len(SNAPSHOT_AMOUNT_FIELDS):
        # Older remote rows only kept the inputs and ``remaining``.
        try:
            derived = allocate(income1, income2, splurge, bills_due, fire_pct, smile_pct)
        except InvalidAllocationInput as exc:
            raise RecordError(f"Snapshot percentages are invalid: {exc}") from exc
        for name in SNAPSHOT_AMOUNT_FIELDS:
            amounts.setdefault(name, getattr(derived, name))

    return BudgetSnapshot(
        id=_record_id(row),
        timestamp=timestamp,
        pay_cycle_start=optional_date(_pick(row, 'pay_cycle_start', 'pay_cycle')),
        income1=income1,
        income2=income2,
        splurge=splurge,
        bills_due=bills_due,
        fire_pct=fire_pct,
        smile_pct=smile_pct,
        **amounts,
    )


def snapshot_to_record(snapshot: BudgetSnapshot) -> Dict[str, Any]:
    return {
        'id': snapshot.id,
        'timestamp': snapshot.timestamp.isoformat(),
        'pay_cycle_start': _iso(snapshot.pay_cycle_start),
        'income1': _plain(snapshot.income1),
        'income2': _plain(snapshot.income2),
        'splurge': _plain(snapshot.splurge),
        'bills_due': _plain(snapshot.bills_due),
        'fire_pct': _plain(snapshot.fire_pct),
        'smile_pct': _plain(snapshot.smile_pct),
        'fire_amt': _plain(snapshot.fire_amt),
        'smile_amt': _plain(snapshot.smile_amt),
        'mojo_amt': _plain(snapshot.mojo_amt),
        'remaining': _plain(snapshot.remaining),
        'total_income': _plain(snapshot.total_income),
    }


def snapshot_to_row(snapshot: BudgetSnapshot) -> Dict[str, Any]:
    return {
        'timestamp': snapshot.timestamp.isoformat(),
        'pay_cycle': _iso(snapshot.pay_cycle_start),
        'income1': float(snapshot.income1),
        'income2': float(snapshot.income2),
        'splurge': float(snapshot.splurge),
        'bills': float(snapshot.bills_due),
        'fire_pct': float(snapshot.fire_pct),
        'smile_pct': float(snapshot.smile_pct),
        'fire_amt': float(snapshot.fire_amt),
        'smile_amt': float(snapshot.smile_amt),
        'mojo_amt': float(snapshot.mojo_amt),
        'remaining': float(snapshot.remaining),
        'total_income': float(snapshot.total_income),
    }


# ---------------------------------------------------------------------------
# Bulk helpers
# ---------------------------------------------------------------------------


def map_records(rows: Iterable[Mapping[str, Any]], mapper: Callable[[Mapping[str, Any]], T], kind: str) -> List[T]:
    """Apply ``mapper`` to each row, skipping rows that cannot be mapped."""
    records: List[T] = []
    for row in rows or []:
        if not isinstance(row, Mapping):
            logger.warning("Skipping %s row that is not an object: %r", kind, row)
            continue
        try:
            records.append(mapper(row))
        except RecordError as exc:
            logger.warning("Skipping %s row %r: %s", kind, row.get('id'), exc)
    return records


def records_to_bills(rows: Iterable[Mapping[str, Any]]) -> List[Bill]:
    return map_records(rows, bill_from_record, 'bill')


def records_to_debts(rows: Iterable[Mapping[str, Any]]) -> List[Debt]:
    return map_records(rows, debt_from_record, 'debt')


def records_to_goals(rows: Iterable[Mapping[str, Any]]) -> List[Goal]:
    return map_records(rows, goal_from_record, 'goal')


def records_to_snapshots(rows: Iterable[Mapping[str, Any]]) -> List[BudgetSnapshot]:
    return map_records(rows, snapshot_from_record, 'snapshot')
