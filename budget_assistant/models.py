"""Canonical record types for bills, debts, goals and budget snapshots.

Records are plain dataclasses.  Money is always :class:`decimal.Decimal`
and dates are :class:`datetime.date`; conversion from looser shapes
(JSON, sqlite rows, remote rows) happens once in
:mod:`budget_assistant.record_mapping`.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, Union

import pandas as pd

from .errors import UnparseableDate

DateLike = Union[date, datetime, str]

PRIORITIES = ('High', 'Medium', 'Low')
DEFAULT_PRIORITY = 'Medium'
BILL_MODES = ('due', 'all')
ZERO = Decimal('0')
HUNDRED = Decimal('100')


class Frequency(str, Enum):
    ONCE_OFF = 'Once Off'
    WEEKLY = 'Weekly'
    FORTNIGHTLY = 'Fortnightly'
    MONTHLY = 'Monthly'
    ANNUALLY = 'Annually'
    CUSTOM = 'Custom'


class CustomUnit(str, Enum):
    DAY = 'Day'
    WEEK = 'Week'
    MONTH = 'Month'
    YEAR = 'Year'


def new_id() -> str:
    """Return a fresh record id for locally created rows."""
    return uuid.uuid4().hex


def to_decimal(value: Any) -> Decimal:
    """Convert user or storage input into a finite Decimal.

    Accepts Decimals, ints, floats and strings such as ``"$1,234.50"``.
    Floats go through ``str`` so ``0.1`` becomes ``Decimal('0.1')``.

    Raises:
        ValueError: If the value is empty, boolean, non-numeric or not finite.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Not a number: {value!r}")
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, int):
        number = Decimal(value)
    elif isinstance(value, float):
        number = Decimal(str(value))
    elif isinstance(value, str):
        cleaned = value.strip().replace('$', '').replace(',', '')
        if not cleaned:
            raise ValueError("Not a number: empty string")
        try:
            number = Decimal(cleaned)
        except InvalidOperation as exc:
            raise ValueError(f"Not a number: {value!r}") from exc
    else:
        raise ValueError(f"Not a number: {value!r}")
    if not number.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return number


def coerce_date(value: Any) -> date:
    """Normalise a date, datetime or date string to a calendar date.

    Time-of-day is discarded so every comparison happens at midnight.

    Raises:
        UnparseableDate: If the value is missing or cannot be parsed.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise UnparseableDate(f"Cannot read {value!r} as a date")
    try:
        parsed = pd.to_datetime(value.strip(), errors='coerce')
    except (TypeError, ValueError, OverflowError) as exc:
        raise UnparseableDate(f"Cannot read {value!r} as a date") from exc
    if pd.isna(parsed):
        raise UnparseableDate(f"Cannot read {value!r} as a date")
    return parsed.date()


def optional_date(value: Any) -> Optional[date]:
    """Like :func:`coerce_date` but maps missing or bad values to ``None``."""
    try:
        return coerce_date(value)
    except UnparseableDate:
        return None


@dataclass
class Bill:
    id: str
    name: str
    amount: Decimal
    frequency: Frequency
    start_date: Optional[DateLike]
    custom_unit: Optional[CustomUnit] = None
    custom_value: Optional[int] = None

    @property
    def is_custom(self) -> bool:
        return self.frequency == Frequency.CUSTOM


@dataclass
class Debt:
    id: str
    name: str
    amount: Decimal
    min_payment: Decimal = ZERO
    interest: Decimal = ZERO
    priority: str = DEFAULT_PRIORITY
    initial_amount: Optional[Decimal] = None

    def __post_init__(self) -> None:
        # Progress is measured against the balance the debt was created with.
        if self.initial_amount is None:
            self.initial_amount = self.amount


@dataclass
class Goal:
    id: str
    name: str
    target_amount: Decimal
    saved_amount: Decimal = ZERO
    deadline: Optional[date] = None
    priority: str = DEFAULT_PRIORITY


@dataclass(frozen=True)
class BudgetInputs:
    """Form inputs for one budget calculation."""

    pay_cycle_start: Optional[date] = None
    income1: Decimal = ZERO
    income2: Decimal = ZERO
    splurge: Decimal = ZERO
    fire_pct: Decimal = ZERO
    smile_pct: Decimal = ZERO
    bill_mode: str = 'due'


@dataclass(frozen=True)
class Allocation:
    total_income: Decimal
    bills_due: Decimal
    remaining: Decimal
    fire_amt: Decimal
    smile_amt: Decimal
    mojo_amt: Decimal


@dataclass(frozen=True)
class BudgetSnapshot:
    timestamp: datetime
    pay_cycle_start: Optional[date]
    income1: Decimal
    income2: Decimal
    splurge: Decimal
    bills_due: Decimal
    fire_pct: Decimal
    smile_pct: Decimal
    fire_amt: Decimal
    smile_amt: Decimal
    mojo_amt: Decimal
    remaining: Decimal
    total_income: Decimal
    id: str = field(default_factory=new_id)
