"""Recurrence projection for bills.

Given a bill's start date and frequency this module works out when the
bill next falls due and whether it lands inside a fortnightly pay-cycle
window.  Everything here is pure: no I/O, no clock reads unless a caller
omits ``today``.

Calendar months and years are added with :class:`dateutil.relativedelta`,
which clamps to the last day of shorter months.  Occurrence *k* is always
computed from the start date (``start + k * period``) rather than by
stepping from the previous occurrence, so a bill starting on the 31st
returns to the 31st whenever the month allows it.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, List, Optional, Sequence

from dateutil.relativedelta import relativedelta

from .config import PAY_CYCLE_DAYS
from .errors import UnparseableDate
from .models import ZERO, Bill, CustomUnit, Frequency, coerce_date

logger = logging.getLogger(__name__)

FIXED_PERIODS = {
    Frequency.WEEKLY: relativedelta(days=7),
    Frequency.FORTNIGHTLY: relativedelta(days=14),
    Frequency.MONTHLY: relativedelta(months=1),
    Frequency.ANNUALLY: relativedelta(years=1),
}

CUSTOM_UNIT_PERIODS = {
    CustomUnit.DAY: relativedelta(days=1),
    CustomUnit.WEEK: relativedelta(days=7),
    CustomUnit.MONTH: relativedelta(months=1),
    CustomUnit.YEAR: relativedelta(years=1),
}


def window_end(window_start: date) -> date:
    """Last day (inclusive) of the pay-cycle window starting on ``window_start``."""
    return window_start + timedelta(days=PAY_CYCLE_DAYS - 1)


def period_of(bill: Bill) -> Optional[relativedelta]:
    """Return the interval between occurrences, or ``None`` for one-off bills.

    Raises:
        ValueError: If a custom bill has a count below one.
    """
    frequency = Frequency(bill.frequency)
    if frequency is Frequency.ONCE_OFF:
        return None
    if frequency is Frequency.CUSTOM:
        unit = CustomUnit(bill.custom_unit) if bill.custom_unit else CustomUnit.WEEK
        value = int(bill.custom_value) if bill.custom_value is not None else 1
        if value < 1:
            raise ValueError(f"Custom interval must be at least 1, got {value}")
        return CUSTOM_UNIT_PERIODS[unit] * value
    return FIXED_PERIODS[frequency]


def frequency_label(bill: Bill) -> str:
    """Human-readable frequency, e.g. ``Fortnightly`` or ``Every 3 Months``."""
    if Frequency(bill.frequency) is not Frequency.CUSTOM:
        return Frequency(bill.frequency).value
    value = int(bill.custom_value or 1)
    unit = CustomUnit(bill.custom_unit).value if bill.custom_unit else CustomUnit.WEEK.value
    plural = 's' if value > 1 else ''
    return f"Every {value} {unit}{plural}"


def _months_in(period: relativedelta) -> int:
    return period.years * 12 + period.months


def _periods_needed(start: date, reference: date, period: relativedelta) -> int:
    """Smallest ``k >= 0`` with ``start + k * period >= reference``."""
    if reference <= start:
        return 0
    months = _months_in(period)
    if months == 0:
        days = period.days
        return -(-(reference - start).days // days)
    month_gap = (reference.year - start.year) * 12 + (reference.month - start.month)
    k = max(0, month_gap // months)
    while start + period * k < reference:
        k += 1
    return k


def _resolve(bill: Bill) -> Optional[tuple]:
    """Return ``(start, period)`` for a bill, or ``None`` if it can never fall due."""
    try:
        start = coerce_date(bill.start_date)
    except UnparseableDate:
        logger.debug("Bill %r has an unreadable start date %r; treating as never due", bill.name, bill.start_date)
        return None
    try:
        period = period_of(bill)
    except ValueError as exc:
        logger.debug("Bill %r has an unusable frequency: %s", bill.name, exc)
        return None
    return start, period


def next_occurrence_on_or_after(bill: Bill, reference_date: Any) -> Optional[date]:
    """Return the bill's first occurrence on or after ``reference_date``.

    One-off bills return their start date while it is still ahead of the
    reference date and ``None`` once it has passed.  Bills whose start date
    (or the reference date itself) cannot be parsed return ``None``.
    """
    try:
        reference = coerce_date(reference_date)
    except UnparseableDate:
        return None
    resolved = _resolve(bill)
    if resolved is None:
        return None
    start, period = resolved
    if period is None:
        return start if start >= reference else None
    try:
        return start + period * _periods_needed(start, reference, period)
    except (OverflowError, ValueError):
        logger.debug("Bill %r has no occurrence before the last representable date", bill.name)
        return None


def is_due_in_window(bill: Bill, window_start: Any) -> bool:
    """True when the bill has an occurrence inside the 14-day window.

    A missing or unreadable ``window_start`` means no window has been
    chosen, so nothing is due.
    """
    if window_start is None:
        return False
    try:
        start = coerce_date(window_start)
    except UnparseableDate:
        return False
    occurrence = next_occurrence_on_or_after(bill, start)
    if occurrence is None:
        return False
    try:
        return occurrence <= window_end(start)
    except OverflowError:
        return False


def next_due(bill: Bill, today: Optional[date] = None) -> Optional[date]:
    """Next occurrence counted from today (or the supplied ``today``)."""
    return next_occurrence_on_or_after(bill, today or date.today())


def occurrences_between(bill: Bill, start: Any, end: Any) -> List[date]:
    """Every occurrence of ``bill`` in the inclusive range ``[start, end]``."""
    try:
        range_start = coerce_date(start)
        range_end = coerce_date(end)
    except UnparseableDate:
        return []
    resolved = _resolve(bill)
    if resolved is None or range_end < range_start:
        return []
    first, period = resolved
    if period is None:
        return [first] if range_start <= first <= range_end else []
    dates: List[date] = []
    try:
        k = _periods_needed(first, range_start, period)
        occurrence = first + period * k
        while occurrence <= range_end:
            dates.append(occurrence)
            k += 1
            occurrence = first + period * k
    except (OverflowError, ValueError):  # ran past date.max
        pass
    return dates


def due_bills(bills: Sequence[Bill], window_start: Any) -> List[Bill]:
    """Bills due in the window, ordered by their next occurrence.

    Ties keep the order of ``bills``.
    """
    if window_start is None:
        return []
    keyed = []
    for bill in bills:
        if is_due_in_window(bill, window_start):
            keyed.append((next_occurrence_on_or_after(bill, window_start), bill))
    keyed.sort(key=lambda item: item[0])
    return [bill for _, bill in keyed]


def select_bills(bills: Sequence[Bill], window_start: Any, mode: str = 'due') -> List[Bill]:
    """Pick the bills that count toward a calculation.

    ``mode='all'`` returns every bill regardless of dates; ``mode='due'``
    returns only the bills due in the pay-cycle window.
    """
    if mode == 'all':
        return list(bills)
    if mode == 'due':
        return due_bills(bills, window_start)
    raise ValueError(f"Unknown bill mode: {mode!r}")


def bills_due_amount(bills: Sequence[Bill], window_start: Any, mode: str = 'due') -> Decimal:
    """Sum of bill amounts selected by :func:`select_bills`."""
    return sum((Decimal(bill.amount) for bill in select_bills(bills, window_start, mode)), ZERO)
