"""Fortnightly budget allocation across the Splurge, Fire, Smile and Mojo buckets.

Income left after the splurge deduction and bills is split by two
percentages (Fire and Smile).  Mojo takes whatever is left so the three
buckets always add back up to ``remaining`` exactly.

Example:
    >>> allocate(1000, 0, 100, 200, 30, 20).mojo_amt
    Decimal('350')
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, Sequence

from .errors import InvalidAllocationInput
from .models import HUNDRED, Allocation, Bill, BudgetInputs, BudgetSnapshot, new_id, to_decimal
from .recurrence import bills_due_amount


def _money(name: str, value: Any) -> Decimal:
    try:
        return to_decimal(value)
    except ValueError as exc:
        raise InvalidAllocationInput(f"{name} must be a number") from exc


def validate_percentages(fire_pct: Any, smile_pct: Any) -> tuple:
    """Return the percentages as Decimals, rejecting a total above 100."""
    fire = _money('Fire %', fire_pct)
    smile = _money('Smile %', smile_pct)
    if fire + smile > HUNDRED:
        raise InvalidAllocationInput("Fire % + Smile % cannot exceed 100%.")
    return fire, smile


def mojo_pct(fire_pct: Any, smile_pct: Any) -> Decimal:
    """Share of the remainder that lands in Mojo."""
    fire, smile = validate_percentages(fire_pct, smile_pct)
    return HUNDRED - fire - smile


def allocate(
    income1: Any,
    income2: Any,
    splurge: Any,
    bills_due: Any,
    fire_pct: Any,
    smile_pct: Any,
) -> Allocation:
    """Split one pay cycle's income into buckets.

    ``remaining`` may be negative when bills and splurge exceed income; the
    buckets then go negative in proportion rather than being clamped.

    Raises:
        InvalidAllocationInput: If ``fire_pct + smile_pct > 100`` or an input
            is not numeric.
    """
    fire, smile = validate_percentages(fire_pct, smile_pct)
    total_income = _money('Income 1', income1) + _money('Income 2', income2)
    bills = _money('Bills due', bills_due)
    remaining = total_income - _money('Splurge', splurge) - bills
    fire_amt = remaining * fire / HUNDRED
    smile_amt = remaining * smile / HUNDRED
    return Allocation(
        total_income=total_income,
        bills_due=bills,
        remaining=remaining,
        fire_amt=fire_amt,
        smile_amt=smile_amt,
        mojo_amt=remaining - fire_amt - smile_amt,
    )


def calculate_budget(bills: Sequence[Bill], inputs: BudgetInputs) -> Allocation:
    """Sum the bills selected by ``inputs.bill_mode`` and allocate the rest."""
    validate_percentages(inputs.fire_pct, inputs.smile_pct)
    due_amount = bills_due_amount(bills, inputs.pay_cycle_start, inputs.bill_mode)
    return allocate(
        inputs.income1,
        inputs.income2,
        inputs.splurge,
        due_amount,
        inputs.fire_pct,
        inputs.smile_pct,
    )


def build_snapshot(
    inputs: BudgetInputs,
    allocation: Allocation,
    timestamp: Optional[datetime] = None,
    snapshot_id: Optional[str] = None,
) -> BudgetSnapshot:
    """Freeze a calculation into a history record."""
    return BudgetSnapshot(
        id=snapshot_id or new_id(),
        timestamp=(timestamp or datetime.now()).replace(microsecond=0),
        pay_cycle_start=inputs.pay_cycle_start,
        income1=to_decimal(inputs.income1),
        income2=to_decimal(inputs.income2),
        splurge=to_decimal(inputs.splurge),
        bills_due=allocation.bills_due,
        fire_pct=to_decimal(inputs.fire_pct),
        smile_pct=to_decimal(inputs.smile_pct),
        fire_amt=allocation.fire_amt,
        smile_amt=allocation.smile_amt,
        mojo_amt=allocation.mojo_amt,
        remaining=allocation.remaining,
        total_income=allocation.total_income,
    )
