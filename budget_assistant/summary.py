"""Dashboard aggregates: debt totals, goal completion and upcoming bills."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Sequence

from .config import UPCOMING_BILL_PREVIEW
from .models import ZERO, Allocation, Bill, BudgetInputs, Debt, Goal, to_decimal
from .recurrence import due_bills


@dataclass
class DashboardSummary:
    total_income: Decimal
    remaining: Decimal
    due_bills: List[Bill] = field(default_factory=list)
    total_debt: Decimal = ZERO
    average_goal_completion: Decimal = ZERO

    @property
    def due_bill_count(self) -> int:
        return len(self.due_bills)

    @property
    def next_bill_names(self) -> List[str]:
        return [bill.name for bill in self.due_bills[:UPCOMING_BILL_PREVIEW]]


def total_debt(debts: Sequence[Debt]) -> Decimal:
    return sum((Decimal(debt.amount) for debt in debts), ZERO)


def goal_progress(goal: Goal) -> Decimal:
    """Saved / target as a ratio; a zero target counts as no progress."""
    target = Decimal(goal.target_amount)
    if target == 0:
        return ZERO
    return Decimal(goal.saved_amount) / target


def average_goal_completion(goals: Sequence[Goal]) -> Decimal:
    """Mean completion ratio across goals, ``0`` when there are none."""
    if not goals:
        return ZERO
    return sum((goal_progress(goal) for goal in goals), ZERO) / len(goals)


def debt_progress(debt: Debt) -> Decimal:
    """Share of the original balance paid off, clamped to ``[0, 1]``."""
    initial = Decimal(debt.initial_amount or 0)
    if initial <= 0:
        return ZERO
    ratio = (initial - Decimal(debt.amount)) / initial
    return min(max(ratio, ZERO), Decimal(1))


def build_dashboard(
    bills: Sequence[Bill],
    debts: Sequence[Debt],
    goals: Sequence[Goal],
    inputs: BudgetInputs,
    last_allocation: Optional[Allocation] = None,
) -> DashboardSummary:
    """Collect the numbers shown on the dashboard cards."""
    return DashboardSummary(
        total_income=to_decimal(inputs.income1) + to_decimal(inputs.income2),
        remaining=last_allocation.remaining if last_allocation else ZERO,
        due_bills=due_bills(bills, inputs.pay_cycle_start),
        total_debt=total_debt(debts),
        average_goal_completion=average_goal_completion(goals),
    )
