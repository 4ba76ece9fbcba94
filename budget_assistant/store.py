"""In-memory collections of bills, debts, goals and budget history.

A :class:`BudgetStore` is owned by the application shell
(:class:`~budget_assistant.workspace.BudgetWorkspace`) and handed to the
engine functions as a plain argument.  It never touches disk or network.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, TypeVar

from .errors import RecordNotFound
from .models import Bill, BudgetSnapshot, Debt, Goal

T = TypeVar('T')


def _index_of(records: List[T], record_id: str, kind: str) -> int:
    for index, record in enumerate(records):
        if record.id == record_id:
            return index
    raise RecordNotFound(f"No {kind} with id {record_id!r}")


@dataclass
class BudgetStore:
    bills: List[Bill] = field(default_factory=list)
    debts: List[Debt] = field(default_factory=list)
    goals: List[Goal] = field(default_factory=list)
    history: List[BudgetSnapshot] = field(default_factory=list)

    # Bills ---------------------------------------------------------------
    def get_bill(self, bill_id: str) -> Bill:
        return self.bills[_index_of(self.bills, bill_id, 'bill')]

    def add_bill(self, bill: Bill) -> Bill:
        self.bills.append(bill)
        return bill

    def update_bill(self, bill: Bill) -> Bill:
        self.bills[_index_of(self.bills, bill.id, 'bill')] = bill
        return bill

    def remove_bill(self, bill_id: str) -> Bill:
        return self.bills.pop(_index_of(self.bills, bill_id, 'bill'))

    # Debts ---------------------------------------------------------------
    def get_debt(self, debt_id: str) -> Debt:
        return self.debts[_index_of(self.debts, debt_id, 'debt')]

    def add_debt(self, debt: Debt) -> Debt:
        self.debts.append(debt)
        return debt

    def update_debt(self, debt: Debt) -> Debt:
        self.debts[_index_of(self.debts, debt.id, 'debt')] = debt
        return debt

    def remove_debt(self, debt_id: str) -> Debt:
        return self.debts.pop(_index_of(self.debts, debt_id, 'debt'))

    # Goals ---------------------------------------------------------------
    def get_goal(self, goal_id: str) -> Goal:
        return self.goals[_index_of(self.goals, goal_id, 'goal')]

    def add_goal(self, goal: Goal) -> Goal:
        self.goals.append(goal)
        return goal

    def update_goal(self, goal: Goal) -> Goal:
        self.goals[_index_of(self.goals, goal.id, 'goal')] = goal
        return goal

    def remove_goal(self, goal_id: str) -> Goal:
        return self.goals.pop(_index_of(self.goals, goal_id, 'goal'))

    # History -------------------------------------------------------------
    def append_snapshot(self, snapshot: BudgetSnapshot) -> BudgetSnapshot:
        self.history.append(snapshot)
        return snapshot

    def remove_snapshot(self, snapshot_id: str) -> BudgetSnapshot:
        return self.history.pop(_index_of(self.history, snapshot_id, 'snapshot'))

    def history_newest_first(self) -> List[BudgetSnapshot]:
        return sorted(self.history, key=lambda snap: snap.timestamp, reverse=True)

    def history_oldest_first(self) -> List[BudgetSnapshot]:
        return sorted(self.history, key=lambda snap: snap.timestamp)

    # Bulk ----------------------------------------------------------------
    def replace_all(
        self,
        bills: Optional[Sequence[Bill]] = None,
        debts: Optional[Sequence[Debt]] = None,
        goals: Optional[Sequence[Goal]] = None,
        history: Optional[Sequence[BudgetSnapshot]] = None,
    ) -> None:
        """Swap in freshly loaded collections; ``None`` leaves one untouched."""
        if bills is not None:
            self.bills[:] = list(bills)
        if debts is not None:
            self.debts[:] = list(debts)
        if goals is not None:
            self.goals[:] = list(goals)
        if history is not None:
            self.history[:] = list(history)

    def is_empty(self) -> bool:
        return not (self.bills or self.debts or self.goals or self.history)
