"""Mirror budget records to a Supabase project.

Every table is scoped by ``user_id``.  Writes are best-effort: failures are
logged and reported through the return value so the local copy stays the
source of truth for the current session.  :meth:`CloudSync.fetch_all` is
the exception and raises, because a failed read must never be mistaken for
an empty account.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from supabase import Client, create_client

from . import config
from .errors import CloudSyncError
from .models import Bill, BudgetSnapshot, Debt, Goal
from .record_mapping import (
    bill_to_row,
    debt_to_row,
    goal_to_row,
    records_to_bills,
    records_to_debts,
    records_to_goals,
    records_to_snapshots,
    snapshot_to_row,
)

logger = logging.getLogger(__name__)

BILLS_TABLE = 'bills'
DEBTS_TABLE = 'debts'
GOALS_TABLE = 'goals'
HISTORY_TABLE = 'history'


def create_cloud_client(url: Optional[str] = None, key: Optional[str] = None) -> Optional[Client]:
    """Build a Supabase client from settings, or ``None`` in local mode."""
    url = url or config.SUPABASE_URL
    key = key or config.SUPABASE_ANON_KEY
    if not (url and key):
        return None
    return create_client(url, key)


class CloudSync:
    def __init__(self, client: Any, user_id: str):
        self.client = client
        self.user_id = user_id

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def _select(self, table: str, order_by: str) -> List[Dict[str, Any]]:
        result = (
            self.client.table(table)
            .select('*')
            .eq('user_id', self.user_id)
            .order(order_by)
            .execute()
        )
        return list(result.data or [])

    def fetch_all(self) -> Dict[str, list]:
        """Load every collection for the signed-in user.

        Raises:
            CloudSyncError: If any table cannot be read.
        """
        try:
            bills = self._select(BILLS_TABLE, 'start_date')
            debts = self._select(DEBTS_TABLE, 'name')
            goals = self._select(GOALS_TABLE, 'name')
            history = self._select(HISTORY_TABLE, 'timestamp')
        except Exception as exc:
            logger.exception("fetch_all failed")
            raise CloudSyncError(f"Could not load data from the cloud: {exc}") from exc
        logger.info(
            "Fetched %d bills, %d debts, %d goals, %d snapshots from the cloud",
            len(bills), len(debts), len(goals), len(history),
        )
        return {
            'bills': records_to_bills(bills),
            'debts': records_to_debts(debts),
            'goals': records_to_goals(goals),
            'history': records_to_snapshots(history),
        }

    # ------------------------------------------------------------------
    # Generic writes
    # ------------------------------------------------------------------
    def insert(self, table: str, row: Mapping[str, Any]) -> Optional[str]:
        """Insert one row; return the id the backend assigned, if any."""
        payload = dict(row)
        payload['user_id'] = self.user_id
        try:
            result = self.client.table(table).insert(payload).execute()
        except Exception:
            logger.exception("insert into %s failed", table)
            return None
        if result.data:
            new_id = result.data[0].get('id')
            return str(new_id) if new_id is not None else None
        return None

    def update(self, table: str, record_id: str, row: Mapping[str, Any]) -> bool:
        try:
            (
                self.client.table(table)
                .update(dict(row))
                .eq('id', record_id)
                .eq('user_id', self.user_id)
                .execute()
            )
        except Exception:
            logger.exception("update of %s %s failed", table, record_id)
            return False
        return True

    def delete(self, table: str, record_id: str) -> bool:
        try:
            (
                self.client.table(table)
                .delete()
                .eq('id', record_id)
                .eq('user_id', self.user_id)
                .execute()
            )
        except Exception:
            logger.exception("delete of %s %s failed", table, record_id)
            return False
        return True

    def insert_many(self, table: str, rows: Sequence[Mapping[str, Any]]) -> int:
        """Bulk insert for migrations. Returns the number of rows written."""
        payload = [dict(row, user_id=self.user_id) for row in rows]
        if not payload:
            return 0
        try:
            result = self.client.table(table).insert(payload).execute()
        except Exception:
            logger.exception("bulk insert into %s failed", table)
            return 0
        return len(result.data or payload)

    # ------------------------------------------------------------------
    # Per-entity helpers
    # ------------------------------------------------------------------
    def insert_bill(self, bill: Bill) -> Optional[str]:
        return self.insert(BILLS_TABLE, bill_to_row(bill))

    def update_bill(self, bill: Bill) -> bool:
        return self.update(BILLS_TABLE, bill.id, bill_to_row(bill))

    def delete_bill(self, bill_id: str) -> bool:
        return self.delete(BILLS_TABLE, bill_id)

    def insert_debt(self, debt: Debt) -> Optional[str]:
        return self.insert(DEBTS_TABLE, debt_to_row(debt))

    def update_debt(self, debt: Debt) -> bool:
        return self.update(DEBTS_TABLE, debt.id, debt_to_row(debt))

    def delete_debt(self, debt_id: str) -> bool:
        return self.delete(DEBTS_TABLE, debt_id)

    def insert_goal(self, goal: Goal) -> Optional[str]:
        return self.insert(GOALS_TABLE, goal_to_row(goal))

    def update_goal(self, goal: Goal) -> bool:
        return self.update(GOALS_TABLE, goal.id, goal_to_row(goal))

    def delete_goal(self, goal_id: str) -> bool:
        return self.delete(GOALS_TABLE, goal_id)

    def insert_snapshot(self, snapshot: BudgetSnapshot) -> Optional[str]:
        return self.insert(HISTORY_TABLE, snapshot_to_row(snapshot))

    def delete_snapshot(self, snapshot_id: str) -> bool:
        return self.delete(HISTORY_TABLE, snapshot_id)
