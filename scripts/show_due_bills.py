#!/usr/bin/env python3
"""Show the bills due in a pay-cycle window, read from the local database."""

from __future__ import annotations

import argparse
import sys
from datetime import date
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from budget_assistant import db
from budget_assistant.formatting import format_currency
from budget_assistant.models import coerce_date
from budget_assistant.recurrence import due_bills, frequency_label, next_occurrence_on_or_after, window_end


def main(window_start: date, db_path: str | None = None) -> None:
    db.init_db(db_path)
    store = db.load_store(db_path)
    if not store.bills:
        print("No bills stored yet.")
        return

    due = due_bills(store.bills, window_start)
    print(f"Window: {window_start.isoformat()} to {window_end(window_start).isoformat()}")
    if not due:
        print("Nothing due this cycle. 🎉")
        return

    total = sum(bill.amount for bill in due)
    for bill in due:
        when = next_occurrence_on_or_after(bill, window_start)
        print(f"  {when.isoformat()}  {bill.name:<24} {format_currency(bill.amount):>12}  {frequency_label(bill)}")
    print(f"\n{len(due)} bill(s) due, total {format_currency(total)}")


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Show bills due in a pay cycle.')
    parser.add_argument('--start', default=date.today().isoformat(), help='Pay cycle start date (YYYY-MM-DD)')
    parser.add_argument('--db', default=None, help='Path to the sqlite database')
    args = parser.parse_args()
    main(coerce_date(args.start), db_path=args.db)
