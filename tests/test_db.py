import sqlite3
from datetime import date, datetime
from decimal import Decimal

from budget_assistant import db
from budget_assistant.models import Bill, BudgetSnapshot, CustomUnit, Debt, Frequency, Goal
from budget_assistant.store import BudgetStore


def _snapshot(snap_id='s1'):
    return BudgetSnapshot(
        id=snap_id,
        timestamp=datetime(2024, 1, 2, 9, 30),
        pay_cycle_start=date(2024, 1, 1),
        income1=Decimal('1000.10'), income2=Decimal('0'), splurge=Decimal('100'),
        bills_due=Decimal('200'), fire_pct=Decimal('30'), smile_pct=Decimal('20'),
        fire_amt=Decimal('210.03'), smile_amt=Decimal('140.02'), mojo_amt=Decimal('350.05'),
        remaining=Decimal('700.10'), total_income=Decimal('1000.10'),
    )


def test_round_trip_keeps_exact_amounts(tmp_path):
    path = tmp_path / 'budget.db'
    db.init_db(path)
    bill = Bill('b1', 'Rates', Decimal('0.10'), Frequency.CUSTOM, date(2024, 1, 1), CustomUnit.MONTH, 3)
    debt = Debt(id='d1', name='Card', amount=Decimal('1999.99'), min_payment=Decimal('25'), initial_amount=Decimal('2500'))
    goal = Goal(id='g1', name='Trip', target_amount=Decimal('3000'), saved_amount=Decimal('12.34'), deadline=date(2024, 12, 1))

    db.save_bill(bill, path)
    db.save_debt(debt, path)
    db.save_goal(goal, path)
    db.save_snapshot(_snapshot(), path)
    store = db.load_store(path)

    assert store.bills == [bill]
    assert store.debts == [debt]
    assert store.goals == [goal]
    assert store.history == [_snapshot()]


def test_save_updates_in_place_and_keeps_order(tmp_path):
    path = tmp_path / 'budget.db'
    db.init_db(path)
    first = Bill('a', 'Rent', Decimal('900'), Frequency.FORTNIGHTLY, date(2024, 1, 1))
    second = Bill('b', 'Power', Decimal('150'), Frequency.MONTHLY, date(2024, 1, 5))
    db.save_bill(first, path)
    db.save_bill(second, path)

    db.save_bill(Bill('a', 'Rent', Decimal('950'), Frequency.FORTNIGHTLY, date(2024, 1, 1)), path)
    bills = db.load_store(path).bills

    assert [b.id for b in bills] == ['a', 'b']
    assert bills[0].amount == Decimal('950')


def test_delete_and_clear(tmp_path):
    path = tmp_path / 'budget.db'
    db.init_db(path)
    db.save_snapshot(_snapshot('s1'), path)
    db.save_snapshot(_snapshot('s2'), path)

    assert db.delete_snapshot('s1', path)
    assert not db.delete_snapshot('s1', path)
    assert [s.id for s in db.load_store(path).history] == ['s2']

    assert db.clear_database(path)
    assert db.load_store(path).is_empty()


def test_replace_all_overwrites_tables(tmp_path):
    path = tmp_path / 'budget.db'
    db.init_db(path)
    db.save_debt(Debt(id='old', name='Old', amount=Decimal('1')), path)

    db.replace_all(BudgetStore(goals=[Goal(id='g', name='New', target_amount=Decimal('5'))]), path)
    store = db.load_store(path)

    assert store.debts == []
    assert [g.id for g in store.goals] == ['g']


def test_migration_adds_new_columns(tmp_path):
    path = tmp_path / 'legacy.db'
    conn = sqlite3.connect(str(path))
    conn.executescript(
        """
        CREATE TABLE bills (id TEXT PRIMARY KEY, name TEXT NOT NULL, amount TEXT NOT NULL,
                            frequency TEXT NOT NULL, start_date TEXT);
        CREATE TABLE debts (id TEXT PRIMARY KEY, name TEXT NOT NULL, amount TEXT NOT NULL,
                            min_payment TEXT, interest TEXT, priority TEXT);
        INSERT INTO bills VALUES ('b', 'Water', '60', 'Monthly', '2024-01-10');
        INSERT INTO debts VALUES ('d', 'Loan', '400', '20', '5', 'Low');
        """
    )
    conn.commit()
    conn.close()

    db.init_db(path)

    conn = sqlite3.connect(str(path))
    bill_columns = [row[1] for row in conn.execute("PRAGMA table_info(bills)")]
    debt_columns = [row[1] for row in conn.execute("PRAGMA table_info(debts)")]
    conn.close()
    assert 'custom_unit' in bill_columns and 'custom_value' in bill_columns
    assert 'initial_amount' in debt_columns

    store = db.load_store(path)
    assert store.bills[0].name == 'Water'
    assert store.debts[0].initial_amount == Decimal('400')


def test_default_path_comes_from_config(tmp_path, monkeypatch):
    from budget_assistant import config

    monkeypatch.setattr(config, 'DB_PATH', tmp_path / 'nested' / 'default.db')
    monkeypatch.setattr(config, 'DATA_DIR', tmp_path)
    monkeypatch.setattr(config, 'EXPORTS_DIR', tmp_path / 'exports')
    monkeypatch.setattr(config, 'CACHE_PATH', tmp_path / 'prefs.json')

    db.init_db()

    assert (tmp_path / 'nested' / 'default.db').exists()
