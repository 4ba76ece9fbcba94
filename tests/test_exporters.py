import json
from datetime import date, datetime
from decimal import Decimal

import pytest

from budget_assistant.errors import BackupFormatError
from budget_assistant.exporters import (
    HISTORY_COLUMNS,
    export_backup_json,
    export_history_csv,
    history_to_dataframe,
    read_backup_json,
    read_history_csv,
)
from budget_assistant.models import Bill, BudgetSnapshot, Debt, Frequency, Goal
from budget_assistant.store import BudgetStore


def _snapshot(ts, pay_cycle=date(2024, 1, 1)):
    return BudgetSnapshot(
        timestamp=ts,
        pay_cycle_start=pay_cycle,
        income1=Decimal('1234.56'), income2=Decimal('0.01'), splurge=Decimal('100'),
        bills_due=Decimal('200'), fire_pct=Decimal('17.5'), smile_pct=Decimal('12.25'),
        fire_amt=Decimal('164.64975'), smile_amt=Decimal('115.2548250'), mojo_amt=Decimal('654.6654250'),
        remaining=Decimal('934.57'), total_income=Decimal('1234.57'),
    )


def test_history_dataframe_columns():
    frame = history_to_dataframe([_snapshot(datetime(2024, 1, 2, 8, 0))])

    assert list(frame.columns) == HISTORY_COLUMNS
    assert frame.loc[0, 'bills_due'] == Decimal('200')
    assert list(history_to_dataframe([]).columns) == HISTORY_COLUMNS


def test_history_csv_round_trip_is_lossless():
    snapshots = [
        _snapshot(datetime(2024, 1, 2, 8, 0)),
        _snapshot(datetime(2024, 1, 16, 8, 0), pay_cycle=None),
    ]

    text = export_history_csv(snapshots)
    restored = read_history_csv(text)

    assert text.splitlines()[0] == ','.join(HISTORY_COLUMNS)
    assert len(restored) == 2
    for original, copy in zip(snapshots, restored):
        for name in ('timestamp', 'pay_cycle_start', 'income1', 'income2', 'splurge', 'bills_due',
                     'fire_pct', 'smile_pct', 'fire_amt', 'smile_amt', 'mojo_amt', 'remaining', 'total_income'):
            assert getattr(copy, name) == getattr(original, name), name


def test_empty_history_csv():
    assert read_history_csv(export_history_csv([])) == []
    assert read_history_csv('') == []


def test_history_csv_missing_columns():
    with pytest.raises(BackupFormatError):
        read_history_csv('a,b\n1,2\n')


def test_backup_json_round_trip():
    store = BudgetStore(
        bills=[Bill('b', 'Rent', Decimal('900.50'), Frequency.FORTNIGHTLY, date(2024, 1, 1))],
        debts=[Debt(id='d', name='Card', amount=Decimal('80'), initial_amount=Decimal('100'))],
        goals=[Goal(id='g', name='Trip', target_amount=Decimal('2000'), deadline=date(2025, 1, 1))],
        history=[_snapshot(datetime(2024, 1, 2, 8, 0))],
    )

    payload = json.loads(export_backup_json(store))
    restored = read_backup_json(export_backup_json(store))

    assert sorted(payload) == ['bills', 'debts', 'goals', 'history']
    assert payload['bills'][0]['amount'] == '900.50'
    assert restored['bills'] == store.bills
    assert restored['debts'] == store.debts
    assert restored['goals'] == store.goals
    assert restored['history'] == store.history


def test_backup_reads_legacy_camel_case():
    text = json.dumps({
        'bills': [{'id': 1, 'name': 'Water', 'amount': 60, 'frequency': 'OnceOff', 'startDate': '2024-02-01'}],
        'goals': [{'id': 2, 'name': 'Bike', 'targetAmount': 800, 'savedAmount': 100}],
    })

    restored = read_backup_json(text)

    assert set(restored) == {'bills', 'goals'}
    assert restored['bills'][0].frequency is Frequency.ONCE_OFF
    assert restored['goals'][0].saved_amount == Decimal('100')


@pytest.mark.parametrize('text', ['not json', '[1, 2]', '{"bills": {"a": 1}}'])
def test_bad_backups_rejected(text):
    with pytest.raises(BackupFormatError):
        read_backup_json(text)
