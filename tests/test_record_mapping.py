from datetime import date, datetime
from decimal import Decimal

import pytest

from budget_assistant.errors import RecordError
from budget_assistant.models import CustomUnit, Frequency
from budget_assistant.record_mapping import (
    bill_from_record,
    bill_to_record,
    bill_to_row,
    debt_from_record,
    goal_from_record,
    goal_to_row,
    parse_frequency,
    records_to_bills,
    snapshot_from_record,
    snapshot_to_row,
)


def test_bill_accepts_camel_case_and_amount_fallbacks():
    bill = bill_from_record({'id': 7, 'name': 'Rent', 'amt': '$1,250.00', 'frequency': 'Fortnightly', 'startDate': '2024-01-01'})

    assert bill.id == '7'
    assert bill.amount == Decimal('1250.00')
    assert bill.frequency is Frequency.FORTNIGHTLY
    assert bill.start_date == date(2024, 1, 1)
    assert bill.custom_unit is None


@pytest.mark.parametrize('label', ['Once Off', 'OnceOff', 'once_off', 'one-off'])
def test_once_off_aliases(label):
    assert parse_frequency(label) is Frequency.ONCE_OFF


def test_unknown_frequency_rejected():
    with pytest.raises(RecordError):
        parse_frequency('Hourly')


def test_custom_bill_defaults_to_one_week():
    bill = bill_from_record({'name': 'Gym', 'amount': 20, 'frequency': 'Custom', 'start_date': '2024-01-01'})

    assert bill.custom_unit is CustomUnit.WEEK
    assert bill.custom_value == 1
    assert bill.id


def test_custom_bill_reads_remote_columns():
    bill = bill_from_record({
        'name': 'Rates', 'amount': 450.5, 'frequency': 'Custom',
        'start_date': '2024-01-01', 'custom_unit': 'Months', 'custom_value': '3',
    })

    assert bill.custom_unit is CustomUnit.MONTH
    assert bill.custom_value == 3
    assert bill.amount == Decimal('450.5')


def test_unparseable_start_date_kept_raw():
    bill = bill_from_record({'name': 'Odd', 'amount': 5, 'frequency': 'Weekly', 'start_date': 'someday'})

    assert bill.start_date == 'someday'
    assert bill_to_record(bill)['start_date'] == 'someday'


def test_bill_without_amount_is_malformed():
    with pytest.raises(RecordError):
        bill_from_record({'name': 'Nothing', 'frequency': 'Weekly', 'start_date': '2024-01-01'})


def test_records_to_bills_skips_bad_rows(caplog):
    rows = [
        {'name': 'Good', 'amount': 10, 'frequency': 'Weekly', 'start_date': '2024-01-01'},
        {'name': '', 'amount': 10, 'frequency': 'Weekly'},
        'not a row',
        {'name': 'Bad freq', 'amount': 10, 'frequency': 'Hourly'},
    ]

    bills = records_to_bills(rows)

    assert [bill.name for bill in bills] == ['Good']
    assert 'Skipping bill' in caplog.text


def test_debt_fallbacks_and_initial_amount():
    debt = debt_from_record({'name': 'Card', 'amount': '900', 'minPayment': '30', 'priority': 'high'})

    assert debt.min_payment == Decimal('30')
    assert debt.interest == Decimal('0')
    assert debt.priority == 'High'
    assert debt.initial_amount == Decimal('900')

    older = debt_from_record({'name': 'Loan', 'amount': 100, 'initial_amount': 400, 'priority': 'Urgent'})
    assert older.initial_amount == Decimal('400')
    assert older.priority == 'Medium'


def test_goal_reads_remote_names():
    goal = goal_from_record({'id': 'g', 'name': 'Trip', 'target': 3000, 'saved': 750, 'deadline': '2024-12-01'})

    assert goal.target_amount == Decimal('3000')
    assert goal.saved_amount == Decimal('750')
    assert goal.deadline == date(2024, 12, 1)
    assert goal_to_row(goal) == {
        'name': 'Trip', 'target': 3000.0, 'saved': 750.0, 'deadline': '2024-12-01', 'priority': 'Medium',
    }


def test_goal_camel_case():
    goal = goal_from_record({'name': 'Car', 'targetAmount': '5000', 'savedAmount': '10'})

    assert goal.target_amount == Decimal('5000')
    assert goal.deadline is None


def test_remote_history_row_derives_bucket_amounts():
    snapshot = snapshot_from_record({
        'id': 12,
        'timestamp': '2024-01-02T10:00:00+00:00',
        'pay_cycle': '2024-01-01',
        'income1': 1000, 'income2': 0, 'splurge': 100, 'bills': 200,
        'fire_pct': 30, 'smile_pct': 20, 'remaining': 700,
    })

    assert snapshot.id == '12'
    assert snapshot.timestamp == datetime(2024, 1, 2, 10, 0)
    assert snapshot.pay_cycle_start == date(2024, 1, 1)
    assert snapshot.bills_due == Decimal('200')
    assert snapshot.total_income == Decimal('1000')
    assert snapshot.fire_amt == Decimal('210')
    assert snapshot.mojo_amt == Decimal('350')


def test_csv_style_snapshot_with_ts_column():
    snapshot = snapshot_from_record({
        'ts': '2024-03-01T08:15:00', 'pay_cycle': '', 'income1': '500', 'income2': '0',
        'splurge': '0', 'bills_due': '0', 'fire_pct': '0', 'smile_pct': '0',
        'fire_amt': '0', 'smile_amt': '0', 'mojo_amt': '500', 'remaining': '500', 'total_income': '500',
    })

    assert snapshot.pay_cycle_start is None
    assert snapshot.mojo_amt == Decimal('500')
    row = snapshot_to_row(snapshot)
    assert row['bills'] == 0.0
    assert row['pay_cycle'] is None


def test_snapshot_without_timestamp_is_malformed():
    with pytest.raises(RecordError):
        snapshot_from_record({'income1': 1})


def test_bill_row_uses_remote_column_names():
    bill = bill_from_record({'id': 'x', 'name': 'Rent', 'amount': '10.50', 'frequency': 'Monthly', 'start_date': '2024-01-31'})

    assert bill_to_row(bill) == {
        'name': 'Rent',
        'amount': 10.5,
        'frequency': 'Monthly',
        'start_date': '2024-01-31',
        'custom_unit': None,
        'custom_value': None,
    }
