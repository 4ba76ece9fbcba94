from datetime import date, timedelta
from decimal import Decimal

import pytest
from dateutil.relativedelta import relativedelta

from budget_assistant.models import Bill, CustomUnit, Frequency
from budget_assistant.recurrence import (
    bills_due_amount,
    due_bills,
    frequency_label,
    is_due_in_window,
    next_due,
    next_occurrence_on_or_after,
    occurrences_between,
    period_of,
    select_bills,
    window_end,
)


def _bill(frequency, start, amount='100', name='Bill', **kwargs):
    return Bill(
        id=name.lower(),
        name=name,
        amount=Decimal(amount),
        frequency=frequency,
        start_date=start,
        **kwargs,
    )


def test_fortnightly_bill_due_two_weeks_after_start():
    bill = _bill(Frequency.FORTNIGHTLY, date(2024, 1, 1))

    assert next_occurrence_on_or_after(bill, date(2024, 1, 15)) == date(2024, 1, 15)
    assert is_due_in_window(bill, date(2024, 1, 15))


def test_custom_three_months_projects_forward():
    bill = _bill(Frequency.CUSTOM, date(2024, 1, 1), custom_unit=CustomUnit.MONTH, custom_value=3)

    assert next_occurrence_on_or_after(bill, date(2024, 5, 1)) == date(2024, 7, 1)


def test_weekly_rounds_up_to_next_week():
    bill = _bill(Frequency.WEEKLY, date(2024, 1, 1))

    assert next_occurrence_on_or_after(bill, date(2024, 1, 9)) == date(2024, 1, 15)
    assert next_occurrence_on_or_after(bill, date(2024, 1, 8)) == date(2024, 1, 8)


def test_reference_before_start_returns_start():
    bill = _bill(Frequency.MONTHLY, date(2024, 6, 10))

    assert next_occurrence_on_or_after(bill, date(2024, 1, 1)) == date(2024, 6, 10)


def test_once_off_only_until_it_passes():
    bill = _bill(Frequency.ONCE_OFF, date(2024, 3, 10))

    assert next_occurrence_on_or_after(bill, date(2024, 3, 1)) == date(2024, 3, 10)
    assert next_occurrence_on_or_after(bill, date(2024, 3, 10)) == date(2024, 3, 10)
    assert next_occurrence_on_or_after(bill, date(2024, 3, 11)) is None


def test_monthly_end_of_month_clamps_and_returns_to_31st():
    bill = _bill(Frequency.MONTHLY, date(2024, 1, 31))

    assert next_occurrence_on_or_after(bill, date(2024, 2, 1)) == date(2024, 2, 29)
    assert next_occurrence_on_or_after(bill, date(2024, 3, 1)) == date(2024, 3, 31)
    assert next_occurrence_on_or_after(bill, date(2024, 4, 1)) == date(2024, 4, 30)


def test_annual_leap_day_clamps_in_common_years():
    bill = _bill(Frequency.ANNUALLY, date(2020, 2, 29))

    assert next_occurrence_on_or_after(bill, date(2021, 1, 1)) == date(2021, 2, 28)
    assert next_occurrence_on_or_after(bill, date(2024, 1, 1)) == date(2024, 2, 29)


def test_string_dates_are_accepted():
    bill = _bill('Fortnightly', '2024-01-01')

    assert next_occurrence_on_or_after(bill, '2024-01-02') == date(2024, 1, 15)


def test_unparseable_start_is_never_due():
    bill = _bill(Frequency.WEEKLY, 'not a date')

    assert next_occurrence_on_or_after(bill, date(2024, 1, 1)) is None
    assert not is_due_in_window(bill, date(2024, 1, 1))
    assert due_bills([bill], date(2024, 1, 1)) == []


def test_missing_window_start_means_nothing_due():
    bill = _bill(Frequency.WEEKLY, date(2024, 1, 1))

    assert not is_due_in_window(bill, None)
    assert due_bills([bill], None) == []


def test_window_is_fourteen_days_inclusive():
    start = date(2024, 1, 1)
    assert window_end(start) == date(2024, 1, 14)

    assert is_due_in_window(_bill(Frequency.ONCE_OFF, date(2024, 1, 14)), start)
    assert not is_due_in_window(_bill(Frequency.ONCE_OFF, date(2024, 1, 15)), start)


def test_next_occurrence_is_reachable_and_minimal():
    bills = [
        _bill(Frequency.WEEKLY, date(2023, 11, 3)),
        _bill(Frequency.FORTNIGHTLY, date(2023, 12, 29)),
        _bill(Frequency.MONTHLY, date(2023, 8, 31)),
        _bill(Frequency.ANNUALLY, date(2019, 7, 4)),
        _bill(Frequency.CUSTOM, date(2023, 1, 30), custom_unit=CustomUnit.MONTH, custom_value=2),
        _bill(Frequency.CUSTOM, date(2023, 12, 1), custom_unit=CustomUnit.DAY, custom_value=10),
    ]
    for bill in bills:
        period = period_of(bill)
        for offset in range(0, 400, 7):
            reference = date(2024, 1, 1) + timedelta(days=offset)
            occurrence = next_occurrence_on_or_after(bill, reference)

            assert occurrence >= reference
            k = 0
            while bill.start_date + period * k < occurrence:
                k += 1
            assert bill.start_date + period * k == occurrence
            if k > 0:
                assert bill.start_date + period * (k - 1) < reference


def test_custom_defaults_to_one_week():
    bill = _bill(Frequency.CUSTOM, date(2024, 1, 1))

    assert period_of(bill) == relativedelta(days=7)
    assert frequency_label(bill) == 'Every 1 Week'


def test_custom_value_below_one_is_rejected():
    bill = _bill(Frequency.CUSTOM, date(2024, 1, 1), custom_unit=CustomUnit.DAY, custom_value=0)

    with pytest.raises(ValueError):
        period_of(bill)
    assert next_occurrence_on_or_after(bill, date(2024, 2, 1)) is None


def test_frequency_labels():
    assert frequency_label(_bill(Frequency.MONTHLY, date(2024, 1, 1))) == 'Monthly'
    custom = _bill(Frequency.CUSTOM, date(2024, 1, 1), custom_unit=CustomUnit.MONTH, custom_value=3)
    assert frequency_label(custom) == 'Every 3 Months'


def test_due_bills_sorted_by_occurrence_and_stable():
    window = date(2024, 1, 1)
    late = _bill(Frequency.ONCE_OFF, date(2024, 1, 10), name='Late')
    early_a = _bill(Frequency.ONCE_OFF, date(2024, 1, 3), name='EarlyA')
    early_b = _bill(Frequency.MONTHLY, date(2023, 12, 3), name='EarlyB')
    outside = _bill(Frequency.ONCE_OFF, date(2024, 2, 1), name='Outside')

    result = due_bills([late, early_a, outside, early_b], window)

    assert [bill.name for bill in result] == ['EarlyA', 'EarlyB', 'Late']


def test_select_bills_modes():
    bills = [
        _bill(Frequency.ONCE_OFF, date(2024, 1, 3), amount='50', name='Due'),
        _bill(Frequency.ONCE_OFF, date(2025, 1, 3), amount='70', name='Later'),
    ]

    assert select_bills(bills, None, 'all') == bills
    assert [b.name for b in select_bills(bills, date(2024, 1, 1), 'due')] == ['Due']
    assert bills_due_amount(bills, date(2024, 1, 1)) == Decimal('50')
    assert bills_due_amount(bills, date(2024, 1, 1), 'all') == Decimal('120')
    with pytest.raises(ValueError):
        select_bills(bills, date(2024, 1, 1), 'weekly')


def test_occurrences_between_lists_every_date():
    bill = _bill(Frequency.WEEKLY, date(2024, 1, 1))

    assert occurrences_between(bill, date(2024, 1, 2), date(2024, 1, 22)) == [
        date(2024, 1, 8),
        date(2024, 1, 15),
        date(2024, 1, 22),
    ]
    assert occurrences_between(bill, date(2024, 2, 1), date(2024, 1, 1)) == []


def test_next_due_uses_supplied_today():
    bill = _bill(Frequency.FORTNIGHTLY, date(2024, 1, 1))

    assert next_due(bill, today=date(2024, 1, 16)) == date(2024, 1, 29)


def test_dates_past_the_calendar_end_are_never_due():
    weekly = _bill(Frequency.WEEKLY, date(2024, 1, 1))
    monthly = _bill(Frequency.MONTHLY, date(2024, 1, 1))

    assert is_due_in_window(weekly, date(9999, 12, 25)) is False
    assert next_occurrence_on_or_after(monthly, date(9999, 12, 2)) is None
    assert is_due_in_window(monthly, date(9999, 12, 2)) is False
    assert due_bills([weekly, monthly], date(9999, 12, 25)) == []

    dates = occurrences_between(weekly, date(9999, 12, 1), date.max)
    assert dates == [date(9999, 12, 6), date(9999, 12, 13), date(9999, 12, 20), date(9999, 12, 27)]
