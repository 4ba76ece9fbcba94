from datetime import date
from decimal import Decimal

from budget_assistant.allocation import allocate
from budget_assistant.models import Bill, BudgetInputs, Debt, Frequency, Goal
from budget_assistant.summary import (
    average_goal_completion,
    build_dashboard,
    debt_progress,
    goal_progress,
    total_debt,
)


def _goal(target, saved, name='Goal'):
    return Goal(id=name, name=name, target_amount=Decimal(target), saved_amount=Decimal(saved))


def test_total_debt_sums_balances():
    debts = [
        Debt(id='a', name='Card', amount=Decimal('1200.50')),
        Debt(id='b', name='Loan', amount=Decimal('799.50')),
    ]

    assert total_debt(debts) == Decimal('2000.00')
    assert total_debt([]) == Decimal('0')


def test_goal_progress_handles_zero_target():
    assert goal_progress(_goal('1000', '250')) == Decimal('0.25')
    assert goal_progress(_goal('0', '50')) == Decimal('0')


def test_average_goal_completion():
    goals = [_goal('1000', '500', 'A'), _goal('200', '200', 'B')]

    assert average_goal_completion(goals) == Decimal('0.75')
    assert average_goal_completion([]) == Decimal('0')


def test_debt_progress_is_clamped():
    assert debt_progress(Debt(id='a', name='Card', amount=Decimal('250'), initial_amount=Decimal('1000'))) == Decimal('0.75')
    assert debt_progress(Debt(id='b', name='Card', amount=Decimal('1500'), initial_amount=Decimal('1000'))) == Decimal('0')
    assert debt_progress(Debt(id='c', name='Card', amount=Decimal('0'), initial_amount=Decimal('0'))) == Decimal('0')


def test_build_dashboard_collects_cards():
    bills = [
        Bill('1', 'Water', Decimal('80'), Frequency.ONCE_OFF, date(2024, 1, 9)),
        Bill('2', 'Rent', Decimal('900'), Frequency.FORTNIGHTLY, date(2023, 12, 18)),
        Bill('3', 'Phone', Decimal('40'), Frequency.MONTHLY, date(2023, 12, 5)),
        Bill('4', 'Gym', Decimal('30'), Frequency.WEEKLY, date(2024, 1, 2)),
        Bill('5', 'Car rego', Decimal('700'), Frequency.ANNUALLY, date(2024, 8, 1)),
    ]
    inputs = BudgetInputs(pay_cycle_start=date(2024, 1, 1), income1=Decimal('2000'), income2=Decimal('150'))
    last = allocate(2150, 0, 0, 1050, 20, 10)

    summary = build_dashboard(bills, [Debt(id='d', name='Card', amount=Decimal('300'))], [_goal('100', '50')], inputs, last)

    assert summary.total_income == Decimal('2150')
    assert summary.remaining == Decimal('1100')
    assert summary.due_bill_count == 4
    assert summary.next_bill_names == ['Rent', 'Gym', 'Phone']
    assert summary.total_debt == Decimal('300')
    assert summary.average_goal_completion == Decimal('0.5')


def test_build_dashboard_without_calculation():
    summary = build_dashboard([], [], [], BudgetInputs(), None)

    assert summary.remaining == Decimal('0')
    assert summary.due_bill_count == 0
    assert summary.next_bill_names == []
