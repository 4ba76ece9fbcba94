"""Budget Assistant UI components and layout.

Reusable Streamlit widgets shared by the pages: page setup, the dashboard
cards, entry forms for bills, debts and goals, and the allocation summary.
Forms return plain dicts of raw values; validation happens in
:class:`~budget_assistant.workspace.BudgetWorkspace`.
"""

from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional

import streamlit as st
from streamlit.errors import StreamlitAPIException

from .formatting import format_currency, format_date, format_percent
from .models import PRIORITIES, Bill, BudgetSnapshot, CustomUnit, Debt, Frequency, Goal
from .recurrence import frequency_label, occurrences_between
from .summary import DashboardSummary, debt_progress, goal_progress

FREQUENCY_OPTIONS = [freq.value for freq in Frequency]
UNIT_OPTIONS = [unit.value for unit in CustomUnit]


class BudgetAssistantUI:
    """UI components for the budget pages."""
    _PAGE_CONFIGURED = False

    def __init__(self, *, configure_page: bool = False):
        if configure_page:
            self.setup_page_config()

    def setup_page_config(self, page_title: str = "Budget Assistant", page_icon: str = "💰") -> None:
        """Configure Streamlit page settings once per run."""
        if BudgetAssistantUI._PAGE_CONFIGURED:
            return
        try:
            st.set_page_config(
                page_title=page_title,
                page_icon=page_icon,
                layout="wide",
                initial_sidebar_state="expanded",
            )
        except StreamlitAPIException:
            # Already configured upstream; avoid raising to keep reruns smooth.
            pass
        finally:
            BudgetAssistantUI._PAGE_CONFIGURED = True

    def render_header(self, user_email: Optional[str] = None) -> None:
        st.sidebar.title("💰 Budget Assistant")
        if user_email:
            st.sidebar.caption(f"Signed in as {user_email}")
        else:
            st.sidebar.caption("Local mode: data stays on this machine")

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------
    def render_dashboard_cards(self, summary: DashboardSummary) -> None:
        col1, col2, col3 = st.columns(3)
        with col1:
            st.metric("💰 Total Income", format_currency(summary.total_income))
        with col2:
            st.metric("🧮 Remaining (last calc)", format_currency(summary.remaining))
        with col3:
            st.metric("🧾 Bills Due", summary.due_bill_count)
            names = summary.next_bill_names
            st.caption(f"Next: {', '.join(names)}" if names else "Nothing due this cycle")

        col4, col5 = st.columns(2)
        with col4:
            st.metric("💳 Total Debt", format_currency(summary.total_debt))
        with col5:
            st.metric("🎯 Avg Goal Progress", format_percent(summary.average_goal_completion))

    def render_allocation(self, snapshot: BudgetSnapshot) -> None:
        """Show the bucket amounts of a calculation."""
        cols = st.columns(5)
        cards = [
            ("Total Income", snapshot.total_income),
            ("Bills Due", snapshot.bills_due),
            ("🔥 Fire", snapshot.fire_amt),
            ("😊 Smile", snapshot.smile_amt),
            ("✨ Mojo", snapshot.mojo_amt),
        ]
        for col, (label, amount) in zip(cols, cards):
            with col:
                st.metric(label, format_currency(amount))
        if snapshot.remaining < 0:
            st.warning(
                f"Bills and splurge exceed income by {format_currency(-snapshot.remaining)}."
            )
        else:
            st.success(f"Remaining after bills and splurge: {format_currency(snapshot.remaining)}")

    # ------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------
    def schedule_rows(self, bills: List[Bill], start: date, end: date) -> List[Dict]:
        """One row per bill occurrence in ``[start, end]``, earliest first."""
        rows = [
            (when, bill)
            for bill in bills
            for when in occurrences_between(bill, start, end)
        ]
        rows.sort(key=lambda row: row[0])
        return [
            {
                "Date": format_date(when),
                "Name": bill.name,
                "Amount": format_currency(bill.amount),
                "Frequency": frequency_label(bill),
            }
            for when, bill in rows
        ]

    def render_goal_progress(self, goal: Goal) -> None:
        st.progress(float(min(goal_progress(goal), 1)))
        st.markdown(
            f"**{goal.name}**: {format_currency(goal.saved_amount)} / {format_currency(goal.target_amount)}"
        )

    def render_debt_progress(self, debt: Debt) -> None:
        st.progress(float(debt_progress(debt)))
        st.caption(
            f"Paid {format_currency(debt.initial_amount - debt.amount)} of {format_currency(debt.initial_amount)}"
        )

    # ------------------------------------------------------------------
    # Forms
    # ------------------------------------------------------------------
    def render_bill_form(self, key: str, bill: Optional[Bill] = None) -> Optional[Dict]:
        """Render a bill form; return raw values when submitted."""
        frequency = bill.frequency.value if bill else Frequency.FORTNIGHTLY.value
        with st.form(key):
            col1, col2 = st.columns(2)
            with col1:
                name = st.text_input("Name", value=bill.name if bill else "")
                amount = st.number_input(
                    "Amount", min_value=0.0, step=1.0,
                    value=float(bill.amount) if bill else 0.0,
                )
                start = bill.start_date if bill and isinstance(bill.start_date, date) else date.today()
                start_date = st.date_input("Start date", value=start)
            with col2:
                freq = st.selectbox(
                    "Frequency", FREQUENCY_OPTIONS, index=FREQUENCY_OPTIONS.index(frequency)
                )
                unit_value = bill.custom_unit.value if bill and bill.custom_unit else CustomUnit.WEEK.value
                custom_unit = st.selectbox(
                    "Repeat unit (Custom)", UNIT_OPTIONS, index=UNIT_OPTIONS.index(unit_value)
                )
                custom_value = st.number_input(
                    "Repeat every (Custom)", min_value=1, step=1,
                    value=int(bill.custom_value or 1) if bill else 1,
                )
            submitted = st.form_submit_button("Save bill" if bill else "Add bill", type="primary")
        if not submitted:
            return None
        return {
            "name": name,
            "amount": str(amount),
            "frequency": freq,
            "start_date": start_date,
            "custom_unit": custom_unit if freq == Frequency.CUSTOM.value else None,
            "custom_value": custom_value if freq == Frequency.CUSTOM.value else None,
        }

    def render_debt_form(self, key: str, debt: Optional[Debt] = None) -> Optional[Dict]:
        with st.form(key):
            col1, col2 = st.columns(2)
            with col1:
                name = st.text_input("Name", value=debt.name if debt else "")
                amount = st.number_input(
                    "Amount owed", min_value=0.0, step=10.0,
                    value=float(debt.amount) if debt else 0.0,
                )
                min_payment = st.number_input(
                    "Minimum payment", min_value=0.0, step=5.0,
                    value=float(debt.min_payment) if debt else 0.0,
                )
            with col2:
                interest = st.number_input(
                    "Interest %", min_value=0.0, step=0.1,
                    value=float(debt.interest) if debt else 0.0,
                )
                priority = st.selectbox(
                    "Priority", PRIORITIES,
                    index=PRIORITIES.index(debt.priority) if debt and debt.priority in PRIORITIES else 1,
                )
            submitted = st.form_submit_button("Save debt" if debt else "Add debt", type="primary")
        if not submitted:
            return None
        return {
            "name": name,
            "amount": str(amount),
            "min_payment": str(min_payment),
            "interest": str(interest),
            "priority": priority,
        }

    def render_goal_form(self, key: str, goal: Optional[Goal] = None) -> Optional[Dict]:
        with st.form(key):
            col1, col2 = st.columns(2)
            with col1:
                name = st.text_input("Goal name", value=goal.name if goal else "")
                target = st.number_input(
                    "Target amount", min_value=0.0, step=100.0,
                    value=float(goal.target_amount) if goal else 0.0,
                )
                saved = st.number_input(
                    "Saved so far", min_value=0.0, step=50.0,
                    value=float(goal.saved_amount) if goal else 0.0,
                )
            with col2:
                has_deadline = st.checkbox("Has deadline", value=bool(goal and goal.deadline))
                deadline = st.date_input(
                    "Deadline", value=goal.deadline if goal and goal.deadline else date.today()
                )
                priority = st.selectbox(
                    "Priority", PRIORITIES,
                    index=PRIORITIES.index(goal.priority) if goal and goal.priority in PRIORITIES else 1,
                )
            submitted = st.form_submit_button("Save goal" if goal else "Add goal", type="primary")
        if not submitted:
            return None
        return {
            "name": name,
            "target_amount": str(target),
            "saved_amount": str(saved),
            "deadline": deadline if has_deadline else None,
            "priority": priority,
        }

