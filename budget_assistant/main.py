"""Budget Assistant - Main Entry Point.

This is the landing page of the multi-page Streamlit app.  The actual
page content is in the pages/ directory.
"""

from __future__ import annotations

import streamlit as st

from . import config
from .shared_sidebar import render_shared_sidebar


def main():
    """Main entry point for the budget assistant."""
    st.set_page_config(
        page_title="Budget Assistant",
        page_icon="💰",
        layout="wide",
        initial_sidebar_state="expanded"
    )

    config.configure_logging()
    config.ensure_data_directories()

    sidebar_data = render_shared_sidebar()
    workspace = sidebar_data['workspace']

    _render_welcome_screen(empty=workspace.store.is_empty())


def _render_welcome_screen(empty: bool) -> None:
    """Render the welcome text, with first steps when nothing is stored yet."""
    st.markdown("""
    # Welcome to your Budget Assistant! 💰

    Plan each fortnightly pay cycle in a few clicks:
    - 🧾 **Track recurring bills** and see which fall due this cycle
    - 🧮 **Split what is left** into Fire, Smile and Mojo buckets
    - 💳 **Pay down debts** and watch the balance shrink
    - 🎯 **Save toward goals** with a deadline and priority
    - 📜 **Keep a history** of every budget you save
    """)

    if empty:
        st.info(
            "Start on the **🧾 Bills** page, then set your pay cycle and incomes "
            "in the sidebar and open **🧮 Budget**."
        )
    if config.cloud_enabled():
        st.caption("Cloud sync is on: changes are saved to your account.")
    else:
        st.caption(f"Local mode: data is stored in {config.DB_PATH}.")


if __name__ == "__main__":
    main()
