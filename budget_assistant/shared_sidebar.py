"""Shared sidebar components for the multi-page app.

Every page calls :func:`render_shared_sidebar` first.  It runs the auth
gate, opens (once per session) the :class:`BudgetWorkspace`, and renders
the pay-cycle inputs that the Dashboard and Budget pages share.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, Optional

import streamlit as st

from . import config
from .auth import AuthUser, get_client, require_auth, sign_out
from .cloud_sync import CloudSync
from .errors import CloudSyncError
from .models import BILL_MODES, BudgetInputs
from .persistent_cache import cache_from_inputs, inputs_from_cache, load_cache, save_cache
from .ui import BudgetAssistantUI
from .workspace import BudgetWorkspace

logger = logging.getLogger(__name__)

WORKSPACE_KEY = '_budget_workspace'
WORKSPACE_OWNER_KEY = '_budget_workspace_owner'
CACHE_KEY = '_persistent_cache_store'

BILL_MODE_LABELS = {
    'due': 'Only bills due this cycle',
    'all': 'All bills',
}


def get_workspace(user: Optional[AuthUser]) -> BudgetWorkspace:
    """Return this session's workspace, rebuilding it when the user changes."""
    owner = user.id if user else None
    workspace = st.session_state.get(WORKSPACE_KEY)
    if workspace is not None and st.session_state.get(WORKSPACE_OWNER_KEY) == owner:
        return workspace

    cloud = CloudSync(get_client(), user.id) if user else None
    workspace = BudgetWorkspace.open(config.DB_PATH, cloud=cloud)
    if cloud is not None:
        try:
            workspace.refresh_from_cloud()
        except CloudSyncError as exc:
            st.sidebar.warning(f"Showing local data. {exc}")
    st.session_state[WORKSPACE_KEY] = workspace
    st.session_state[WORKSPACE_OWNER_KEY] = owner
    return workspace


def _get_persistent_cache() -> Dict[str, Any]:
    cache = st.session_state.get(CACHE_KEY)
    if cache is None:
        cache = load_cache()
        st.session_state[CACHE_KEY] = cache
    return cache


def _persist_cache(cache: Dict[str, Any]) -> None:
    try:
        save_cache(cache)
    except OSError:
        logger.warning("Could not write preferences to %s", config.CACHE_PATH, exc_info=True)


def render_budget_inputs(cache: Dict[str, Any]) -> BudgetInputs:
    """Sidebar form values for the current pay cycle."""
    defaults = inputs_from_cache(cache)
    st.sidebar.subheader("🗓️ Pay Cycle")
    pay_start = st.sidebar.date_input("Pay cycle start", value=defaults.pay_cycle_start)
    income1 = st.sidebar.number_input("Income 1", min_value=0.0, step=50.0, value=float(defaults.income1))
    income2 = st.sidebar.number_input("Income 2", min_value=0.0, step=50.0, value=float(defaults.income2))
    splurge = st.sidebar.number_input("Splurge", min_value=0.0, step=10.0, value=float(defaults.splurge))

    st.sidebar.subheader("🪣 Buckets")
    fire_pct = st.sidebar.number_input("Fire %", min_value=0.0, max_value=100.0, step=1.0, value=float(defaults.fire_pct))
    smile_pct = st.sidebar.number_input("Smile %", min_value=0.0, max_value=100.0, step=1.0, value=float(defaults.smile_pct))
    bill_mode = st.sidebar.radio(
        "Bills to include",
        options=list(BILL_MODES),
        index=BILL_MODES.index(defaults.bill_mode),
        format_func=BILL_MODE_LABELS.get,
    )

    inputs = BudgetInputs(
        pay_cycle_start=pay_start or None,
        income1=Decimal(str(income1)),
        income2=Decimal(str(income2)),
        splurge=Decimal(str(splurge)),
        fire_pct=Decimal(str(fire_pct)),
        smile_pct=Decimal(str(smile_pct)),
        bill_mode=bill_mode,
    )
    serialized = cache_from_inputs(inputs)
    if serialized != {key: cache.get(key) for key in serialized}:
        cache.update(serialized)
        _persist_cache(cache)
    return inputs


def render_shared_sidebar() -> Dict:
    """Render shared sidebar elements available on all pages.

    Returns:
        Dict with keys: 'workspace', 'inputs', 'user'
    """
    config.configure_logging()
    ui = BudgetAssistantUI()
    ui.setup_page_config()
    user = require_auth()
    ui.render_header(user.email if user else None)

    workspace = get_workspace(user)
    inputs = render_budget_inputs(_get_persistent_cache())

    if user is not None and st.sidebar.button("🚪 Sign out"):
        sign_out(get_client())
        st.session_state.pop(WORKSPACE_KEY, None)
        st.session_state.pop(WORKSPACE_OWNER_KEY, None)
        st.rerun()

    return {
        'workspace': workspace,
        'inputs': inputs,
        'user': user,
    }
