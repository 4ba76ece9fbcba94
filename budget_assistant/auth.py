"""Email/password sign-in against Supabase Auth.

The signed-in user lives in ``st.session_state["auth_user"]`` for the
browser session.  When no Supabase project is configured the app runs in
local mode and :func:`require_auth` lets every page through.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import streamlit as st

from . import config
from .cloud_sync import create_cloud_client
from .errors import AuthenticationError

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "auth_user"
SESSION_CLIENT_KEY = "supabase_client"


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: Optional[str] = None


def _user_from_response(response: Any) -> Optional[AuthUser]:
    user = getattr(response, "user", None)
    if user is None:
        return None
    return AuthUser(id=str(user.id), email=getattr(user, "email", None))


def get_client() -> Optional[Any]:
    """Return this session's Supabase client, creating it on first use."""
    if not config.cloud_enabled():
        return None
    client = st.session_state.get(SESSION_CLIENT_KEY)
    if client is None:
        client = create_cloud_client()
        st.session_state[SESSION_CLIENT_KEY] = client
    return client


def current_user() -> Optional[AuthUser]:
    return st.session_state.get(SESSION_USER_KEY)


def sign_in(client: Any, email: str, password: str) -> AuthUser:
    """Sign in and remember the user for this session.

    Raises:
        AuthenticationError: With the provider's message on failure.
    """
    if not email or not password:
        raise AuthenticationError("Email and password are required.")
    try:
        response = client.auth.sign_in_with_password({"email": email, "password": password})
    except Exception as exc:
        logger.warning("Sign in failed for %s: %s", email, exc)
        raise AuthenticationError(str(exc)) from exc
    user = _user_from_response(response)
    if user is None:
        raise AuthenticationError("Sign in did not return a user.")
    st.session_state[SESSION_USER_KEY] = user
    logger.info("Signed in %s", user.email or user.id)
    return user


def sign_up(client: Any, email: str, password: str) -> Optional[AuthUser]:
    """Create an account.

    Returns the user when the project signs new accounts in straight away,
    or ``None`` when an email confirmation is still pending.
    """
    if not email or not password:
        raise AuthenticationError("Email and password are required.")
    try:
        response = client.auth.sign_up({"email": email, "password": password})
    except Exception as exc:
        logger.warning("Sign up failed for %s: %s", email, exc)
        raise AuthenticationError(str(exc)) from exc
    user = _user_from_response(response)
    if user is not None and getattr(response, "session", None) is not None:
        st.session_state[SESSION_USER_KEY] = user
        return user
    return None


def sign_out(client: Any) -> None:
    try:
        if client is not None:
            client.auth.sign_out()
    except Exception:
        logger.exception("sign_out failed")
    finally:
        st.session_state.pop(SESSION_USER_KEY, None)


def _render_login_form(client: Any) -> None:
    st.title("🔐 Sign in")
    tab_in, tab_up = st.tabs(["Sign in", "Create account"])
    with tab_in:
        with st.form("sign_in_form"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            if st.form_submit_button("Sign in", type="primary"):
                try:
                    sign_in(client, email, password)
                    st.rerun()
                except AuthenticationError as exc:
                    st.error(f"Login failed: {exc}")
    with tab_up:
        with st.form("sign_up_form"):
            email = st.text_input("Email", key="sign_up_email")
            password = st.text_input("Password", type="password", key="sign_up_password")
            if st.form_submit_button("Create account"):
                try:
                    if sign_up(client, email, password):
                        st.rerun()
                    st.success("Check your email to confirm your account, then sign in.")
                except AuthenticationError as exc:
                    st.error(f"Sign up failed: {exc}")


def require_auth() -> Optional[AuthUser]:
    """Return the signed-in user, or stop the page behind a login form.

    Returns ``None`` without prompting when the app runs in local mode.
    """
    client = get_client()
    if client is None:
        return None
    user = current_user()
    if user is not None:
        return user
    _render_login_form(client)
    st.stop()
    return None
