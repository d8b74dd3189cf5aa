"""Sign-in and registration forms."""

from __future__ import annotations

import logging
from typing import Any

import streamlit as st

from src.errors import IdentityProviderError
from src.school_year import default_profile

_LOG = logging.getLogger(__name__)

# Friendlier wording for the provider codes users hit most often.
_PROVIDER_HINTS = {
    "EMAIL_EXISTS": "An account with this email already exists. Please log in instead.",
    "EMAIL_NOT_FOUND": "No account found for this email.",
    "INVALID_PASSWORD": "Incorrect password.",
    "INVALID_LOGIN_CREDENTIALS": "Incorrect email or password.",
    "USER_DISABLED": "This account has been disabled.",
}


def describe_provider_error(exc: IdentityProviderError) -> str:
    return _PROVIDER_HINTS.get(exc.code, exc.message)


def render_login_form(planner: Any, *, st_module: Any = st) -> bool:
    """Render the returning-user form; return ``True`` after a successful login."""

    with st_module.form("login_form", clear_on_submit=False):
        email = st_module.text_input("Email", key="login_email").strip().lower()
        password = st_module.text_input("Password", type="password", key="login_password")
        submitted = st_module.form_submit_button("Log in")

    if not submitted:
        return False
    if not (email and password):
        st_module.error("Please enter your email and password.")
        return False
    try:
        planner.identity.login(email, password)
    except IdentityProviderError as exc:
        st_module.error(f"Login failed: {describe_provider_error(exc)}")
        return False
    except Exception as exc:
        _LOG.exception("Login failed")
        st_module.error(f"Login failed: {exc}")
        return False
    return True


def render_signup_form(planner: Any, *, st_module: Any = st) -> bool:
    """Render the registration form; return ``True`` once the account exists."""

    with st_module.form("signup_form", clear_on_submit=False):
        name = st_module.text_input("Full Name", key="signup_name").strip()
        email = st_module.text_input("Email", key="signup_email").strip().lower()
        password = st_module.text_input("Choose a Password", type="password", key="signup_password")
        submitted = st_module.form_submit_button("Create Account")

    if not submitted:
        return False
    if not (name and email and password):
        st_module.error("Please fill in all fields.")
        return False
    if len(password) < 6:
        st_module.error("Password must be at least 6 characters.")
        return False
    try:
        user = planner.identity.register(email, password, name)
    except IdentityProviderError as exc:
        st_module.error(f"Registration failed: {describe_provider_error(exc)}")
        return False
    except Exception as exc:
        _LOG.exception("Registration failed")
        st_module.error(f"Registration failed: {exc}")
        return False

    try:
        planner.store.create_user_profile(default_profile(name, user.email))
    except Exception:
        st_module.warning("Your account is ready, but the default settings could not be saved.")
    else:
        planner.identity.reload_profile()

    try:
        planner.store.seed_default_templates()
    except Exception:
        _LOG.exception("Failed to create default templates")
        st_module.warning("Your account is ready, but the starter templates could not be created.")
    planner.controller.reload()
    return True


def render_auth_page(planner: Any, *, st_module: Any = st) -> bool:
    st_module.title("📚 Plany")
    st_module.caption("Plan every class of your school year in one place.")
    login_tab, signup_tab = st_module.tabs(["🔑 Log in", "🧾 Create account"])
    with login_tab:
        logged_in = render_login_form(planner, st_module=st_module)
    with signup_tab:
        registered = render_signup_form(planner, st_module=st_module)
    if logged_in or registered:
        st_module.session_state["need_rerun"] = True
        return True
    return False


__all__ = [
    "describe_provider_error",
    "render_auth_page",
    "render_login_form",
    "render_signup_form",
]
