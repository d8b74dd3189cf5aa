"""Application configuration utilities.

Settings are read from ``st.secrets`` first and the process environment
second, so the same code runs on Streamlit Cloud and locally.  This module
also owns the :class:`CookieController` used to persist the signed-in session
across browser reloads.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Any, Protocol

import streamlit as st
from streamlit_cookies_controller import CookieController

_LOG = logging.getLogger(__name__)

_SESSION_MAX_AGE_ENV = "SESSION_MAX_AGE_DAYS"
_DEFAULT_SESSION_DAYS = 90

_LOAD_WORKERS_ENV = "PLANY_LOAD_WORKERS"
_DEFAULT_LOAD_WORKERS = 4


def get_setting(name: str, default: str = "", *, st_module: Any = st) -> str:
    """Return ``name`` from Streamlit secrets, falling back to the environment."""

    try:
        value = st_module.secrets.get(name)
    except Exception:  # secrets.toml missing when running locally
        _LOG.debug("st.secrets unavailable while reading %s", name, exc_info=True)
        value = None
    if value in (None, ""):
        value = os.environ.get(name, default)
    return str(value or "").strip()


def firebase_api_key(*, st_module: Any = st) -> str:
    return get_setting("FIREBASE_API_KEY", st_module=st_module)


def session_ttl_seconds() -> int:
    """Return the persisted-login lifetime in seconds using the env override if set."""

    raw = os.environ.get(_SESSION_MAX_AGE_ENV, "").strip()
    if not raw:
        return _DEFAULT_SESSION_DAYS * 24 * 60 * 60
    try:
        days = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{_SESSION_MAX_AGE_ENV} must be an integer") from exc
    if days <= 0:
        raise RuntimeError(f"{_SESSION_MAX_AGE_ENV} must be positive (got {days})")
    return days * 24 * 60 * 60


def load_workers() -> int:
    """Return the number of threads used for the bulk collection reads."""

    raw = os.environ.get(_LOAD_WORKERS_ENV, "").strip()
    if not raw:
        return _DEFAULT_LOAD_WORKERS
    try:
        workers = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{_LOAD_WORKERS_ENV} must be an integer") from exc
    if workers <= 0:
        raise RuntimeError(f"{_LOAD_WORKERS_ENV} must be positive (got {workers})")
    return workers


class CookieLike(Protocol):
    """Minimal protocol representing cookie managers used in the app."""

    ready: Any  # may be bool or callable returning bool


def bootstrap_cookie_manager(
    cm: CookieLike, attempts: int = 5, delay: float = 0.1, *, st_module: Any = st
) -> CookieLike:
    """Return the cookie manager once it reports readiness.

    Controllers that expose ``ready`` are polled up to ``attempts`` times,
    sleeping ``delay`` seconds between checks.  If the controller never
    becomes ready the script run is stopped; Streamlit reruns it once the
    browser component has synchronised.
    """

    ready_attr = getattr(cm, "ready", None)
    if ready_attr is not None:
        for _ in range(attempts):
            ready_attr = getattr(cm, "ready", ready_attr)
            ready = ready_attr() if callable(ready_attr) else bool(ready_attr)
            if ready:
                break
            time.sleep(delay)
        else:
            st_module.stop()
    return cm


def get_cookie_manager() -> CookieController:
    """Return the per-session :class:`CookieController`."""

    cookie_manager = st.session_state.get("cookie_manager")
    if cookie_manager is None:
        cookie_manager = bootstrap_cookie_manager(CookieController())
        st.session_state["cookie_manager"] = cookie_manager
    return cookie_manager


__all__ = [
    "bootstrap_cookie_manager",
    "firebase_api_key",
    "get_cookie_manager",
    "get_setting",
    "load_workers",
    "session_ttl_seconds",
]
