"""Session logout utilities."""
from __future__ import annotations

import logging
from typing import Any

import streamlit as st

# Session-state keys that hold form drafts or per-user widget values.
_FORM_PREFIXES = ("plan_form_", "class_form_", "template_form_", "break_form_", "lesson_form_", "year_form_")


def do_logout(
    planner: Any,
    *,
    st_module: Any = st,
    logger: Any = logging,
) -> None:
    """Sign out, drop the user's loaded data and clear form drafts.

    Clearing happens through the identity subscription: the controller
    resets its state and bumps the load generation, so a load still in
    flight cannot repopulate the view afterwards.
    """

    try:
        planner.identity.logout()
    except Exception:
        logger.exception("Logout failed")
        st_module.error("Logout failed. Please try again.")
        return

    for key in list(st_module.session_state.keys()):
        if key.startswith(_FORM_PREFIXES):
            st_module.session_state.pop(key, None)

    st_module.session_state.pop("_nav_section", None)
    st_module.success("You’ve been logged out.")
    st_module.session_state["need_rerun"] = True


__all__ = ["do_logout"]
