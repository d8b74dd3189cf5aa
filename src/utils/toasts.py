from typing import Any

import streamlit as st


def toast_ok(msg: str, *, st_module: Any = st) -> None:
    """Show a success toast message."""
    st_module.toast(msg, icon="✅")


def toast_err(msg: str, *, st_module: Any = st) -> None:
    """Show an error toast message."""
    st_module.toast(msg, icon="❌")


def toast_warn(msg: str, *, st_module: Any = st) -> None:
    st_module.toast(msg, icon="⚠️")


def toast_info(msg: str, *, st_module: Any = st) -> None:
    st_module.toast(msg, icon="ℹ️")


def rerun_without_toast(*, st_module: Any = st) -> None:
    """Increment ``__refresh`` and flag a rerun without notifying the user."""
    st_module.session_state["__refresh"] = st_module.session_state.get("__refresh", 0) + 1
    st_module.session_state["need_rerun"] = True


def refresh_with_toast(msg: str = "Saved!", *, st_module: Any = st) -> None:
    """Flag a rerun and tell the user their action was saved.

    Parameters
    ----------
    msg:
        The message to display in the success toast. Defaults to ``"Saved!"``.
    """
    rerun_without_toast(st_module=st_module)
    toast_ok(msg, st_module=st_module)
