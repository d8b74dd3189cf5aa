from unittest.mock import MagicMock
import types

from src.utils import toasts


def _mock_st():
    return types.SimpleNamespace(toast=MagicMock(), session_state={})


def test_toast_levels_use_their_icons():
    st = _mock_st()
    toasts.toast_ok("hello", st_module=st)
    toasts.toast_err("oops", st_module=st)
    toasts.toast_warn("careful", st_module=st)
    toasts.toast_info("note", st_module=st)
    assert [c.kwargs["icon"] for c in st.toast.call_args_list] == ["✅", "❌", "⚠️", "ℹ️"]


def test_rerun_without_toast():
    st = _mock_st()
    toasts.rerun_without_toast(st_module=st)
    st.toast.assert_not_called()
    assert st.session_state["__refresh"] == 1
    assert st.session_state["need_rerun"] is True


def test_refresh_with_toast_custom_msg():
    st = _mock_st()
    toasts.refresh_with_toast("Updated!", st_module=st)
    st.toast.assert_called_once_with("Updated!", icon="✅")
    assert st.session_state["need_rerun"] is True
