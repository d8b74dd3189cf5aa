"""School-year settings and breaks."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, Optional

import streamlit as st

from src.errors import ValidationError
from src.models import Break, Profile
from src.rendering import render_break_item
from src.school_year import current_school_year, default_school_year_dates, school_year_options
from src.utils.toasts import refresh_with_toast, toast_err

_LOG = logging.getLogger(__name__)


def year_settings_payload(
    selected_year: str,
    start: date,
    end: date,
    periods_per_day: int,
    minutes_per_period: int,
) -> Dict[str, Any]:
    """Profile fields written when the settings form is saved."""

    if end < start:
        raise ValidationError("The school year cannot end before it starts.")
    return {
        "selectedYear": selected_year,
        "schoolYear": {"start": start.isoformat(), "end": end.isoformat()},
        "periodsPerDay": int(periods_per_day),
        "minutesPerPeriod": int(minutes_per_period),
    }


def _selected_year(profile: Optional[Profile]) -> str:
    if profile is not None and profile.selected_year:
        return profile.selected_year
    return current_school_year()


def render_year_settings(planner: Any, *, st_module: Any = st) -> None:
    profile = planner.identity.current_user.profile if planner.identity.current_user else None
    st_module.subheader("School year")

    options = school_year_options()
    selected = _selected_year(profile)
    if selected not in options:
        options.append(selected)
    year = st_module.selectbox("School year", options, index=options.index(selected), key="year_form_selected")
    st_module.caption(f"{year} School Year")

    default_start, default_end = default_school_year_dates(year)
    if profile is not None and year == profile.selected_year and profile.school_year.start:
        default_start, default_end = profile.school_year.start, profile.school_year.end or default_end

    with st_module.form(f"year_form_{year}"):
        start = st_module.date_input("First day", value=date.fromisoformat(default_start), key=f"year_form_start_{year}")
        end = st_module.date_input("Last day", value=date.fromisoformat(default_end), key=f"year_form_end_{year}")
        periods = st_module.number_input(
            "Periods per day", min_value=1, max_value=12,
            value=profile.periods_per_day if profile else 6, key=f"year_form_periods_{year}",
        )
        minutes = st_module.number_input(
            "Minutes per period", min_value=10, max_value=180,
            value=profile.minutes_per_period if profile else 45, key=f"year_form_minutes_{year}",
        )
        submitted = st_module.form_submit_button("💾 Save settings")

    if not submitted:
        return
    try:
        payload = year_settings_payload(year, start, end, periods, minutes)
        planner.store.update_user_profile(payload)
    except ValidationError as exc:
        st_module.error(str(exc))
        return
    except Exception as exc:
        _LOG.exception("Failed to save school year settings")
        toast_err(f"Could not save settings: {exc}", st_module=st_module)
        return
    planner.identity.reload_profile()
    refresh_with_toast("School year settings saved!", st_module=st_module)


def render_breaks(planner: Any, *, st_module: Any = st) -> None:
    st_module.subheader("Breaks")
    breaks = sorted(planner.controller.state.data.breaks, key=lambda b: b.start_date)
    if not breaks:
        st_module.caption("No breaks added yet.")
    for brk in breaks:
        cols = st_module.columns([6, 1])
        cols[0].markdown(render_break_item(brk), unsafe_allow_html=True)
        if cols[1].button("🗑️", key=f"break_delete_{brk.id}"):
            try:
                planner.store.delete_break(brk.id)
            except Exception as exc:
                _LOG.exception("Failed to delete break %s", brk.id)
                toast_err(f"Could not delete the break: {exc}", st_module=st_module)
                return
            planner.controller.reload()
            refresh_with_toast("Break removed.", st_module=st_module)

    with st_module.form("break_form_new", clear_on_submit=True):
        name = st_module.text_input("Break name", key="break_form_name")
        start = st_module.date_input("Starts", value=None, key="break_form_start")
        end = st_module.date_input("Ends", value=None, key="break_form_end")
        submitted = st_module.form_submit_button("➕ Add break")

    if not submitted:
        return
    if not (name.strip() and start and end):
        st_module.error("Please fill in all break details.")
        return
    try:
        planner.store.create_break(Break(id="", name=name.strip(), start_date=start.isoformat(), end_date=end.isoformat()))
    except ValidationError as exc:
        st_module.error(str(exc))
        return
    except Exception as exc:
        _LOG.exception("Failed to add break")
        toast_err(f"Could not add the break: {exc}", st_module=st_module)
        return
    planner.controller.reload()
    refresh_with_toast("Break added!", st_module=st_module)


def render_settings(planner: Any, *, st_module: Any = st) -> None:
    render_year_settings(planner, st_module=st_module)
    st_module.divider()
    render_breaks(planner, st_module=st_module)


__all__ = ["render_breaks", "render_settings", "render_year_settings", "year_settings_payload"]
