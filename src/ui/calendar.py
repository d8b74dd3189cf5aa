"""Month, week and day calendar pages."""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

import streamlit as st

from src.app_state import (
    CALENDAR_VIEWS,
    DAY,
    MONTH,
    WEEK,
    ActivateDay,
    GoToday,
    Navigate,
    SelectSession,
    SwitchView,
)
from src.models import Session
from src.rendering import (
    PLANNER_CSS,
    render_day_header,
    render_month_grid,
    render_session_card,
)
from src.session_resolution import day_view, month_view, week_start, week_view

_VIEW_LABELS = {MONTH: "🗓️ Month", WEEK: "📅 Week", DAY: "📌 Day"}


def period_title(view: str, focus: date) -> str:
    if view == MONTH:
        return focus.strftime("%B %Y")
    if view == WEEK:
        monday = week_start(focus)
        return f"Week of {monday.strftime('%b %d, %Y')}"
    return focus.strftime("%A, %B %d, %Y")


def _render_toolbar(controller: Any, today: date, st_module: Any) -> None:
    state = controller.state
    cols = st_module.columns(len(CALENDAR_VIEWS) + 3)
    for col, view in zip(cols, CALENDAR_VIEWS):
        col.button(
            _VIEW_LABELS[view],
            key=f"cal_view_{view}",
            type="primary" if state.calendar_view == view else "secondary",
            on_click=controller.dispatch,
            args=(SwitchView(view),),
        )
    nav = cols[len(CALENDAR_VIEWS):]
    nav[0].button("◀", key="cal_prev", on_click=controller.dispatch, args=(Navigate(-1),))
    nav[1].button("Today", key="cal_today", on_click=controller.dispatch, args=(GoToday(today),))
    nav[2].button("▶", key="cal_next", on_click=controller.dispatch, args=(Navigate(1),))
    st_module.subheader(period_title(state.calendar_view, state.focus_date))


def _session_button(controller: Any, session: Session, st_module: Any, key_prefix: str) -> None:
    label = "✏️ Edit plan" if session.is_planned else "📝 Plan lesson"
    st_module.button(
        label,
        key=f"{key_prefix}_{session.date}_{session.recurring_class.id}",
        on_click=controller.dispatch,
        args=(SelectSession(date.fromisoformat(session.date), session.recurring_class.id),),
    )


def render_month(controller: Any, today: date, st_module: Any = st) -> None:
    state = controller.state
    data = state.data
    view = month_view(
        state.focus_date.year,
        state.focus_date.month,
        data.recurring_classes,
        data.lesson_plans,
        data.breaks,
    )
    st_module.markdown(render_month_grid(view, today=today), unsafe_allow_html=True)

    open_days = [d for d in view.days if d.can_open]
    if not open_days:
        st_module.info("No classes this month. Add recurring classes under “My classes”.")
        return
    st_module.caption("Open a day:")
    for start in range(0, len(open_days), 7):
        row = open_days[start : start + 7]
        cols = st_module.columns(7)
        for col, summary in zip(cols, row):
            col.button(
                f"{summary.date.strftime('%a %d')} · {summary.label}",
                key=f"cal_open_{summary.date.isoformat()}",
                on_click=controller.dispatch,
                args=(ActivateDay(summary.date),),
            )


def render_week(controller: Any, st_module: Any = st) -> None:
    state = controller.state
    data = state.data
    days = week_view(state.focus_date, data.recurring_classes, data.lesson_plans, data.breaks)
    cols = st_module.columns(7)
    for col, detail in zip(cols, days):
        with col:
            st_module.markdown(f"**{detail.date.strftime('%a %d')}**")
            if detail.break_name:
                st_module.caption(f"🏖️ {detail.break_name}")
            if not detail.sessions:
                st_module.caption("—")
            for session in detail.sessions:
                st_module.markdown(render_session_card(session), unsafe_allow_html=True)
                _session_button(controller, session, st_module, "week")


def render_day(controller: Any, st_module: Any = st) -> None:
    state = controller.state
    data = state.data
    detail = day_view(state.focus_date, data.recurring_classes, data.lesson_plans, data.breaks)
    st_module.markdown(render_day_header(detail), unsafe_allow_html=True)
    if not detail.sessions:
        st_module.info("No classes scheduled on this day.")
        return
    for session in detail.sessions:
        st_module.markdown(render_session_card(session, show_plan=True), unsafe_allow_html=True)
        _session_button(controller, session, st_module, "day")


def render_calendar(controller: Any, *, today: Optional[date] = None, st_module: Any = st) -> None:
    today = today or date.today()
    st_module.markdown(PLANNER_CSS, unsafe_allow_html=True)
    _render_toolbar(controller, today, st_module)
    view = controller.state.calendar_view
    if view == MONTH:
        render_month(controller, today, st_module)
    elif view == WEEK:
        render_week(controller, st_module)
    else:
        render_day(controller, st_module)


__all__ = ["period_title", "render_calendar", "render_day", "render_month", "render_week"]
