"""Pages for the legacy lesson list and fixed weekly grid."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, List, Optional

import streamlit as st

from src.legacy_schedule import GRID_DAYS, PERIOD_LABELS, copy_lesson, lesson_from_template
from src.models import Lesson
from src.rendering import esc
from src.utils.toasts import refresh_with_toast, toast_err, toast_ok

_LOG = logging.getLogger(__name__)

_EDITING_KEY = "lesson_form_editing_id"
_PREFILL_KEY = "lesson_form_prefill"


def _lesson_form(planner: Any, lessons: List[Lesson], st_module: Any) -> None:
    editing_id = st_module.session_state.get(_EDITING_KEY)
    editing: Optional[Lesson] = next((l for l in lessons if l.id == editing_id), None)
    base = editing or st_module.session_state.get(_PREFILL_KEY) or Lesson(id="", title="")

    templates = planner.controller.state.data.templates
    if templates and editing is None:
        names = [t.name for t in templates]
        choice = st_module.selectbox("Start from a template", names, index=None, key="lesson_form_template")
        if choice is not None and st_module.button("Apply template", key="lesson_form_apply"):
            st_module.session_state[_PREFILL_KEY] = lesson_from_template(templates[names.index(choice)])
            st_module.session_state["need_rerun"] = True

    suffix = editing.id if editing else "new"
    with st_module.form(f"lesson_form_{suffix}", clear_on_submit=editing is None):
        st_module.markdown("#### Edit lesson" if editing else "#### Create new lesson")
        title = st_module.text_input("Title", value=base.title)
        subject = st_module.text_input("Subject", value=base.subject)
        when = st_module.date_input("Date", value=date.fromisoformat(base.date) if base.date else None)
        duration = st_module.number_input("Duration (minutes)", min_value=5, max_value=240, value=int(base.duration or 45), step=5)
        objectives = st_module.text_area("Objectives", value=base.objectives)
        materials = st_module.text_area("Materials", value=base.materials)
        activities = st_module.text_area("Activities", value=base.activities)
        submitted = st_module.form_submit_button("💾 Save lesson")

    if not submitted:
        return
    if not (title.strip() and subject.strip() and when):
        st_module.error("Please fill in title, subject, and date.")
        return
    lesson = Lesson(
        id=editing.id if editing else "",
        title=title.strip(),
        subject=subject.strip(),
        date=when.isoformat(),
        duration=int(duration),
        objectives=objectives,
        materials=materials,
        activities=activities,
    )
    try:
        if editing:
            planner.store.update_lesson(lesson)
        else:
            planner.store.create_lesson(lesson)
    except Exception as exc:
        _LOG.exception("Failed to save lesson")
        toast_err(f"Could not save the lesson: {exc}", st_module=st_module)
        return
    st_module.session_state.pop(_EDITING_KEY, None)
    st_module.session_state.pop(_PREFILL_KEY, None)
    refresh_with_toast("Lesson saved!", st_module=st_module)


def _lesson_list(planner: Any, lessons: List[Lesson], st_module: Any) -> None:
    if not lessons:
        st_module.info('No lessons created yet. Use "Create new lesson" to get started!')
        return
    for lesson in lessons:
        cols = st_module.columns([6, 1, 1, 1])
        cols[0].markdown(
            f"<b>{esc(lesson.title)}</b><br><span>{esc(lesson.subject)} • 📅 {esc(lesson.date or '—')}"
            f" • ⏱️ {esc(lesson.duration)} min</span>",
            unsafe_allow_html=True,
        )
        if cols[1].button("📋", key=f"lesson_copy_{lesson.id}", help="Duplicate"):
            try:
                planner.store.create_lesson(copy_lesson(lesson))
            except Exception as exc:
                _LOG.exception("Failed to copy lesson %s", lesson.id)
                toast_err(f"Could not copy the lesson: {exc}", st_module=st_module)
                return
            toast_ok("Lesson copied! Edit the date before adding to the calendar.", st_module=st_module)
            st_module.session_state["need_rerun"] = True
        if cols[2].button("✏️", key=f"lesson_edit_{lesson.id}", help="Edit"):
            st_module.session_state[_EDITING_KEY] = lesson.id
            st_module.session_state["need_rerun"] = True
        if cols[3].button("🗑️", key=f"lesson_delete_{lesson.id}", help="Delete"):
            try:
                planner.store.delete_lesson(lesson.id)
            except Exception as exc:
                _LOG.exception("Failed to delete lesson %s", lesson.id)
                toast_err(f"Could not delete the lesson: {exc}", st_module=st_module)
                return
            refresh_with_toast("Lesson deleted.", st_module=st_module)


def _weekly_grid(planner: Any, lessons: List[Lesson], st_module: Any) -> None:
    try:
        grid = planner.store.get_schedule()
    except Exception as exc:
        _LOG.exception("Failed to load weekly schedule")
        st_module.error(f"Could not load the weekly schedule: {exc}")
        return

    header = st_module.columns(len(GRID_DAYS) + 1)
    for col, name in zip(header[1:], GRID_DAYS):
        col.markdown(f"**{name}**")
    for time_slot, label in enumerate(PERIOD_LABELS):
        cols = st_module.columns(len(GRID_DAYS) + 1)
        cols[0].markdown(f"**{label}**")
        for day, col in enumerate(cols[1:]):
            lesson = grid[time_slot][day]
            if lesson is not None:
                col.markdown(f"{esc(lesson.title)}<br><small>{esc(lesson.subject)}</small>", unsafe_allow_html=True)
                if col.button("Remove", key=f"slot_clear_{day}_{time_slot}"):
                    _save_slot(planner, day, time_slot, None, st_module)
            elif lessons:
                choice = col.selectbox(
                    "Lesson",
                    [l.id for l in lessons],
                    index=None,
                    format_func=lambda lid: next((f"{l.title} - {l.subject}" for l in lessons if l.id == lid), lid),
                    key=f"slot_pick_{day}_{time_slot}",
                    label_visibility="collapsed",
                )
                if choice:
                    _save_slot(planner, day, time_slot, choice, st_module)


def _save_slot(planner: Any, day: int, time_slot: int, lesson_id: Optional[str], st_module: Any) -> None:
    try:
        planner.store.save_schedule_slot(day, time_slot, lesson_id)
    except Exception as exc:
        _LOG.exception("Failed to save schedule slot %s-%s", day, time_slot)
        toast_err(f"Could not update the schedule: {exc}", st_module=st_module)
        return
    st_module.session_state.pop(f"slot_pick_{day}_{time_slot}", None)
    refresh_with_toast("Schedule updated.", st_module=st_module)


def render_legacy(planner: Any, *, st_module: Any = st) -> None:
    st_module.caption("Lessons and the fixed weekly grid from earlier versions of Plany.")
    try:
        lessons = planner.store.get_lessons()
    except Exception as exc:
        _LOG.exception("Failed to load lessons")
        st_module.error(f"Could not load lessons: {exc}")
        return

    lessons_tab, grid_tab = st_module.tabs(["📚 Lessons", "🗓️ Weekly grid"])
    with lessons_tab:
        _lesson_list(planner, lessons, st_module)
        _lesson_form(planner, lessons, st_module)
    with grid_tab:
        _weekly_grid(planner, lessons, st_module)


__all__ = ["render_legacy"]
