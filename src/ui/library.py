"""Recurring classes, lesson-plan list and template library pages."""

from __future__ import annotations

import logging
from typing import Any, Iterable

import pandas as pd
import streamlit as st

from src.errors import ValidationError
from src.models import WEEKDAY_NAMES, LessonPlan, RecurringClass, Template
from src.rendering import class_meta, esc, render_template_card
from src.session_resolution import orphaned_lesson_plans
from src.utils.toasts import refresh_with_toast, toast_err

_LOG = logging.getLogger(__name__)

TEACHING_DAY_NAMES = WEEKDAY_NAMES[:5]
PLAN_COLUMNS = ["date", "class_name", "subject", "title", "homework"]


def lesson_plans_frame(plans: Iterable[LessonPlan], classes: Iterable[RecurringClass] = ()) -> pd.DataFrame:
    """Tabular view of lesson plans, newest first, flagging orphaned plans."""

    known = {rc.id for rc in classes}
    rows = [
        {
            "date": p.date,
            "class_name": p.class_name,
            "subject": p.subject,
            "title": p.title,
            "homework": p.homework,
            "orphaned": p.recurring_class_id not in known,
        }
        for p in plans
    ]
    df = pd.DataFrame(rows, columns=PLAN_COLUMNS + ["orphaned"])
    if df.empty:
        return df
    return df.sort_values("date", ascending=False, kind="stable").reset_index(drop=True)


def _run(action: Any, success: str, failure: str, controller: Any, st_module: Any = st) -> None:
    try:
        action()
    except ValidationError as exc:
        st_module.error(str(exc))
        return
    except Exception as exc:
        _LOG.exception(failure)
        toast_err(f"{failure}: {exc}", st_module=st_module)
        return
    controller.reload()
    refresh_with_toast(success, st_module=st_module)


def render_class_form(planner: Any, *, st_module: Any = st) -> None:
    with st_module.form("class_form_new", clear_on_submit=True):
        st_module.markdown("#### Add a weekly class")
        name = st_module.text_input("Class name", key="class_form_name")
        subject = st_module.text_input("Subject", key="class_form_subject")
        day = st_module.selectbox("Day", list(range(5)), format_func=lambda d: TEACHING_DAY_NAMES[d], key="class_form_day")
        start = st_module.time_input("Start time", key="class_form_time")
        duration = st_module.number_input("Duration (minutes)", min_value=5, max_value=240, value=45, step=5, key="class_form_duration")
        location = st_module.text_input("Location (optional)", key="class_form_location")
        submitted = st_module.form_submit_button("➕ Add class")

    if not submitted:
        return
    if not name.strip():
        st_module.error("Please enter a class name.")
        return

    def create() -> None:
        planner.store.create_recurring_class(
            RecurringClass(
                id="",
                name=name.strip(),
                subject=subject.strip(),
                day=int(day),
                time=start.strftime("%H:%M"),
                duration=int(duration),
                location=location.strip() or None,
            )
        )

    _run(create, "Class added!", "Could not add the class", planner.controller, st_module)


def render_classes(planner: Any, *, st_module: Any = st) -> None:
    classes = sorted(planner.controller.state.data.recurring_classes, key=lambda rc: (rc.day, rc.time))
    st_module.subheader("My weekly classes")
    if not classes:
        st_module.info("No recurring classes yet. Add your first one below.")
    for day_index, day_name in enumerate(TEACHING_DAY_NAMES):
        todays = [rc for rc in classes if rc.day == day_index]
        if not todays:
            continue
        st_module.markdown(f"**{day_name}**")
        for rc in todays:
            cols = st_module.columns([6, 1])
            cols[0].markdown(f"<b>{esc(rc.name)}</b> — {class_meta(rc)}", unsafe_allow_html=True)
            if cols[1].button("🗑️", key=f"class_delete_{rc.id}", help="Delete class (its lesson plans are kept)"):
                _run(
                    lambda rc_id=rc.id: planner.store.delete_recurring_class(rc_id),
                    "Class deleted.",
                    "Could not delete the class",
                    planner.controller,
                    st_module,
                )
    render_class_form(planner, st_module=st_module)


def render_lesson_plans(planner: Any, *, st_module: Any = st) -> None:
    data = planner.controller.state.data
    st_module.subheader("Lesson plans")
    df = lesson_plans_frame(data.lesson_plans, data.recurring_classes)
    if df.empty:
        st_module.info("No lesson plans yet. Open a class session in the calendar to plan it.")
        return
    st_module.dataframe(df, hide_index=True)
    st_module.download_button(
        "⬇️ Download CSV",
        df.to_csv(index=False).encode("utf-8"),
        file_name="lesson_plans.csv",
        mime="text/csv",
    )
    orphans = orphaned_lesson_plans(data.recurring_classes, data.lesson_plans)
    if orphans:
        st_module.caption(
            f"{len(orphans)} plan(s) belong to classes that were deleted; they remain listed here by date."
        )


def render_template_form(planner: Any, *, st_module: Any = st) -> None:
    with st_module.form("template_form_new", clear_on_submit=True):
        st_module.markdown("#### New template")
        name = st_module.text_input("Template name", key="template_form_name")
        description = st_module.text_input("Description", key="template_form_desc")
        subject = st_module.text_input("Subject", value="General", key="template_form_subject")
        duration = st_module.number_input("Duration (minutes)", min_value=5, max_value=240, value=45, step=5, key="template_form_duration")
        structure = st_module.text_area("Structure", key="template_form_structure")
        submitted = st_module.form_submit_button("💾 Save template")

    if not submitted:
        return
    if not (name.strip() and description.strip()):
        st_module.error("Please fill in name and description.")
        return
    template = Template(
        id="",
        name=name.strip(),
        description=description.strip(),
        subject=subject.strip() or "General",
        duration=int(duration),
        structure=structure,
    )
    _run(lambda: planner.store.create_template(template), "Template saved!", "Could not save the template", planner.controller, st_module)


def render_templates(planner: Any, *, st_module: Any = st) -> None:
    st_module.subheader("Templates")
    templates = planner.controller.state.data.templates
    if not templates:
        st_module.info("No templates yet.")
    for template in templates:
        cols = st_module.columns([6, 1])
        cols[0].markdown(render_template_card(template), unsafe_allow_html=True)
        if cols[1].button("🗑️", key=f"template_delete_{template.id}"):
            _run(
                lambda t_id=template.id: planner.store.delete_template(t_id),
                "Template deleted.",
                "Could not delete the template",
                planner.controller,
                st_module,
            )
    render_template_form(planner, st_module=st_module)


__all__ = [
    "lesson_plans_frame",
    "render_classes",
    "render_lesson_plans",
    "render_templates",
]
