"""Lesson-plan form for the selected class session."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import streamlit as st

from src.app_state import CancelEdit, UseTemplate, find_plan
from src.errors import DuplicateLessonPlanError
from src.models import LessonPlan, RecurringClass
from src.rendering import class_meta
from src.school_year import template_to_plan_fields
from src.utils.toasts import refresh_with_toast, toast_err

_LOG = logging.getLogger(__name__)

PLAN_TEXT_FIELDS = ("objectives", "materials", "activities", "homework", "notes")


def _find_class(controller: Any, class_id: str) -> Optional[RecurringClass]:
    for rc in controller.state.data.recurring_classes:
        if rc.id == class_id:
            return rc
    return None


def initial_values(plan: Optional[LessonPlan], prefill: Optional[Dict[str, str]]) -> Dict[str, str]:
    """Form defaults: the plan being edited, overlaid with any template fields."""

    values = {"title": plan.title if plan else ""}
    for name in PLAN_TEXT_FIELDS:
        values[name] = getattr(plan, name, "") if plan else ""
    for name, value in (prefill or {}).items():
        if name in values and value:
            values[name] = value
    return values


def build_plan(rc: RecurringClass, day: str, values: Dict[str, str]) -> LessonPlan:
    return LessonPlan(
        id="",
        date=day,
        recurring_class_id=rc.id,
        class_name=rc.name,
        subject=rc.subject,
        title=values.get("title", "").strip(),
        **{name: values.get(name, "") for name in PLAN_TEXT_FIELDS},
    )


def _render_template_picker(controller: Any, st_module: Any, key: str) -> None:
    templates = list(controller.state.data.templates)
    if not templates:
        return
    names = [t.name for t in templates]
    choice = st_module.selectbox("Start from a template", names, index=None, key=f"{key}_template")
    if choice is not None and st_module.button("Apply template", key=f"{key}_apply"):
        template = templates[names.index(choice)]
        controller.dispatch(UseTemplate(template_to_plan_fields(template)))
        st_module.session_state["need_rerun"] = True


def render_plan_form(controller: Any, *, st_module: Any = st) -> None:
    state = controller.state
    selection = state.selection
    if selection is None:
        return

    rc = _find_class(controller, selection.recurring_class_id)
    if rc is None:
        st_module.warning("This class no longer exists.")
        controller.dispatch(CancelEdit())
        return

    plan = find_plan(state.data, rc.id, selection.date) if selection.is_editing else None
    mode = "Edit lesson plan" if plan is not None else "New lesson plan"
    st_module.markdown(f"### {mode}")
    st_module.caption(f"{rc.name} · {selection.date}")
    st_module.markdown(class_meta(rc), unsafe_allow_html=True)

    # Widget keys change with the selection and the applied template, so the
    # form re-seeds its defaults instead of keeping stale input.
    key = f"plan_form_{selection.date}_{rc.id}_{abs(hash(tuple(sorted((state.prefill or {}).items()))))}"
    _render_template_picker(controller, st_module, key)
    values = initial_values(plan, state.prefill)

    with st_module.form(key, clear_on_submit=False):
        entered = {"title": st_module.text_input("Title", value=values["title"], key=f"{key}_title")}
        for name in PLAN_TEXT_FIELDS:
            entered[name] = st_module.text_area(name.capitalize(), value=values[name], key=f"{key}_{name}")
        save = st_module.form_submit_button("💾 Save plan")
        cancel = st_module.form_submit_button("Cancel")

    if cancel:
        controller.dispatch(CancelEdit())
        st_module.session_state["need_rerun"] = True
        return

    if plan is not None and st_module.button("🗑️ Delete plan", key=f"{key}_delete"):
        try:
            controller.delete_plan(plan.id)
        except Exception as exc:
            _LOG.exception("Failed to delete lesson plan %s", plan.id)
            toast_err(f"Could not delete the plan: {exc}", st_module=st_module)
            return
        refresh_with_toast("Lesson plan deleted.", st_module=st_module)
        return

    if not save:
        return
    if not entered["title"].strip():
        st_module.error("Please give the lesson plan a title.")
        return
    try:
        controller.save_plan(build_plan(rc, selection.date, entered))
    except DuplicateLessonPlanError:
        st_module.error("This class already has a lesson plan on that date.")
        return
    except Exception as exc:
        _LOG.exception("Failed to save lesson plan")
        toast_err(f"Could not save the plan: {exc}", st_module=st_module)
        return
    refresh_with_toast("Lesson plan saved!", st_module=st_module)


__all__ = ["PLAN_TEXT_FIELDS", "build_plan", "initial_values", "render_plan_form"]
