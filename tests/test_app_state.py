from dataclasses import replace
from datetime import date

import pytest

from src.app_state import (
    DAY,
    LOAD_FAILED_MESSAGE,
    MONTH,
    WEEK,
    ActivateDay,
    AppState,
    CancelEdit,
    GoToday,
    IdentityChanged,
    LoadAll,
    LoadedData,
    LoadFailed,
    LoadRequested,
    LoadSucceeded,
    Navigate,
    Notify,
    PlanSaved,
    SelectSession,
    SwitchView,
    UseTemplate,
    reduce,
)
from src.models import LessonPlan, RecurringClass

MONDAY = date(2024, 9, 2)

CLASSES = (RecurringClass(id="rc1", name="Algebra", subject="Math", day=0, time="09:00"),)
PLANS = (LessonPlan(id="p1", date="2024-09-02", recurring_class_id="rc1", title="Fractions"),)
DATA = LoadedData(recurring_classes=CLASSES, lesson_plans=PLANS)


def _signed_in(**overrides):
    state = AppState(focus_date=MONDAY, uid="u1", load_generation=3, data=DATA)
    return replace(state, **overrides)


def test_switch_view_and_reject_unknown():
    state, effects = reduce(AppState(focus_date=MONDAY), SwitchView(WEEK))
    assert state.calendar_view == WEEK
    assert effects == []
    with pytest.raises(ValueError):
        reduce(state, SwitchView("year"))


@pytest.mark.parametrize(
    "view, step, expected",
    [
        (MONTH, 1, date(2024, 10, 2)),
        (MONTH, -1, date(2024, 8, 2)),
        (WEEK, 1, date(2024, 9, 9)),
        (DAY, -1, date(2024, 9, 1)),
    ],
)
def test_navigate_moves_by_view_unit(view, step, expected):
    state, _ = reduce(AppState(calendar_view=view, focus_date=MONDAY), Navigate(step))
    assert state.focus_date == expected


def test_navigate_month_clamps_to_month_end():
    state, _ = reduce(AppState(focus_date=date(2024, 1, 31)), Navigate(1))
    assert state.focus_date == date(2024, 2, 29)


def test_go_today():
    state, _ = reduce(AppState(focus_date=MONDAY, calendar_view=WEEK), GoToday(date(2025, 1, 6)))
    assert state.focus_date == date(2025, 1, 6)
    assert state.calendar_view == WEEK


def test_activating_day_with_sessions_opens_day_view():
    state, _ = reduce(_signed_in(focus_date=date(2024, 9, 20)), ActivateDay(MONDAY))
    assert state.calendar_view == DAY
    assert state.focus_date == MONDAY


def test_activating_day_without_sessions_is_ignored():
    before = _signed_in()
    state, effects = reduce(before, ActivateDay(date(2024, 9, 3)))
    assert state is before
    assert effects == []


def test_activating_outside_month_view_is_ignored():
    before = _signed_in(calendar_view=WEEK)
    state, _ = reduce(before, ActivateDay(MONDAY))
    assert state.calendar_view == WEEK


def test_selecting_planned_session_enters_edit_mode():
    state, _ = reduce(_signed_in(), SelectSession(MONDAY, "rc1"))
    assert state.selection.is_editing
    assert state.selection.editing_plan_id == "p1"
    assert state.selection.date == "2024-09-02"


def test_selecting_unplanned_session_enters_create_mode():
    state, _ = reduce(_signed_in(), SelectSession(date(2024, 9, 9), "rc1"))
    assert state.selection is not None
    assert not state.selection.is_editing


def test_template_prefill_is_cleared_on_cancel():
    state, _ = reduce(_signed_in(), SelectSession(MONDAY, "rc1"))
    state, _ = reduce(state, UseTemplate({"activities": "Intro"}))
    assert state.prefill == {"activities": "Intro"}
    state, _ = reduce(state, CancelEdit())
    assert state.selection is None
    assert state.prefill is None


def test_plan_saved_clears_selection_and_reloads():
    state, _ = reduce(_signed_in(), SelectSession(MONDAY, "rc1"))
    state, effects = reduce(state, PlanSaved())
    assert state.selection is None
    assert state.loading
    assert effects == [LoadAll(generation=4, uid="u1")]


def test_load_requested_without_user_does_nothing():
    state, effects = reduce(AppState(), LoadRequested())
    assert effects == []
    assert not state.loading


def test_current_load_result_is_applied():
    state, (effect,) = reduce(_signed_in(data=LoadedData()), LoadRequested())
    state, _ = reduce(state, LoadSucceeded(effect.generation, effect.uid, DATA))
    assert state.data == DATA
    assert not state.loading


def test_load_result_after_logout_is_discarded():
    state, (effect,) = reduce(_signed_in(data=LoadedData()), LoadRequested())
    state, effects = reduce(state, IdentityChanged(None))
    assert effects == []
    assert state.uid is None

    state, _ = reduce(state, LoadSucceeded(effect.generation, effect.uid, DATA))
    assert state.data == LoadedData()


def test_load_result_for_previous_user_is_discarded():
    state, (old,) = reduce(_signed_in(), LoadRequested())
    state, (new,) = reduce(state, IdentityChanged("u2"))
    assert new.uid == "u2"
    assert new.generation > old.generation

    state, _ = reduce(state, LoadSucceeded(old.generation, old.uid, DATA))
    assert state.data == LoadedData()
    assert state.loading


def test_failed_load_keeps_data_and_notifies_once():
    state, (effect,) = reduce(_signed_in(), LoadRequested())
    state, effects = reduce(state, LoadFailed(effect.generation, effect.uid, "boom"))
    assert state.data == DATA
    assert state.load_error == "boom"
    assert not state.loading
    assert effects == [Notify(level="error", message=LOAD_FAILED_MESSAGE)]


def test_stale_failure_is_silent():
    state, (effect,) = reduce(_signed_in(), LoadRequested())
    state, _ = reduce(state, LoadRequested())
    state, effects = reduce(state, LoadFailed(effect.generation, effect.uid, "boom"))
    assert effects == []
    assert state.load_error is None


def test_identity_change_resets_view_but_keeps_focus():
    before = _signed_in(calendar_view=DAY)
    state, effects = reduce(before, IdentityChanged("u2"))
    assert state.calendar_view == MONTH
    assert state.focus_date == MONDAY
    assert state.data == LoadedData()
    assert effects == [LoadAll(generation=state.load_generation, uid="u2")]


def test_same_identity_is_a_no_op():
    before = _signed_in()
    assert reduce(before, IdentityChanged("u1")) == (before, [])


def test_unknown_event_raises():
    with pytest.raises(TypeError):
        reduce(AppState(), object())
