import types
from datetime import date

import pytest

from fakes import FakeAuthClient, FakeFirestore
from src.app_state import LOAD_FAILED_MESSAGE, LoadedData, LoadSucceeded, SelectSession
from src.controller import build_planner, get_planner, toast_notifier
from src.data_loading import run_load
from src.errors import DuplicateLessonPlanError
from src.models import LessonPlan, RecurringClass

MONDAY = date(2024, 9, 2)


@pytest.fixture
def db():
    return FakeFirestore()


@pytest.fixture
def notes():
    return []


@pytest.fixture
def planner(db, notes):
    auth = FakeAuthClient()
    auth.accounts["ada@example.com"] = {"uid": "u1", "password": "pw1234", "displayName": "Ada"}
    return build_planner(
        auth_client=auth,
        db_getter=lambda: db,
        notifier=lambda level, message: notes.append((level, message)),
    )


def test_sign_in_loads_the_users_data(planner, db):
    db.put("u1", "recurringClasses", "rc1", {"name": "Algebra", "subject": "Math", "day": 0, "time": "09:00"})
    db.put("u2", "recurringClasses", "rcX", {"name": "Other", "subject": "Art", "day": 1, "time": "09:00"})

    planner.identity.login("ada@example.com", "pw1234")

    state = planner.controller.state
    assert state.uid == "u1"
    assert not state.loading
    assert [rc.id for rc in state.data.recurring_classes] == ["rc1"]


def test_logout_clears_loaded_data(planner, db):
    db.put("u1", "templates", "t1", {"name": "Quiz"})
    planner.identity.login("ada@example.com", "pw1234")
    assert planner.controller.state.data.templates

    planner.identity.logout()

    state = planner.controller.state
    assert state.uid is None
    assert state.data.templates == ()
    assert planner.store.user_id is None


def test_save_plan_creates_then_updates(planner, db):
    planner.identity.login("ada@example.com", "pw1234")
    rc = planner.store.create_recurring_class(
        RecurringClass(id="", name="Algebra", subject="Math", day=0, time="09:00")
    )
    planner.controller.reload()
    controller = planner.controller

    controller.dispatch(SelectSession(MONDAY, rc.id))
    draft = LessonPlan(id="", date="2024-09-02", recurring_class_id=rc.id, class_name="Algebra", title="Fractions")
    created = controller.save_plan(draft)
    assert controller.state.selection is None
    assert [p.id for p in controller.state.data.lesson_plans] == [created.id]

    controller.dispatch(SelectSession(MONDAY, rc.id))
    assert controller.state.selection.editing_plan_id == created.id
    controller.save_plan(LessonPlan(id="", date="2024-09-02", recurring_class_id=rc.id, title="Decimals"))
    plans = controller.state.data.lesson_plans
    assert len(plans) == 1
    assert plans[0].title == "Decimals"


def test_duplicate_save_leaves_selection_open(planner):
    planner.identity.login("ada@example.com", "pw1234")
    plan = LessonPlan(id="", date="2024-09-02", recurring_class_id="rc1")
    planner.store.create_lesson_plan(plan)
    planner.controller.dispatch(SelectSession(date(2024, 9, 2), "rc-unknown"))

    with pytest.raises(DuplicateLessonPlanError):
        planner.controller.save_plan(plan)
    assert planner.controller.state.selection is not None


def test_delete_plan_reloads(planner):
    planner.identity.login("ada@example.com", "pw1234")
    created = planner.store.create_lesson_plan(LessonPlan(id="", date="2024-09-02", recurring_class_id="rc1"))
    planner.controller.reload()
    assert planner.controller.state.data.lesson_plans

    planner.controller.delete_plan(created.id)
    assert planner.controller.state.data.lesson_plans == ()


def test_failed_load_notifies_once(planner, db, notes):
    db.fail_on.add("breaks")
    planner.identity.login("ada@example.com", "pw1234")
    assert notes == [("error", LOAD_FAILED_MESSAGE)]
    assert planner.controller.state.load_error


def test_late_result_after_logout_is_ignored(planner, db):
    db.put("u1", "templates", "t1", {"name": "Quiz"})
    pending = []

    def deferred(store, effect):
        pending.append(run_load(store, effect))
        return LoadSucceeded(effect.generation, effect.uid, LoadedData())

    planner.controller.loader = deferred
    planner.identity.login("ada@example.com", "pw1234")
    (late,) = pending
    assert late.data.templates

    planner.identity.logout()
    planner.controller.dispatch(late)
    assert planner.controller.state.data.templates == ()


def test_toast_notifier_routes_levels(monkeypatch):
    calls = []
    monkeypatch.setattr("src.controller._TOASTS", {"error": lambda m: calls.append(("error", m))})
    toast_notifier("error", "boom")
    assert calls == [("error", "boom")]


def test_get_planner_is_cached_in_session_state():
    st = types.SimpleNamespace(session_state={})
    made = []

    def factory():
        made.append(object())
        return made[-1]

    first = get_planner(st_module=st, factory=factory)
    second = get_planner(st_module=st, factory=factory)
    assert first is second
    assert len(made) == 1
