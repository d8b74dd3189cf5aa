"""Planner view state as an immutable value plus a pure reducer.

``reduce(state, event)`` returns the next state and a list of effects for the
controller to run (loads and notifications).  Nothing in this module performs
I/O, which keeps the calendar/edit state machine testable without Streamlit or
Firestore.

Loads are tagged with a generation number and the uid that requested them.
Any identity change bumps the generation, so results arriving for an older
generation or a different user are dropped instead of repopulating the view.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple, Union

from dateutil.relativedelta import relativedelta

from .models import Break, LessonPlan, RecurringClass, Template, coerce_date
from .session_resolution import sessions_for

MONTH = "month"
WEEK = "week"
DAY = "day"
CALENDAR_VIEWS = (MONTH, WEEK, DAY)

LOAD_FAILED_MESSAGE = "Error loading data. Please refresh the page."


@dataclass(frozen=True)
class SessionSelection:
    """The class session whose lesson-plan form is open."""

    date: str
    recurring_class_id: str
    editing_plan_id: Optional[str] = None

    @property
    def is_editing(self) -> bool:
        return self.editing_plan_id is not None


@dataclass(frozen=True)
class LoadedData:
    recurring_classes: Tuple[RecurringClass, ...] = ()
    lesson_plans: Tuple[LessonPlan, ...] = ()
    templates: Tuple[Template, ...] = ()
    breaks: Tuple[Break, ...] = ()


@dataclass(frozen=True)
class AppState:
    calendar_view: str = MONTH
    focus_date: date = field(default_factory=date.today)
    selection: Optional[SessionSelection] = None
    prefill: Optional[Dict[str, str]] = None
    data: LoadedData = field(default_factory=LoadedData)
    uid: Optional[str] = None
    load_generation: int = 0
    loading: bool = False
    load_error: Optional[str] = None


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class SwitchView:
    view: str


@dataclass(frozen=True)
class Navigate:
    step: int


@dataclass(frozen=True)
class GoToday:
    today: date


@dataclass(frozen=True)
class ActivateDay:
    day: date


@dataclass(frozen=True)
class SelectSession:
    day: date
    recurring_class_id: str


@dataclass(frozen=True)
class UseTemplate:
    fields: Dict[str, str]


@dataclass(frozen=True)
class CancelEdit:
    pass


@dataclass(frozen=True)
class PlanSaved:
    pass


@dataclass(frozen=True)
class LoadRequested:
    pass


@dataclass(frozen=True)
class LoadSucceeded:
    generation: int
    uid: Optional[str]
    data: LoadedData


@dataclass(frozen=True)
class LoadFailed:
    generation: int
    uid: Optional[str]
    message: str


@dataclass(frozen=True)
class IdentityChanged:
    uid: Optional[str]


Event = Union[
    SwitchView,
    Navigate,
    GoToday,
    ActivateDay,
    SelectSession,
    UseTemplate,
    CancelEdit,
    PlanSaved,
    LoadRequested,
    LoadSucceeded,
    LoadFailed,
    IdentityChanged,
]


# ---------------------------------------------------------------------------
# Effects
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class LoadAll:
    generation: int
    uid: str


@dataclass(frozen=True)
class Notify:
    level: str
    message: str


Effect = Union[LoadAll, Notify]


def _start_load(state: AppState) -> Tuple[AppState, List[Effect]]:
    if not state.uid:
        return state, []
    generation = state.load_generation + 1
    return (
        replace(state, load_generation=generation, loading=True),
        [LoadAll(generation=generation, uid=state.uid)],
    )


def _is_current(state: AppState, generation: int, uid: Optional[str]) -> bool:
    return generation == state.load_generation and uid == state.uid


def _shift(state: AppState, step: int) -> date:
    if state.calendar_view == MONTH:
        return state.focus_date + relativedelta(months=step)
    if state.calendar_view == WEEK:
        return state.focus_date + timedelta(weeks=step)
    return state.focus_date + timedelta(days=step)


def find_plan(data: LoadedData, recurring_class_id: str, day: Any) -> Optional[LessonPlan]:
    iso = coerce_date(day).isoformat()
    for plan in data.lesson_plans:
        if plan.recurring_class_id == recurring_class_id and plan.date == iso:
            return plan
    return None


def reduce(state: AppState, event: Event) -> Tuple[AppState, List[Effect]]:
    """Return ``(next_state, effects)`` for ``event``."""

    if isinstance(event, SwitchView):
        if event.view not in CALENDAR_VIEWS:
            raise ValueError(f"Unknown calendar view: {event.view!r}")
        return replace(state, calendar_view=event.view), []

    if isinstance(event, Navigate):
        return replace(state, focus_date=_shift(state, event.step)), []

    if isinstance(event, GoToday):
        return replace(state, focus_date=event.today), []

    if isinstance(event, ActivateDay):
        sessions = sessions_for(event.day, state.data.recurring_classes, state.data.lesson_plans)
        if state.calendar_view != MONTH or not sessions:
            return state, []
        return replace(state, calendar_view=DAY, focus_date=event.day), []

    if isinstance(event, SelectSession):
        plan = find_plan(state.data, event.recurring_class_id, event.day)
        selection = SessionSelection(
            date=coerce_date(event.day).isoformat(),
            recurring_class_id=event.recurring_class_id,
            editing_plan_id=plan.id if plan is not None else None,
        )
        return replace(state, selection=selection, prefill=None), []

    if isinstance(event, UseTemplate):
        return replace(state, prefill=dict(event.fields)), []

    if isinstance(event, CancelEdit):
        return replace(state, selection=None, prefill=None), []

    if isinstance(event, PlanSaved):
        return _start_load(replace(state, selection=None, prefill=None))

    if isinstance(event, LoadRequested):
        return _start_load(state)

    if isinstance(event, LoadSucceeded):
        if not _is_current(state, event.generation, event.uid):
            return state, []
        return replace(state, data=event.data, loading=False, load_error=None), []

    if isinstance(event, LoadFailed):
        if not _is_current(state, event.generation, event.uid):
            return state, []
        # Previously loaded collections stay on screen.
        return (
            replace(state, loading=False, load_error=event.message),
            [Notify(level="error", message=LOAD_FAILED_MESSAGE)],
        )

    if isinstance(event, IdentityChanged):
        if event.uid == state.uid:
            return state, []
        cleared = AppState(
            focus_date=state.focus_date,
            uid=event.uid,
            load_generation=state.load_generation + 1,
        )
        return _start_load(cleared)

    raise TypeError(f"Unhandled event: {event!r}")


__all__ = [
    "AppState",
    "CALENDAR_VIEWS",
    "DAY",
    "LoadedData",
    "MONTH",
    "SessionSelection",
    "WEEK",
    "find_plan",
    "reduce",
]
