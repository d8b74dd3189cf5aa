"""Derive class sessions from the weekly schedule and per-date lesson plans.

A *session* is a recurring class occurring on a concrete date, paired with the
lesson plan written for that date if there is one.  Sessions are never
stored: every view rebuilds them from the two loaded collections, so all
functions here are pure and cannot fail on well-formed input.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .errors import ValidationError
from .models import (
    Break,
    LessonPlan,
    RecurringClass,
    Session,
    WEEKDAY_NAMES,
    coerce_date,
    time_to_minutes,
)
from .school_year import break_for_date


def adjusted_weekday(native: int) -> int:
    """Map a Sunday=0 weekday number onto Monday=0 … Sunday=6."""

    return (int(native) + 6) % 7


def native_weekday(day: date) -> int:
    """Sunday=0 … Saturday=6, the numbering calendar widgets usually use."""

    return day.isoweekday() % 7


def weekday_index(day: Any) -> int:
    """Monday=0 weekday of ``day`` (a ``date`` or ISO string)."""

    return adjusted_weekday(native_weekday(coerce_date(day)))


def _time_key(rc: RecurringClass) -> Tuple[int, str]:
    try:
        return (time_to_minutes(rc.time), rc.time)
    except ValidationError:
        # Unparsable times sort after every valid one.
        return (24 * 60, rc.time)


def sessions_for(
    day: Any,
    recurring_classes: Sequence[RecurringClass],
    lesson_plans: Sequence[LessonPlan],
) -> List[Session]:
    """Return the sessions taking place on ``day`` ordered by start time.

    Every recurring class scheduled on that weekday yields exactly one
    session.  When more than one plan matches a class on that date the first
    one in ``lesson_plans`` wins.
    """

    target = coerce_date(day)
    iso = target.isoformat()
    index = adjusted_weekday(native_weekday(target))

    todays_classes = [rc for rc in recurring_classes if rc.day == index]
    plans_by_class: Dict[str, LessonPlan] = {}
    for plan in lesson_plans:
        if plan.date == iso:
            plans_by_class.setdefault(plan.recurring_class_id, plan)

    sessions = [
        Session(date=iso, recurring_class=rc, lesson_plan=plans_by_class.get(rc.id))
        for rc in todays_classes
    ]
    # sorted() is stable, so classes sharing a start time keep their input order.
    return sorted(sessions, key=lambda s: _time_key(s.recurring_class))


def planned_count(sessions: Sequence[Session]) -> int:
    return sum(1 for s in sessions if s.is_planned)


def week_start(day: Any) -> date:
    """The Monday on or before ``day``."""

    target = coerce_date(day)
    return target - timedelta(days=weekday_index(target))


@dataclass(frozen=True)
class DaySummary:
    """One cell of the month grid."""

    date: date
    session_count: int
    planned_count: int
    break_name: Optional[str] = None

    @property
    def label(self) -> str:
        if not self.session_count:
            return ""
        return f"{self.planned_count}/{self.session_count} planned"

    @property
    def is_weekend(self) -> bool:
        return weekday_index(self.date) >= 5

    @property
    def can_open(self) -> bool:
        return self.session_count > 0


@dataclass(frozen=True)
class MonthView:
    year: int
    month: int
    leading_blanks: int
    days: List[DaySummary]

    @property
    def title(self) -> str:
        return f"{calendar.month_name[self.month]} {self.year}"

    def weeks(self) -> List[List[Optional[DaySummary]]]:
        """Rows of seven cells, Monday first, padded with ``None``."""

        cells: List[Optional[DaySummary]] = [None] * self.leading_blanks + list(self.days)
        cells += [None] * (-len(cells) % 7)
        return [cells[i : i + 7] for i in range(0, len(cells), 7)]


@dataclass(frozen=True)
class DayDetail:
    date: date
    sessions: List[Session]
    break_name: Optional[str] = None

    @property
    def weekday_name(self) -> str:
        return WEEKDAY_NAMES[weekday_index(self.date)]

    @property
    def planned(self) -> List[Session]:
        return [s for s in self.sessions if s.is_planned]

    @property
    def unplanned(self) -> List[Session]:
        return [s for s in self.sessions if not s.is_planned]


def _break_name(day: date, breaks: Sequence[Break]) -> Optional[str]:
    brk = break_for_date(day, breaks)
    return brk.name if brk is not None else None


def month_view(
    year: int,
    month: int,
    recurring_classes: Sequence[RecurringClass],
    lesson_plans: Sequence[LessonPlan],
    breaks: Sequence[Break] = (),
) -> MonthView:
    """Session and planned-session counts for every day of ``year``/``month``."""

    first = date(year, month, 1)
    days_in_month = calendar.monthrange(year, month)[1]
    summaries = []
    for offset in range(days_in_month):
        current = first + timedelta(days=offset)
        sessions = sessions_for(current, recurring_classes, lesson_plans)
        summaries.append(
            DaySummary(
                date=current,
                session_count=len(sessions),
                planned_count=planned_count(sessions),
                break_name=_break_name(current, breaks),
            )
        )
    return MonthView(year=year, month=month, leading_blanks=weekday_index(first), days=summaries)


def day_view(
    day: Any,
    recurring_classes: Sequence[RecurringClass],
    lesson_plans: Sequence[LessonPlan],
    breaks: Sequence[Break] = (),
) -> DayDetail:
    target = coerce_date(day)
    return DayDetail(
        date=target,
        sessions=sessions_for(target, recurring_classes, lesson_plans),
        break_name=_break_name(target, breaks),
    )


def week_view(
    anchor: Any,
    recurring_classes: Sequence[RecurringClass],
    lesson_plans: Sequence[LessonPlan],
    breaks: Sequence[Break] = (),
) -> List[DayDetail]:
    """Seven days of sessions starting from the Monday on/before ``anchor``."""

    monday = week_start(anchor)
    return [
        day_view(monday + timedelta(days=i), recurring_classes, lesson_plans, breaks)
        for i in range(7)
    ]


def orphaned_lesson_plans(
    recurring_classes: Sequence[RecurringClass],
    lesson_plans: Sequence[LessonPlan],
) -> List[LessonPlan]:
    """Plans whose recurring class has been deleted; reachable by date only."""

    known = {rc.id for rc in recurring_classes}
    return [plan for plan in lesson_plans if plan.recurring_class_id not in known]


__all__ = [
    "DayDetail",
    "DaySummary",
    "MonthView",
    "adjusted_weekday",
    "day_view",
    "month_view",
    "native_weekday",
    "orphaned_lesson_plans",
    "planned_count",
    "sessions_for",
    "week_start",
    "week_view",
    "weekday_index",
]
