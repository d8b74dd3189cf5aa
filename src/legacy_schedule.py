"""Legacy lesson + fixed weekly grid schema.

Before recurring classes existed, lessons were free-standing documents and
the week was a fixed grid of six periods by five weekdays, each cell pointing
at one lesson id.  The schema is kept as-is and versioned separately from the
recurring-class model; nothing here reads or writes recurring classes or
lesson plans.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Iterable, List, Mapping, Optional

from .models import Lesson, Template

SCHEMA_VERSION = 1

PERIOD_LABELS = ("8:00 AM", "9:00 AM", "10:00 AM", "11:00 AM", "1:00 PM", "2:00 PM")
GRID_DAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday")

Grid = List[List[Optional[Lesson]]]


def slot_id(day: int, time_slot: int) -> str:
    """Document id of a grid cell, e.g. ``"2-3"`` for Wednesday, fourth period."""

    day, time_slot = int(day), int(time_slot)
    if not 0 <= day < len(GRID_DAYS):
        raise ValueError(f"day must be 0..{len(GRID_DAYS) - 1} (got {day})")
    if not 0 <= time_slot < len(PERIOD_LABELS):
        raise ValueError(f"time slot must be 0..{len(PERIOD_LABELS) - 1} (got {time_slot})")
    return f"{day}-{time_slot}"


def empty_grid() -> Grid:
    return [[None] * len(GRID_DAYS) for _ in PERIOD_LABELS]


def build_grid(slots: Iterable[Mapping[str, Any]], lessons: Mapping[str, Lesson]) -> Grid:
    """Place lessons into a periods × weekdays grid.

    Slots pointing at lessons that no longer exist, or at cells outside the
    grid, are left empty.
    """

    grid = empty_grid()
    for slot in slots:
        try:
            day = int(slot.get("day"))
            time_slot = int(slot.get("timeSlot"))
        except (TypeError, ValueError):
            continue
        if not (0 <= time_slot < len(PERIOD_LABELS) and 0 <= day < len(GRID_DAYS)):
            continue
        lesson = lessons.get(str(slot.get("lessonId") or ""))
        if lesson is not None:
            grid[time_slot][day] = lesson
    return grid


def copy_lesson(lesson: Lesson) -> Lesson:
    """Duplicate ``lesson`` without an id or date so it can be rescheduled."""

    return replace(lesson, id="", title=f"{lesson.title} (Copy)", date="")


def lesson_from_template(template: Template) -> Lesson:
    return Lesson(
        id="",
        title="",
        subject=template.subject,
        duration=template.duration,
        activities=template.structure,
    )


def grid_lesson_count(grid: Grid) -> int:
    return sum(1 for row in grid for cell in row if cell is not None)


__all__ = [
    "GRID_DAYS",
    "Grid",
    "PERIOD_LABELS",
    "SCHEMA_VERSION",
    "build_grid",
    "copy_lesson",
    "empty_grid",
    "grid_lesson_count",
    "lesson_from_template",
    "slot_id",
]

