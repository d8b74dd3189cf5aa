"""Entity dataclasses and their Firestore representation.

Firestore documents use the camelCase field names of the stored schema
(``recurringClassId``, ``startDate`` ...).  The dataclasses expose snake_case
attributes and convert in :meth:`from_doc` / :meth:`to_doc`.  Document ids are
never part of the stored payload.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional

from .errors import ValidationError

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
TEACHING_DAYS = range(0, 5)

_TIME_RE = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")


def coerce_date(value: Any) -> date:
    """Return ``value`` as a :class:`datetime.date`.

    Accepts ``date``/``datetime`` objects and ISO ``YYYY-MM-DD`` strings.
    """

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value or "").strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError as exc:
        raise ValidationError(f"Invalid date: {value!r}") from exc


def iso_date(value: Any) -> str:
    """Return the ISO ``YYYY-MM-DD`` form of ``value``; blank stays blank."""

    if value in (None, ""):
        return ""
    return coerce_date(value).isoformat()


def normalize_time(value: Any) -> str:
    """Return ``value`` as zero-padded ``HH:MM`` or raise ``ValidationError``."""

    match = _TIME_RE.match(str(value or "").strip())
    if not match:
        raise ValidationError(f"Time must look like HH:MM (got {value!r})")
    return f"{int(match.group(1)):02d}:{match.group(2)}"


def time_to_minutes(value: str) -> int:
    """Minutes after midnight for an ``H:MM`` / ``HH:MM`` string."""

    match = _TIME_RE.match(str(value or "").strip())
    if not match:
        raise ValidationError(f"Time must look like HH:MM (got {value!r})")
    return int(match.group(1)) * 60 + int(match.group(2))


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _str(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    return "" if value is None else str(value)


@dataclass(frozen=True)
class RecurringClass:
    """A weekly-recurring teaching slot (one row per weekly occurrence)."""

    id: str
    name: str
    subject: str
    day: int
    time: str
    duration: int = 45
    location: Optional[str] = None

    def __post_init__(self) -> None:
        if self.day not in TEACHING_DAYS:
            raise ValidationError(
                f"Recurring classes run Monday (0) to Friday (4); got day={self.day!r}"
            )

    @property
    def day_name(self) -> str:
        return WEEKDAY_NAMES[self.day]

    @classmethod
    def from_doc(cls, doc_id: str, data: Mapping[str, Any]) -> "RecurringClass":
        location = data.get("location")
        return cls(
            id=doc_id,
            name=_str(data, "name"),
            subject=_str(data, "subject"),
            day=_int(data.get("day"), -1),
            time=_str(data, "time"),
            duration=_int(data.get("duration"), 45),
            location=str(location) if location else None,
        )

    def to_doc(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "subject": self.subject,
            "day": self.day,
            "time": normalize_time(self.time),
            "duration": int(self.duration),
            "location": self.location or None,
        }


@dataclass(frozen=True)
class LessonPlan:
    """The content prepared for one calendar occurrence of a recurring class."""

    id: str
    date: str
    recurring_class_id: str
    class_name: str = ""
    subject: str = ""
    title: str = ""
    objectives: str = ""
    materials: str = ""
    activities: str = ""
    homework: str = ""
    notes: str = ""

    @classmethod
    def from_doc(cls, doc_id: str, data: Mapping[str, Any]) -> "LessonPlan":
        return cls(
            id=doc_id,
            date=_str(data, "date"),
            recurring_class_id=_str(data, "recurringClassId"),
            class_name=_str(data, "className"),
            subject=_str(data, "subject"),
            title=_str(data, "title"),
            objectives=_str(data, "objectives"),
            materials=_str(data, "materials"),
            activities=_str(data, "activities"),
            homework=_str(data, "homework"),
            notes=_str(data, "notes"),
        )

    def to_doc(self) -> Dict[str, Any]:
        return {
            "date": iso_date(self.date),
            "recurringClassId": self.recurring_class_id,
            "className": self.class_name,
            "subject": self.subject,
            "title": self.title,
            "objectives": self.objectives,
            "materials": self.materials,
            "activities": self.activities,
            "homework": self.homework,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class Session:
    """A recurring class occurring on ``date`` plus its plan, if one exists."""

    date: str
    recurring_class: RecurringClass
    lesson_plan: Optional[LessonPlan] = None

    @property
    def is_planned(self) -> bool:
        return self.lesson_plan is not None


@dataclass(frozen=True)
class Template:
    id: str
    name: str
    description: str = ""
    subject: str = "General"
    duration: int = 45
    structure: str = ""

    @classmethod
    def from_doc(cls, doc_id: str, data: Mapping[str, Any]) -> "Template":
        return cls(
            id=doc_id,
            name=_str(data, "name"),
            description=_str(data, "description"),
            subject=_str(data, "subject") or "General",
            duration=_int(data.get("duration"), 45),
            structure=_str(data, "structure"),
        )

    def to_doc(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "subject": self.subject or "General",
            "duration": int(self.duration),
            "structure": self.structure,
        }


@dataclass(frozen=True)
class Break:
    """A non-teaching date range (inclusive on both ends)."""

    id: str
    name: str
    start_date: str
    end_date: str

    def covers(self, day: Any) -> bool:
        target = coerce_date(day)
        return coerce_date(self.start_date) <= target <= coerce_date(self.end_date)

    @classmethod
    def from_doc(cls, doc_id: str, data: Mapping[str, Any]) -> "Break":
        return cls(
            id=doc_id,
            name=_str(data, "name"),
            start_date=_str(data, "startDate"),
            end_date=_str(data, "endDate"),
        )

    def to_doc(self) -> Dict[str, Any]:
        start, end = iso_date(self.start_date), iso_date(self.end_date)
        if start and end and end < start:
            raise ValidationError("A break cannot end before it starts")
        return {"name": self.name, "startDate": start, "endDate": end}


@dataclass(frozen=True)
class SchoolYear:
    start: str
    end: str


@dataclass(frozen=True)
class Profile:
    """Per-user settings singleton stored at ``profile/data``."""

    school_year: SchoolYear
    periods_per_day: int = 6
    minutes_per_period: int = 45
    selected_year: str = ""
    name: str = ""
    email: str = ""

    @classmethod
    def from_doc(cls, data: Mapping[str, Any]) -> "Profile":
        year = data.get("schoolYear") or {}
        return cls(
            school_year=SchoolYear(start=_str(year, "start"), end=_str(year, "end")),
            periods_per_day=_int(data.get("periodsPerDay"), 6),
            minutes_per_period=_int(data.get("minutesPerPeriod"), 45),
            selected_year=_str(data, "selectedYear"),
            name=_str(data, "name"),
            email=_str(data, "email"),
        )

    def to_doc(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "schoolYear": {"start": self.school_year.start, "end": self.school_year.end},
            "periodsPerDay": int(self.periods_per_day),
            "minutesPerPeriod": int(self.minutes_per_period),
        }
        if self.selected_year:
            payload["selectedYear"] = self.selected_year
        if self.name:
            payload["name"] = self.name
        if self.email:
            payload["email"] = self.email
        return payload


@dataclass(frozen=True)
class Lesson:
    """Legacy free-standing lesson (pre recurring-class schema)."""

    id: str
    title: str
    subject: str = ""
    date: str = ""
    duration: int = 45
    objectives: str = ""
    materials: str = ""
    activities: str = ""

    @classmethod
    def from_doc(cls, doc_id: str, data: Mapping[str, Any]) -> "Lesson":
        return cls(
            id=doc_id,
            title=_str(data, "title"),
            subject=_str(data, "subject"),
            date=_str(data, "date"),
            duration=_int(data.get("duration"), 45),
            objectives=_str(data, "objectives"),
            materials=_str(data, "materials"),
            activities=_str(data, "activities"),
        )

    def to_doc(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "subject": self.subject,
            "date": iso_date(self.date),
            "duration": int(self.duration),
            "objectives": self.objectives,
            "materials": self.materials,
            "activities": self.activities,
        }


@dataclass
class User:
    """The signed-in identity as reported by the provider."""

    uid: str
    email: str
    display_name: Optional[str] = None
    id_token: str = field(default="", repr=False)
    refresh_token: str = field(default="", repr=False)
    profile: Optional[Profile] = None

    @property
    def label(self) -> str:
        return self.display_name or self.email


__all__ = [
    "Break",
    "Lesson",
    "LessonPlan",
    "Profile",
    "RecurringClass",
    "SchoolYear",
    "Session",
    "Template",
    "User",
    "WEEKDAY_NAMES",
    "coerce_date",
    "iso_date",
    "normalize_time",
    "time_to_minutes",
]
