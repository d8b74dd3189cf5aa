"""School-year defaults, break lookups and starter templates."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .models import Break, Profile, Template, coerce_date

# Profile written for every newly registered account.
DEFAULT_PROFILE: Dict[str, Any] = {
    "schoolYear": {"start": "2024-09-01", "end": "2025-06-15"},
    "periodsPerDay": 6,
    "minutesPerPeriod": 45,
}

# Typical US school year: mid-August to early June.
YEAR_START_MONTH_DAY = "08-18"
YEAR_END_MONTH_DAY = "06-12"

DEFAULT_TEMPLATES: Tuple[Dict[str, Any], ...] = (
    {
        "name": "Standard Lecture",
        "description": "Traditional lecture format with Q&A",
        "subject": "General",
        "duration": 45,
        "structure": "Introduction (5min)\nMain Content (30min)\nDiscussion (10min)",
    },
    {
        "name": "Interactive Workshop",
        "description": "Hands-on learning activities",
        "subject": "General",
        "duration": 60,
        "structure": "Brief Intro (5min)\nGroup Activity (40min)\nReflection (15min)",
    },
    {
        "name": "Lab Experiment",
        "description": "Science lab format",
        "subject": "Science",
        "duration": 90,
        "structure": "Safety & Setup (10min)\nExperiment (60min)\nCleanup & Conclusion (20min)",
    },
)


def default_profile(name: str, email: str) -> Profile:
    return Profile.from_doc({**DEFAULT_PROFILE, "name": name, "email": email})


def school_year_label(start_year: int) -> str:
    return f"{start_year}-{start_year + 1}"


def current_school_year(today: Optional[date] = None) -> str:
    """Label of the school year containing ``today`` (years roll over in August)."""

    today = today or date.today()
    start_year = today.year if today.month >= 8 else today.year - 1
    return school_year_label(start_year)


def school_year_options(today: Optional[date] = None, *, before: int = 1, after: int = 2) -> List[str]:
    """Selectable ``YYYY-YYYY`` labels around the current school year."""

    current = int(current_school_year(today).split("-")[0])
    return [school_year_label(y) for y in range(current - before, current + after + 1)]


def default_school_year_dates(selected_year: str) -> Tuple[str, str]:
    """Return ``(start, end)`` ISO dates for a ``"2024-2025"`` style label."""

    try:
        start_year, end_year = (int(part) for part in str(selected_year).split("-"))
    except ValueError as exc:
        raise ValueError(f"School year must look like 2024-2025 (got {selected_year!r})") from exc
    return (
        f"{start_year:04d}-{YEAR_START_MONTH_DAY}",
        f"{end_year:04d}-{YEAR_END_MONTH_DAY}",
    )


def break_for_date(day: Any, breaks: Iterable[Break]) -> Optional[Break]:
    """Return the first break covering ``day``, if any."""

    target = coerce_date(day)
    for brk in breaks:
        try:
            if brk.covers(target):
                return brk
        except ValueError:
            # Breaks with unparsable dates never cover anything.
            continue
    return None


def template_to_plan_fields(template: Template) -> Dict[str, str]:
    """Form fields pre-filled when a template is used for a new plan."""

    return {"activities": template.structure}


__all__ = [
    "DEFAULT_PROFILE",
    "DEFAULT_TEMPLATES",
    "break_for_date",
    "current_school_year",
    "default_profile",
    "default_school_year_dates",
    "school_year_label",
    "school_year_options",
    "template_to_plan_fields",
]
