"""HTML snippets for planner view-models.

Everything a user typed (class names, plan text, template and break names)
goes through :func:`esc` before it reaches markup.  The snippets are passed to
``st.markdown(..., unsafe_allow_html=True)`` by the UI modules.
"""

from __future__ import annotations

import html
from typing import Any, Iterable, List, Optional

from .models import Break, LessonPlan, RecurringClass, Session, Template
from .session_resolution import DayDetail, DaySummary, MonthView

WEEKDAY_HEADERS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

PLAN_SECTIONS = (
    ("objectives", "Objectives"),
    ("materials", "Materials"),
    ("activities", "Activities"),
    ("homework", "Homework"),
    ("notes", "Notes"),
)

PLANNER_CSS = """
<style>
  .pl-month { width:100%; border-collapse:collapse; table-layout:fixed; }
  .pl-month th { padding:6px; font-weight:700; color:#334155; text-align:center; }
  .pl-month td { height:78px; vertical-align:top; padding:6px;
                 border:1px solid rgba(148,163,184,.35); }
  .pl-month td.pl-weekend { background:#f8fafc; }
  .pl-month td.pl-break { background:#fff7ed; }
  .pl-month td.pl-today { outline:2px solid #0f766e; }
  .pl-day-number { font-weight:700; }
  .pl-count { font-size:.82rem; color:#0f766e; }
  .pl-count.pl-none { color:#b91c1c; }
  .pl-break-name { font-size:.78rem; color:#9a3412; }
  .pl-card { border:1px solid rgba(148,163,184,.35); border-radius:12px;
             padding:10px 12px; margin:6px 0; background:#fff; }
  .pl-card h4 { margin:0 0 4px 0; font-size:1rem; color:#0f172a; }
  .pl-card .pl-sub { color:#475569; font-size:.9rem; }
  .pl-pill { display:inline-block; padding:2px 8px; border-radius:999px;
             font-weight:700; font-size:.8rem; }
  .pl-planned { background:#e6ffed; color:#0a7f33; }
  .pl-unplanned { background:#fef2f2; color:#991b1b; }
</style>
"""


def esc(value: Any) -> str:
    """Escape ``value`` for HTML text and attribute context."""

    return html.escape("" if value is None else str(value), quote=True)


def esc_multiline(value: Any) -> str:
    return "<br>".join(esc(line) for line in str(value or "").splitlines())


def render_day_cell(summary: DaySummary, *, today: Optional[Any] = None) -> str:
    classes = []
    if summary.is_weekend:
        classes.append("pl-weekend")
    if summary.break_name:
        classes.append("pl-break")
    if today is not None and summary.date == today:
        classes.append("pl-today")
    parts = [f'<div class="pl-day-number">{summary.date.day}</div>']
    if summary.session_count:
        none_cls = " pl-none" if summary.planned_count == 0 else ""
        parts.append(f'<div class="pl-count{none_cls}">{esc(summary.label)}</div>')
    if summary.break_name:
        parts.append(f'<div class="pl-break-name">{esc(summary.break_name)}</div>')
    cls_attr = f' class="{" ".join(classes)}"' if classes else ""
    return f"<td{cls_attr}>{''.join(parts)}</td>"


def render_month_grid(view: MonthView, *, today: Optional[Any] = None) -> str:
    """Monday-first month table annotated with "X/Y planned" counts."""

    head = "".join(f"<th>{name}</th>" for name in WEEKDAY_HEADERS)
    rows: List[str] = []
    for week in view.weeks():
        cells = "".join(
            render_day_cell(day, today=today) if day is not None else "<td></td>"
            for day in week
        )
        rows.append(f"<tr>{cells}</tr>")
    return f'<table class="pl-month"><thead><tr>{head}</tr></thead><tbody>{"".join(rows)}</tbody></table>'


def class_meta(rc: RecurringClass) -> str:
    bits = [rc.time, f"{rc.duration} min", rc.subject]
    if rc.location:
        bits.append(rc.location)
    return " • ".join(esc(b) for b in bits if b)


def render_session_card(session: Session, *, show_plan: bool = False) -> str:
    rc = session.recurring_class
    if session.is_planned:
        pill = '<span class="pl-pill pl-planned">Planned</span>'
    else:
        pill = '<span class="pl-pill pl-unplanned">Not planned</span>'
    body = [f"<h4>{esc(rc.name)} {pill}</h4>", f'<div class="pl-sub">{class_meta(rc)}</div>']
    if session.lesson_plan is not None:
        body.append(f'<div class="pl-sub"><b>{esc(session.lesson_plan.title)}</b></div>')
        if show_plan:
            body.append(render_plan_sections(session.lesson_plan))
    return f'<div class="pl-card">{"".join(body)}</div>'


def render_plan_sections(plan: LessonPlan) -> str:
    sections = []
    for attr, label in PLAN_SECTIONS:
        text = getattr(plan, attr, "")
        if text:
            sections.append(f"<p><b>{label}:</b><br>{esc_multiline(text)}</p>")
    return "".join(sections)


def render_day_header(detail: DayDetail) -> str:
    planned = len(detail.planned)
    total = len(detail.sessions)
    title = f"{detail.weekday_name}, {detail.date.isoformat()}"
    sub = f"{planned}/{total} planned" if total else "No classes scheduled"
    if detail.break_name:
        sub += f" • {esc(detail.break_name)}"
    return f'<div class="pl-card"><h4>{esc(title)}</h4><div class="pl-sub">{sub}</div></div>'


def render_template_card(template: Template) -> str:
    return (
        '<div class="pl-card">'
        f"<h4>{esc(template.name)}</h4>"
        f'<div class="pl-sub">{esc(template.description)}</div>'
        f'<div class="pl-sub">{esc(template.subject)} • {esc(template.duration)} min</div>'
        "</div>"
    )


def render_break_item(brk: Break) -> str:
    return (
        '<div class="pl-card">'
        f"<h4>{esc(brk.name)}</h4>"
        f'<div class="pl-sub">{esc(brk.start_date)} to {esc(brk.end_date)}</div>'
        "</div>"
    )


def render_break_list(breaks: Iterable[Break]) -> str:
    return "".join(render_break_item(b) for b in breaks)


__all__ = [
    "PLANNER_CSS",
    "class_meta",
    "esc",
    "esc_multiline",
    "render_break_item",
    "render_break_list",
    "render_day_cell",
    "render_day_header",
    "render_month_grid",
    "render_plan_sections",
    "render_session_card",
    "render_template_card",
]
