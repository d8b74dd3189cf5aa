"""Per-user Firestore record store.

All data lives under ``users/{uid}/{collection}``.  The store follows the
identity context through a subscription and refuses to touch Firestore while
nobody is signed in.  Reads of a single missing document return ``None``;
every other failure is the SDK's own exception, logged once and re-raised.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Type, TypeVar

from firebase_admin import firestore
from google.api_core.exceptions import FailedPrecondition
from google.cloud.firestore_v1 import FieldFilter

from .errors import DuplicateLessonPlanError, UnauthenticatedError, ValidationError
from .legacy_schedule import build_grid, slot_id
from .models import (
    Break,
    Lesson,
    LessonPlan,
    Profile,
    RecurringClass,
    Template,
    iso_date,
)
from .school_year import DEFAULT_TEMPLATES

_LOG = logging.getLogger(__name__)

USERS_COL = "users"
RECURRING_CLASSES_COL = "recurringClasses"
LESSON_PLANS_COL = "lessonPlans"
TEMPLATES_COL = "templates"
BREAKS_COL = "breaks"
PROFILE_COL = "profile"
PROFILE_DOC = "data"
LESSONS_COL = "lessons"
SCHEDULE_COL = "schedule"

T = TypeVar("T")


def _logged(action: str) -> Callable:
    """Log provider failures for ``action`` before letting them propagate."""

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(self: "RecordStore", *args: Any, **kwargs: Any) -> Any:
            try:
                return func(self, *args, **kwargs)
            except (UnauthenticatedError, DuplicateLessonPlanError, ValidationError):
                raise
            except Exception:
                self.logger.exception("Error %s", action)
                raise

        return wrapper

    return decorator


class RecordStore:
    """Typed CRUD over the signed-in user's collections."""

    def __init__(self, db_getter: Callable[[], Any], identity: Any = None, *, logger: Any = _LOG):
        self._db_getter = db_getter
        self.logger = logger
        self.user_id: Optional[str] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        if identity is not None:
            self._unsubscribe = identity.subscribe(self._on_identity_change)

    def _on_identity_change(self, user: Any) -> None:
        self.user_id = getattr(user, "uid", None) or None

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    # ------------------------------------------------------------------
    # References
    # ------------------------------------------------------------------
    def _user_root(self):
        if not self.user_id:
            raise UnauthenticatedError()
        return self._db_getter().collection(USERS_COL).document(self.user_id)

    def user_collection(self, name: str):
        return self._user_root().collection(name)

    def user_doc(self, name: str, doc_id: str):
        return self._user_root().collection(name).document(doc_id)

    # ------------------------------------------------------------------
    # Generic helpers
    # ------------------------------------------------------------------
    def _parse_all(self, cls: Type[T], snapshots: Iterable[Any]) -> List[T]:
        items: List[T] = []
        for snap in snapshots:
            try:
                items.append(cls.from_doc(snap.id, snap.to_dict() or {}))  # type: ignore[attr-defined]
            except ValidationError as exc:
                self.logger.warning("Skipping malformed %s document %s: %s", cls.__name__, snap.id, exc)
        return items

    def _get_one(self, cls: Type[T], collection: str, doc_id: str) -> Optional[T]:
        if not doc_id:
            return None
        snap = self.user_doc(collection, doc_id).get()
        if not getattr(snap, "exists", False):
            return None
        return cls.from_doc(snap.id, snap.to_dict() or {})  # type: ignore[attr-defined]

    def _create(self, collection: str, payload: Dict[str, Any], *, stamp_updated: bool = True) -> str:
        ref = self.user_collection(collection).document()
        stamps = {"createdAt": firestore.SERVER_TIMESTAMP}
        if stamp_updated:
            stamps["updatedAt"] = firestore.SERVER_TIMESTAMP
        ref.set({**payload, **stamps})
        return ref.id

    def _update(self, collection: str, doc_id: str, payload: Dict[str, Any], *, stamp_updated: bool = True) -> None:
        data = dict(payload)
        if stamp_updated:
            data["updatedAt"] = firestore.SERVER_TIMESTAMP
        self.user_doc(collection, doc_id).update(data)

    def _delete(self, collection: str, doc_id: str) -> None:
        self.user_doc(collection, doc_id).delete()

    def _ordered(self, collection: str, field: str, *, descending: bool = False) -> List[Any]:
        """Stream ``collection`` ordered by ``field``; sort locally without an index."""

        query = self.user_collection(collection)
        direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
        try:
            return list(query.order_by(field, direction=direction).stream())
        except FailedPrecondition:
            self.logger.warning("Missing index for %s ordered by %s; sorting locally", collection, field)
            snapshots = list(query.stream())
            snapshots.sort(key=lambda s: str((s.to_dict() or {}).get(field) or ""), reverse=descending)
            return snapshots

    def _where(self, collection: str, **equals: Any) -> List[Any]:
        query = self.user_collection(collection)
        for field, value in equals.items():
            query = query.where(filter=FieldFilter(field, "==", value))
        return list(query.stream())

    # ------------------------------------------------------------------
    # Recurring classes
    # ------------------------------------------------------------------
    @_logged("creating recurring class")
    def create_recurring_class(self, rc: RecurringClass) -> RecurringClass:
        doc_id = self._create(RECURRING_CLASSES_COL, rc.to_doc())
        return replace(rc, id=doc_id, time=rc.to_doc()["time"])

    @_logged("updating recurring class")
    def update_recurring_class(self, rc: RecurringClass) -> RecurringClass:
        payload = rc.to_doc()
        self._update(RECURRING_CLASSES_COL, rc.id, payload)
        return replace(rc, time=payload["time"])

    @_logged("deleting recurring class")
    def delete_recurring_class(self, class_id: str) -> None:
        """Delete the class only; lesson plans referencing it are kept."""

        self._delete(RECURRING_CLASSES_COL, class_id)

    @_logged("getting recurring classes")
    def get_recurring_classes(self) -> List[RecurringClass]:
        return self._parse_all(RecurringClass, self.user_collection(RECURRING_CLASSES_COL).stream())

    @_logged("getting recurring class")
    def get_recurring_class(self, class_id: str) -> Optional[RecurringClass]:
        return self._get_one(RecurringClass, RECURRING_CLASSES_COL, class_id)

    # ------------------------------------------------------------------
    # Lesson plans
    # ------------------------------------------------------------------
    def _plans_for_slot(self, recurring_class_id: str, day: Any) -> List[LessonPlan]:
        return self._parse_all(
            LessonPlan,
            self._where(LESSON_PLANS_COL, recurringClassId=recurring_class_id, date=iso_date(day)),
        )

    def _check_unique_plan(self, plan: LessonPlan, *, ignore_id: str = "") -> None:
        for existing in self._plans_for_slot(plan.recurring_class_id, plan.date):
            if existing.id != ignore_id:
                raise DuplicateLessonPlanError(plan.recurring_class_id, iso_date(plan.date), existing.id)

    @_logged("creating lesson plan")
    def create_lesson_plan(self, plan: LessonPlan) -> LessonPlan:
        """Create ``plan``; each (class, date) pair may hold only one plan."""

        payload = plan.to_doc()
        self._check_unique_plan(plan)
        doc_id = self._create(LESSON_PLANS_COL, payload)
        return replace(plan, id=doc_id, date=payload["date"])

    @_logged("updating lesson plan")
    def update_lesson_plan(self, plan: LessonPlan) -> LessonPlan:
        payload = plan.to_doc()
        self._check_unique_plan(plan, ignore_id=plan.id)
        self._update(LESSON_PLANS_COL, plan.id, payload)
        return replace(plan, date=payload["date"])

    @_logged("deleting lesson plan")
    def delete_lesson_plan(self, plan_id: str) -> None:
        self._delete(LESSON_PLANS_COL, plan_id)

    @_logged("getting lesson plans")
    def get_lesson_plans(self) -> List[LessonPlan]:
        """All plans, newest date first."""

        return self._parse_all(LessonPlan, self._ordered(LESSON_PLANS_COL, "date", descending=True))

    @_logged("getting lesson plan")
    def get_lesson_plan(self, plan_id: str) -> Optional[LessonPlan]:
        return self._get_one(LessonPlan, LESSON_PLANS_COL, plan_id)

    @_logged("getting lesson plans by date")
    def get_lesson_plans_by_date(self, day: Any) -> List[LessonPlan]:
        return self._parse_all(LessonPlan, self._where(LESSON_PLANS_COL, date=iso_date(day)))

    @_logged("finding lesson plan")
    def find_lesson_plan(self, recurring_class_id: str, day: Any) -> Optional[LessonPlan]:
        matches = self._plans_for_slot(recurring_class_id, day)
        return matches[0] if matches else None

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------
    @_logged("creating template")
    def create_template(self, template: Template) -> Template:
        doc_id = self._create(TEMPLATES_COL, template.to_doc(), stamp_updated=False)
        return replace(template, id=doc_id)

    @_logged("updating template")
    def update_template(self, template: Template) -> Template:
        self._update(TEMPLATES_COL, template.id, template.to_doc(), stamp_updated=False)
        return template

    @_logged("deleting template")
    def delete_template(self, template_id: str) -> None:
        self._delete(TEMPLATES_COL, template_id)

    @_logged("getting templates")
    def get_templates(self) -> List[Template]:
        return self._parse_all(Template, self.user_collection(TEMPLATES_COL).stream())

    def seed_default_templates(self) -> List[Template]:
        """Create the starter templates for a freshly registered account."""

        return [
            self.create_template(Template.from_doc("", data))
            for data in DEFAULT_TEMPLATES
        ]

    # ------------------------------------------------------------------
    # Breaks
    # ------------------------------------------------------------------
    @_logged("creating break")
    def create_break(self, brk: Break) -> Break:
        payload = brk.to_doc()
        doc_id = self._create(BREAKS_COL, payload, stamp_updated=False)
        return replace(brk, id=doc_id, start_date=payload["startDate"], end_date=payload["endDate"])

    @_logged("deleting break")
    def delete_break(self, break_id: str) -> None:
        self._delete(BREAKS_COL, break_id)

    @_logged("getting breaks")
    def get_breaks(self) -> List[Break]:
        return self._parse_all(Break, self.user_collection(BREAKS_COL).stream())

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------
    @_logged("getting profile")
    def get_user_profile(self) -> Optional[Profile]:
        snap = self.user_doc(PROFILE_COL, PROFILE_DOC).get()
        if not getattr(snap, "exists", False):
            return None
        return Profile.from_doc(snap.to_dict() or {})

    @_logged("updating profile")
    def update_user_profile(self, profile_data: Mapping[str, Any]) -> None:
        """Merge ``profile_data`` (stored field names) into the profile document."""

        self._update(PROFILE_COL, PROFILE_DOC, dict(profile_data))

    @_logged("creating profile")
    def create_user_profile(self, profile: Profile) -> None:
        self.user_doc(PROFILE_COL, PROFILE_DOC).set(
            {**profile.to_doc(), "createdAt": firestore.SERVER_TIMESTAMP}
        )

    # ------------------------------------------------------------------
    # Legacy lessons and fixed-grid schedule
    # ------------------------------------------------------------------
    @_logged("creating lesson")
    def create_lesson(self, lesson: Lesson) -> Lesson:
        payload = lesson.to_doc()
        doc_id = self._create(LESSONS_COL, payload)
        return replace(lesson, id=doc_id, date=payload["date"])

    @_logged("updating lesson")
    def update_lesson(self, lesson: Lesson) -> Lesson:
        payload = lesson.to_doc()
        self._update(LESSONS_COL, lesson.id, payload)
        return replace(lesson, date=payload["date"])

    @_logged("deleting lesson")
    def delete_lesson(self, lesson_id: str) -> None:
        self._delete(LESSONS_COL, lesson_id)

    @_logged("getting lessons")
    def get_lessons(self) -> List[Lesson]:
        return self._parse_all(Lesson, self._ordered(LESSONS_COL, "date", descending=True))

    @_logged("getting lesson")
    def get_lesson(self, lesson_id: str) -> Optional[Lesson]:
        return self._get_one(Lesson, LESSONS_COL, lesson_id)

    @_logged("getting lessons by date")
    def get_lessons_by_date(self, day: Any) -> List[Lesson]:
        return self._parse_all(Lesson, self._where(LESSONS_COL, date=iso_date(day)))

    @_logged("saving schedule slot")
    def save_schedule_slot(self, day: int, time_slot: int, lesson_id: Optional[str]) -> None:
        """Place ``lesson_id`` in the grid cell; a falsy id clears the cell."""

        ref = self.user_collection(SCHEDULE_COL).document(slot_id(day, time_slot))
        if lesson_id:
            ref.set(
                {
                    "day": int(day),
                    "timeSlot": int(time_slot),
                    "lessonId": lesson_id,
                    "updatedAt": firestore.SERVER_TIMESTAMP,
                }
            )
        else:
            ref.delete()

    @_logged("getting schedule")
    def get_schedule(self) -> List[List[Optional[Lesson]]]:
        slots = [snap.to_dict() or {} for snap in self.user_collection(SCHEDULE_COL).stream()]
        lessons = {lesson.id: lesson for lesson in self.get_lessons()} if slots else {}
        return build_grid(slots, lessons)


__all__ = [
    "BREAKS_COL",
    "LESSON_PLANS_COL",
    "LESSONS_COL",
    "PROFILE_COL",
    "RECURRING_CLASSES_COL",
    "RecordStore",
    "SCHEDULE_COL",
    "TEMPLATES_COL",
]
