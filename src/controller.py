"""The single owner of planner state for one browser session."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, List, Optional

import streamlit as st

from plany.sessions import FirebaseAuthClient, get_db

from .app_state import (
    AppState,
    Effect,
    Event,
    IdentityChanged,
    LoadAll,
    LoadRequested,
    Notify,
    PlanSaved,
    reduce,
)
from .config import firebase_api_key, get_cookie_manager
from .data_loading import run_load
from .identity import IdentityContext
from .models import LessonPlan
from .record_store import RecordStore
from .utils.toasts import toast_err, toast_info, toast_ok, toast_warn

_LOG = logging.getLogger(__name__)

_TOASTS = {"error": toast_err, "warning": toast_warn, "success": toast_ok, "info": toast_info}


def toast_notifier(level: str, message: str) -> None:
    _TOASTS.get(level, toast_info)(message)


class PlannerController:
    """Dispatches events through :func:`reduce` and runs the effects it returns."""

    def __init__(
        self,
        identity: Any,
        store: Any,
        *,
        notifier: Callable[[str, str], None] = toast_notifier,
        loader: Callable[..., Event] = run_load,
        logger: Any = _LOG,
    ) -> None:
        self.identity = identity
        self.store = store
        self.notifier = notifier
        self.loader = loader
        self.logger = logger
        self.state = AppState()
        self._unsubscribe = identity.subscribe(self._on_identity_change)

    def _on_identity_change(self, user: Any) -> None:
        self.dispatch(IdentityChanged(uid=getattr(user, "uid", None) or None))

    def dispatch(self, event: Event) -> AppState:
        self.state, effects = reduce(self.state, event)
        self._run_effects(effects)
        return self.state

    def _run_effects(self, effects: List[Effect]) -> None:
        for effect in effects:
            if isinstance(effect, LoadAll):
                self.dispatch(self.loader(self.store, effect))
            elif isinstance(effect, Notify):
                self.notifier(effect.level, effect.message)

    def reload(self) -> AppState:
        return self.dispatch(LoadRequested())

    def save_plan(self, plan: LessonPlan) -> LessonPlan:
        """Create or update ``plan`` depending on the open selection, then reload."""

        selection = self.state.selection
        if selection is not None and selection.editing_plan_id:
            saved = self.store.update_lesson_plan(replace(plan, id=selection.editing_plan_id))
        else:
            saved = self.store.create_lesson_plan(plan)
        self.dispatch(PlanSaved())
        return saved

    def delete_plan(self, plan_id: str) -> None:
        self.store.delete_lesson_plan(plan_id)
        self.dispatch(PlanSaved())

    def close(self) -> None:
        self._unsubscribe()


@dataclass
class Planner:
    identity: IdentityContext
    store: RecordStore
    controller: PlannerController


def build_planner(
    *,
    auth_client: Any = None,
    db_getter: Callable[[], Any] = get_db,
    cookies: Any = None,
    notifier: Callable[[str, str], None] = toast_notifier,
) -> Planner:
    """Wire identity, store and controller.

    The store subscribes before the controller so it already knows the uid
    when the controller reacts to a sign-in by loading data.
    """

    if auth_client is None:
        auth_client = FirebaseAuthClient(firebase_api_key())
    identity = IdentityContext(auth_client, db_getter=db_getter, cookies=cookies)
    store = RecordStore(db_getter, identity)
    controller = PlannerController(identity, store, notifier=notifier)
    return Planner(identity=identity, store=store, controller=controller)


def get_planner(*, st_module: Any = st, factory: Optional[Callable[..., Planner]] = None) -> Planner:
    """Return this browser session's :class:`Planner`, creating it on first use."""

    planner = st_module.session_state.get("planner")
    if planner is None:
        factory = factory or (lambda: build_planner(cookies=get_cookie_manager()))
        planner = factory()
        st_module.session_state["planner"] = planner
    return planner


__all__ = ["Planner", "PlannerController", "build_planner", "get_planner", "toast_notifier"]
