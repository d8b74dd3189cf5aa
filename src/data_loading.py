"""Bulk loading of the signed-in user's planner collections."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, Optional

from .app_state import LoadAll, LoadedData, LoadFailed, LoadSucceeded
from .config import load_workers

_LOG = logging.getLogger(__name__)


def load_all(store: Any, *, workers: Optional[int] = None) -> LoadedData:
    """Read the four planner collections concurrently.

    All reads are awaited before anything is returned; if any of them fails
    its exception is raised and the partial results are discarded.
    """

    readers: Dict[str, Callable[[], Any]] = {
        "recurring_classes": store.get_recurring_classes,
        "lesson_plans": store.get_lesson_plans,
        "templates": store.get_templates,
        "breaks": store.get_breaks,
    }
    with ThreadPoolExecutor(max_workers=workers or load_workers(), thread_name_prefix="plany-load") as pool:
        futures = {name: pool.submit(reader) for name, reader in readers.items()}
        results = {name: tuple(future.result()) for name, future in futures.items()}
    return LoadedData(**results)


def run_load(store: Any, effect: LoadAll, *, logger: Any = _LOG):
    """Execute a :class:`LoadAll` effect and return the resulting event."""

    try:
        data = load_all(store)
    except Exception as exc:
        logger.exception("Error loading data for generation %s", effect.generation)
        return LoadFailed(generation=effect.generation, uid=effect.uid, message=str(exc))
    return LoadSucceeded(generation=effect.generation, uid=effect.uid, data=data)


__all__ = ["load_all", "run_load"]
