"""In-memory stand-ins for Firestore, the auth REST client and Streamlit."""

from __future__ import annotations

import contextlib
import itertools
from typing import Any, Dict, List, Optional, Tuple

from google.api_core.exceptions import FailedPrecondition, NotFound

Path = Tuple[str, ...]


class FakeSnapshot:
    def __init__(self, doc_id, data, reference=None):
        self.id = doc_id
        self._data = data
        self.exists = data is not None
        self.reference = reference

    def to_dict(self):
        return dict(self._data) if self._data is not None else None


class FakeDocRef:
    def __init__(self, db: "FakeFirestore", path: Path):
        self._db = db
        self.path = path
        self.id = path[-1]

    def collection(self, name):
        return FakeQuery(self._db, self.path + (name,))

    def get(self):
        self._db.check(self.path[-2])
        self._db.calls.append(("get", self.path))
        return FakeSnapshot(self.id, self._db.docs.get(self.path), self)

    def set(self, data, merge=False):
        self._db.check(self.path[-2])
        self._db.calls.append(("set", self.path))
        if merge and self.path in self._db.docs:
            self._db.docs[self.path].update(data)
        else:
            self._db.docs[self.path] = dict(data)

    def update(self, data):
        self._db.check(self.path[-2])
        self._db.calls.append(("update", self.path))
        if self.path not in self._db.docs:
            raise NotFound(f"No document to update: {'/'.join(self.path)}")
        self._db.docs[self.path].update(data)

    def delete(self):
        self._db.check(self.path[-2])
        self._db.calls.append(("delete", self.path))
        self._db.docs.pop(self.path, None)


class FakeQuery:
    """A collection reference that also supports where/order_by/limit."""

    def __init__(self, db, path, filters=(), order=None, limit_to=None):
        self._db = db
        self.path = path
        self._filters = tuple(filters)
        self._order = order
        self._limit = limit_to

    def document(self, doc_id: Optional[str] = None):
        if doc_id is None:
            doc_id = f"doc{next(self._db.ids)}"
        return FakeDocRef(self._db, self.path + (doc_id,))

    def where(self, *args, filter=None):
        if filter is not None:
            spec = (filter.field_path, filter.op_string, filter.value)
        else:
            spec = tuple(args)
        return FakeQuery(self._db, self.path, self._filters + (spec,), self._order, self._limit)

    def order_by(self, field, direction="ASCENDING"):
        return FakeQuery(self._db, self.path, self._filters, (field, direction), self._limit)

    def limit(self, count):
        return FakeQuery(self._db, self.path, self._filters, self._order, count)

    def stream(self):
        self._db.check(self.path[-1])
        if self._order is not None and self._db.missing_index:
            raise FailedPrecondition("The query requires an index.")
        self._db.calls.append(("stream", self.path))

        snaps: List[FakeSnapshot] = []
        for path, data in self._db.docs.items():
            if len(path) != len(self.path) + 1 or path[:-1] != self.path:
                continue
            if all(op == "==" and data.get(field) == value for field, op, value in self._filters):
                snaps.append(FakeSnapshot(path[-1], data, FakeDocRef(self._db, path)))
        if self._order is not None:
            field, direction = self._order
            snaps.sort(key=lambda s: s.to_dict().get(field) or "", reverse=direction == "DESCENDING")
        if self._limit is not None:
            snaps = snaps[: self._limit]
        return iter(snaps)


class FakeFirestore:
    def __init__(self):
        self.docs: Dict[Path, Dict[str, Any]] = {}
        self.ids = itertools.count(1)
        self.calls: List[Tuple[str, Path]] = []
        self.fail_on: set = set()
        self.missing_index = False

    def check(self, collection: str) -> None:
        if collection in self.fail_on:
            raise RuntimeError(f"backend unavailable: {collection}")

    def collection(self, name):
        return FakeQuery(self, (name,))

    def user_docs(self, uid: str, collection: str) -> Dict[str, Dict[str, Any]]:
        prefix = ("users", uid, collection)
        return {path[-1]: data for path, data in self.docs.items() if path[:-1] == prefix}

    def put(self, uid: str, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        self.docs[("users", uid, collection, doc_id)] = dict(data)


class FakeAuthClient:
    """Mimics :class:`plany.sessions.FirebaseAuthClient` responses."""

    def __init__(self):
        self.accounts: Dict[str, Dict[str, str]] = {}
        self.calls: List[str] = []
        self.error: Optional[Exception] = None

    def _maybe_fail(self, name):
        self.calls.append(name)
        if self.error is not None:
            raise self.error

    def sign_up(self, email, password):
        self._maybe_fail("sign_up")
        uid = f"uid-{len(self.accounts) + 1}"
        self.accounts[email] = {"uid": uid, "password": password, "displayName": ""}
        return {"localId": uid, "email": email, "idToken": f"id-{uid}", "refreshToken": f"refresh-{uid}"}

    def update_display_name(self, id_token, display_name):
        self._maybe_fail("update_display_name")
        for account in self.accounts.values():
            if f"id-{account['uid']}" == id_token:
                account["displayName"] = display_name
        return {"idToken": id_token}

    def sign_in(self, email, password):
        self._maybe_fail("sign_in")
        account = self.accounts[email]
        return {
            "localId": account["uid"],
            "email": email,
            "displayName": account["displayName"],
            "idToken": f"id-{account['uid']}",
            "refreshToken": f"refresh-{account['uid']}",
        }

    def refresh(self, refresh_token):
        self._maybe_fail("refresh")
        uid = refresh_token.replace("refresh-", "", 1)
        return {"id_token": f"id-{uid}", "refresh_token": refresh_token, "user_id": uid}

    def lookup(self, id_token):
        self._maybe_fail("lookup")
        for email, account in self.accounts.items():
            if f"id-{account['uid']}" == id_token:
                return {"localId": account["uid"], "email": email, "displayName": account["displayName"]}
        return {}


class FakeCookies(dict):
    def set(self, key, value, **kwargs):
        self[key] = value

    def remove(self, key):
        self.pop(key, None)


class FakeStreamlit:
    """Records what a page renders and answers widgets from ``inputs``/``clicked``."""

    def __init__(self, inputs=None, clicked=()):
        self.session_state: Dict[str, Any] = {}
        self.inputs: Dict[str, Any] = dict(inputs or {})
        self.clicked = set(clicked)
        self.messages: List[Tuple[str, str]] = []

    def _say(kind):
        def record(self, body="", *args, **kwargs):
            self.messages.append((kind, str(body)))

        return record

    error = _say("error")
    warning = _say("warning")
    success = _say("success")
    info = _say("info")
    caption = _say("caption")
    markdown = _say("markdown")
    subheader = _say("subheader")
    title = _say("title")
    del _say

    def toast(self, body, icon=None):
        self.messages.append(("toast", f"{icon} {body}"))

    def said(self, kind):
        return [text for k, text in self.messages if k == kind]

    def form(self, *args, **kwargs):
        return contextlib.nullcontext()

    def tabs(self, labels):
        return [contextlib.nullcontext() for _ in labels]

    def text_input(self, label, value="", **kwargs):
        return self.inputs.get(label, value)

    text_area = text_input

    def selectbox(self, label, options, index=0, **kwargs):
        if label in self.inputs:
            return self.inputs[label]
        return options[index] if index is not None and options else None

    def form_submit_button(self, label, **kwargs):
        return label in self.clicked

    def button(self, label, **kwargs):
        return label in self.clicked
