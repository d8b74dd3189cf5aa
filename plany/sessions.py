"""Firebase session helpers for Plany.

Firestore is reached through ``firebase_admin``.  Email/password accounts live
in Firebase Authentication, whose sign-up and sign-in flows are only exposed
over the Identity Toolkit REST API, so those calls go through ``requests``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import firebase_admin
import requests
import streamlit as st
from firebase_admin import credentials, firestore

from src.errors import IdentityProviderError

_LOG = logging.getLogger(__name__)

_db_client: Optional[firestore.Client] = None
db: Optional[firestore.Client] = None  # tests may assign a fake client here

IDENTITY_BASE_URL = "https://identitytoolkit.googleapis.com/v1"
SECURE_TOKEN_URL = "https://securetoken.googleapis.com/v1/token"
REQUEST_TIMEOUT = 15


def get_db() -> firestore.Client:
    """Return a cached Firestore client."""

    global _db_client, db
    if db is not None:
        return db
    if _db_client is not None:
        db = _db_client
        return _db_client
    try:  # pragma: no cover - runtime side effects
        if not firebase_admin._apps:  # guard against re-init
            cred_dict = dict(st.secrets["firebase"])
            cred = credentials.Certificate(cred_dict)
            firebase_admin.initialize_app(cred)
        _db_client = firestore.client()
        db = _db_client
        return _db_client
    except Exception as e:  # pragma: no cover - streamlit UI feedback
        st.error(f"Firebase init failed: {e}")
        raise RuntimeError("Firebase initialization failed") from e


def _raise_for_provider_error(resp: requests.Response) -> None:
    if resp.ok:
        return
    code = f"HTTP_{resp.status_code}"
    message = resp.text
    try:
        payload = resp.json()
    except ValueError:
        payload = {}
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict):
        # Identity Toolkit reports e.g. "EMAIL_EXISTS" or
        # "TOO_MANY_ATTEMPTS_TRY_LATER : Access to this account ..."
        raw = str(error.get("message") or code)
        code, _, detail = raw.partition(" : ")
        message = detail or raw
    elif isinstance(payload, dict) and payload.get("error_description"):
        code = str(payload.get("error") or code)
        message = str(payload["error_description"])
    raise IdentityProviderError(code.strip(), message.strip())


class FirebaseAuthClient:
    """Thin wrapper over the Firebase Authentication REST endpoints.

    Every method returns the provider's JSON payload untouched.  Failures are
    raised as :class:`~src.errors.IdentityProviderError` with the provider's
    own error code.
    """

    def __init__(self, api_key: str, *, http: Any = requests, timeout: float = REQUEST_TIMEOUT):
        if not api_key:
            raise RuntimeError("FIREBASE_API_KEY is not configured")
        self.api_key = api_key
        self.http = http
        self.timeout = timeout

    def _post(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        resp = self.http.post(
            f"{IDENTITY_BASE_URL}/{endpoint}",
            params={"key": self.api_key},
            json=payload,
            timeout=self.timeout,
        )
        _raise_for_provider_error(resp)
        return resp.json()

    def sign_up(self, email: str, password: str) -> Dict[str, Any]:
        return self._post(
            "accounts:signUp",
            {"email": email, "password": password, "returnSecureToken": True},
        )

    def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        return self._post(
            "accounts:signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )

    def update_display_name(self, id_token: str, display_name: str) -> Dict[str, Any]:
        return self._post(
            "accounts:update",
            {"idToken": id_token, "displayName": display_name, "returnSecureToken": True},
        )

    def lookup(self, id_token: str) -> Dict[str, Any]:
        data = self._post("accounts:lookup", {"idToken": id_token})
        users = data.get("users") or []
        return users[0] if users else {}

    def refresh(self, refresh_token: str) -> Dict[str, Any]:
        """Exchange a refresh token for a fresh ID token."""

        resp = self.http.post(
            SECURE_TOKEN_URL,
            params={"key": self.api_key},
            data={"grant_type": "refresh_token", "refresh_token": refresh_token},
            timeout=self.timeout,
        )
        _raise_for_provider_error(resp)
        return resp.json()


__all__ = ["FirebaseAuthClient", "get_db"]
