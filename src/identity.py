"""Identity context: who is signed in, and who wants to know when that changes.

The context wraps the Firebase Authentication REST client from
:mod:`plany.sessions`.  Register, login and logout are pass-through calls;
provider failures surface as :class:`~src.errors.IdentityProviderError` with
the provider's own code and are never retried here.  The refresh token is kept
in a browser cookie so a reload restores the session during :meth:`init`.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import Any, Callable, List, Optional

from .config import session_ttl_seconds
from .errors import IdentityProviderError
from .models import Profile, User

_LOG = logging.getLogger(__name__)

REFRESH_COOKIE = "plany_refresh_token"
USERS_COL = "users"

Listener = Callable[[Optional[User]], None]


def profile_doc_ref(db: Any, uid: str):
    return db.collection(USERS_COL).document(uid).collection("profile").document("data")


class IdentityContext:
    """Current user, one-shot initialisation and change subscriptions."""

    def __init__(
        self,
        auth_client: Any,
        *,
        db_getter: Callable[[], Any],
        cookies: Any = None,
        logger: Any = _LOG,
    ) -> None:
        self.auth_client = auth_client
        self._db_getter = db_getter
        self.cookies = cookies
        self.logger = logger
        self._user: Optional[User] = None
        self._listeners: List[Listener] = []
        self._initialized = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def current_user(self) -> Optional[User]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    @property
    def initialized(self) -> bool:
        return self._initialized

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        """Register ``callback``; it runs now with the current user and on every change.

        Returns a function that removes the subscription.
        """

        self._listeners.append(callback)
        callback(self._user)

        def unsubscribe() -> None:
            self._listeners = [cb for cb in self._listeners if cb is not callback]

        return unsubscribe

    def _set_user(self, user: Optional[User]) -> None:
        self._user = user
        for listener in list(self._listeners):
            listener(user)

    # ------------------------------------------------------------------
    # Initialisation
    # ------------------------------------------------------------------
    def init(self) -> Optional[User]:
        """Resolve the initial auth state once and notify subscribers."""

        if self._initialized:
            return self._user

        user = None
        token = self._read_cookie()
        if token:
            try:
                user = self._restore(token)
            except IdentityProviderError as exc:
                # An expired or revoked refresh token simply means "signed out".
                self.logger.info("Stored session could not be restored: %s", exc.code)
                self._clear_cookie()
        self._initialized = True
        self._set_user(user)
        return user

    def _restore(self, refresh_token: str) -> User:
        data = self.auth_client.refresh(refresh_token)
        id_token = data.get("id_token", "")
        account = self.auth_client.lookup(id_token) if id_token else {}
        user = User(
            uid=data.get("user_id") or account.get("localId", ""),
            email=account.get("email", ""),
            display_name=account.get("displayName") or None,
            id_token=id_token,
            refresh_token=data.get("refresh_token") or refresh_token,
        )
        user.profile = self._load_profile(user.uid)
        self._persist_cookie(user.refresh_token)
        return user

    # ------------------------------------------------------------------
    # Provider pass-throughs
    # ------------------------------------------------------------------
    def register(self, email: str, password: str, display_name: str) -> User:
        """Create the account and set its display name.

        The caller writes the default profile through the record store once the
        store has picked up the new uid, then calls :meth:`reload_profile`.
        """

        try:
            data = self.auth_client.sign_up(email, password)
            id_token = data.get("idToken", "")
            if display_name:
                updated = self.auth_client.update_display_name(id_token, display_name)
                id_token = updated.get("idToken") or id_token
        except Exception:
            self.logger.exception("Registration error")
            raise

        user = User(
            uid=data.get("localId", ""),
            email=data.get("email") or email,
            display_name=display_name or None,
            id_token=id_token,
            refresh_token=data.get("refreshToken", ""),
        )
        self._persist_cookie(user.refresh_token)
        self._initialized = True
        self._set_user(user)
        return user

    def login(self, email: str, password: str) -> User:
        try:
            data = self.auth_client.sign_in(email, password)
        except Exception:
            self.logger.exception("Login error")
            raise

        user = User(
            uid=data.get("localId", ""),
            email=data.get("email") or email,
            display_name=data.get("displayName") or None,
            id_token=data.get("idToken", ""),
            refresh_token=data.get("refreshToken", ""),
        )
        user.profile = self._load_profile(user.uid)
        self._persist_cookie(user.refresh_token)
        self._initialized = True
        self._set_user(user)
        return user

    def logout(self) -> None:
        """Forget the session locally; Firebase sign-out has no server call."""

        self._clear_cookie()
        self._set_user(None)

    def reload_profile(self) -> Optional[Profile]:
        """Re-read the profile; on a failed read the loaded profile is kept."""

        if self._user is None:
            return None
        try:
            profile = self._read_profile(self._user.uid)
        except Exception as exc:
            self.logger.warning("Failed to reload profile for %s: %s", self._user.uid, exc)
            return self._user.profile
        self._user.profile = profile
        return profile

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _load_profile(self, uid: str) -> Optional[Profile]:
        try:
            return self._read_profile(uid)
        except Exception as exc:
            self.logger.warning("Failed to load profile for %s: %s", uid, exc)
            return None

    def _read_profile(self, uid: str) -> Optional[Profile]:
        if not uid:
            return None
        snap = profile_doc_ref(self._db_getter(), uid).get()
        if not getattr(snap, "exists", False):
            return None
        return Profile.from_doc(snap.to_dict() or {})

    def _read_cookie(self) -> str:
        if self.cookies is None:
            return ""
        try:
            value = self.cookies.get(REFRESH_COOKIE)
        except Exception:
            self.logger.debug("Unable to read session cookie", exc_info=True)
            return ""
        return str(value or "")

    def _persist_cookie(self, refresh_token: str) -> None:
        if self.cookies is None or not refresh_token:
            return
        ttl = session_ttl_seconds()
        try:
            self.cookies.set(
                REFRESH_COOKIE,
                refresh_token,
                max_age=ttl,
                expires=datetime.now(UTC) + timedelta(seconds=ttl),
            )
        except Exception:
            self.logger.exception("Failed to persist session cookie")

    def _clear_cookie(self) -> None:
        if self.cookies is None:
            return
        try:
            self.cookies.remove(REFRESH_COOKIE)
        except Exception:
            self.logger.debug("Session cookie already absent", exc_info=True)


__all__ = ["IdentityContext", "REFRESH_COOKIE", "profile_doc_ref"]
