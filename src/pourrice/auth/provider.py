"""
Authentication providers.

API clients only need two things from "the signed-in user": the user id (for
user-scoped requests such as bookings) and a fresh ID token for the `Authorization`
header. `AuthProvider` is that narrow interface; the concrete provider is injected
into each client.

- `StaticAuthProvider`: fixed uid/token (scripts, tests, service accounts).
- `FirebaseAuthProvider`: email/password sign-in against Firebase Authentication's
  REST endpoints, with ID-token refresh through the Secure Token API.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import httpx

from pourrice.config.settings import Settings
from pourrice.core.http import post_form, send_json

logger = logging.getLogger(__name__)


class NotAuthenticatedError(RuntimeError):
    """Raised when an operation needs a signed-in user and there is none."""


@runtime_checkable
class AuthProvider(Protocol):
    def current_user_id(self) -> str | None: ...

    def id_token(self) -> str | None: ...


class AnonymousAuthProvider:
    """Provider for unauthenticated use (public search/listing endpoints only)."""

    def current_user_id(self) -> str | None:
        return None

    def id_token(self) -> str | None:
        return None


@dataclass
class StaticAuthProvider:
    user_id: str | None
    token: str | None

    def current_user_id(self) -> str | None:
        return self.user_id

    def id_token(self) -> str | None:
        return self.token


@dataclass
class FirebaseSession:
    """Tokens for one signed-in Firebase user."""

    user_id: str
    email: str | None
    id_token: str
    refresh_token: str
    expires_at_unix: int


class FirebaseAuthProvider:
    """Firebase Authentication over REST (Identity Toolkit + Secure Token)."""

    def __init__(self, settings: Settings):
        self._settings = settings
        self._session: FirebaseSession | None = None

    @property
    def session(self) -> FirebaseSession | None:
        return self._session

    @property
    def is_signed_in(self) -> bool:
        return self._session is not None

    def _require_api_key(self) -> str:
        key = self._settings.auth.firebase_api_key
        if not key:
            raise RuntimeError("Firebase API key is not configured. Set FIREBASE_API_KEY.")
        return key

    def _identity_call(self, action: str, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self._settings.auth.identity_toolkit_url.rstrip('/')}/accounts:{action}"
        data = send_json(
            "POST",
            url,
            payload=payload,
            params={"key": self._require_api_key()},
            timeout_seconds=self._settings.app.http_timeout_seconds,
        )
        if not isinstance(data, dict):
            raise RuntimeError(f"Unexpected Firebase response for accounts:{action}.")
        return data

    def _store_session(self, data: dict[str, Any], *, email: str | None) -> FirebaseSession:
        user_id = data.get("localId") or data.get("user_id")
        id_token = data.get("idToken") or data.get("id_token")
        refresh_token = data.get("refreshToken") or data.get("refresh_token")
        expires_in = int(data.get("expiresIn") or data.get("expires_in") or 0)
        if not user_id or not id_token or not refresh_token or expires_in <= 0:
            raise RuntimeError("Firebase token response is missing localId/idToken/refreshToken/expiresIn.")

        self._session = FirebaseSession(
            user_id=str(user_id),
            email=email,
            id_token=str(id_token),
            refresh_token=str(refresh_token),
            expires_at_unix=int(time.time()) + expires_in,
        )
        return self._session

    def sign_in(self, email: str, password: str) -> FirebaseSession:
        """Sign in with email/password and keep the resulting session."""
        data = self._identity_call(
            "signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        logger.info("Signed in as %s", data.get("localId"))
        return self._store_session(data, email=data.get("email") or email)

    def sign_up(self, email: str, password: str) -> FirebaseSession:
        """Register a new email/password account and sign in as it."""
        data = self._identity_call(
            "signUp",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        logger.info("Registered account %s", data.get("localId"))
        return self._store_session(data, email=data.get("email") or email)

    def sign_out(self) -> None:
        self._session = None

    def invalidate(self) -> None:
        """Force the next `id_token()` call to refresh (e.g. after a 401)."""
        if self._session is not None:
            self._session.expires_at_unix = 0

    def _refresh(self) -> None:
        if self._session is None:
            raise NotAuthenticatedError("No Firebase session to refresh; sign in first.")
        data = post_form(
            self._settings.auth.secure_token_url,
            data={"grant_type": "refresh_token", "refresh_token": self._session.refresh_token},
            params={"key": self._require_api_key()},
            timeout_seconds=self._settings.app.http_timeout_seconds,
        )
        if not isinstance(data, dict):
            raise RuntimeError("Unexpected Firebase token refresh response.")
        logger.info("Refreshed ID token for %s", self._session.user_id)
        self._store_session(data, email=self._session.email)

    def current_user_id(self) -> str | None:
        return self._session.user_id if self._session else None

    def id_token(self) -> str | None:
        """Return a valid ID token, refreshing it when close to expiry.

        Raises:
            httpx.HTTPError: If the refresh request fails.
        """
        if self._session is None:
            return None
        margin = int(self._settings.auth.refresh_margin_seconds)
        if int(time.time()) >= self._session.expires_at_unix - margin:
            try:
                self._refresh()
            except httpx.HTTPStatusError as exc:
                if exc.response.status_code in {400, 401, 403}:
                    logger.warning("Refresh token rejected; signing out.")
                    self._session = None
                    return None
                raise
        return self._session.id_token
