"""
Shared REST plumbing for the PourRice API.

Every call goes through `ApiClient.request`, which:
- joins `api.base_url` with an endpoint path,
- adds the `X-API-Passcode` header and, for authenticated calls, a bearer ID token,
- retries 429/5xx responses and transport errors with exponential backoff,
- refreshes the ID token once on 401.

Resource clients (`RestaurantClient`, `BookingClient`, ...) wrap an `ApiClient` and
only deal with paths and models.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any
from urllib.parse import quote

import httpx

from pourrice.auth.provider import AnonymousAuthProvider, AuthProvider, NotAuthenticatedError
from pourrice.config.settings import Settings
from pourrice.core.http import get_json, post_file, send_json

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = {429, 500, 502, 503, 504}


def path_segment(value: str) -> str:
    """Percent-encode one path segment (ids may contain `/` or spaces)."""
    return quote(str(value), safe="")


def unwrap_list(payload: Any, *keys: str) -> list[Any]:
    """Accept either a bare JSON list or an envelope like `{"data": [...]}`."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in keys:
            value = payload.get(key)
            if isinstance(value, list):
                return value
    return []


def is_not_found(exc: BaseException) -> bool:
    return isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code == 404


class ApiClient:
    """Low-level PourRice API client: URLs, headers, retries."""

    def __init__(self, settings: Settings, auth: AuthProvider | None = None):
        self._settings = settings
        self._auth: AuthProvider = auth or AnonymousAuthProvider()

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def auth(self) -> AuthProvider:
        return self._auth

    @staticmethod
    def _parse_retry_after_seconds(value: str | None) -> float | None:
        if not value:
            return None
        try:
            seconds = float(value)
        except ValueError:
            return None
        return seconds if seconds >= 0 else None

    def url(self, *parts: str) -> str:
        base = self._settings.api.base_url.rstrip("/")
        if not base:
            raise RuntimeError("API base URL is not configured. Set POURRICE_API_BASE_URL.")
        path = "/".join(p.strip("/") for p in parts if p and p.strip("/"))
        return f"{base}/{path}"

    def require_user_id(self) -> str:
        uid = self._auth.current_user_id()
        if not uid:
            raise NotAuthenticatedError("You must be signed in to perform this action.")
        return uid

    def _headers(self, *, authenticated: bool, json_body: bool = True) -> dict[str, str]:
        headers = {"Content-Type": "application/json"} if json_body else {}
        if self._settings.api.passcode:
            headers["X-API-Passcode"] = self._settings.api.passcode
        if authenticated:
            token = self._auth.id_token()
            if not token:
                raise NotAuthenticatedError("You must be signed in to perform this action.")
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _invalidate_token(self) -> None:
        invalidate = getattr(self._auth, "invalidate", None)
        if callable(invalidate):
            invalidate()

    def request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        payload: Any = None,
        upload: tuple[str, str | Path] | None = None,
        authenticated: bool = False,
    ) -> Any:
        """Send a request and return the decoded JSON body (None for empty bodies).

        `upload` is a `(field, path)` pair sent as a multipart POST instead of a JSON body.

        Raises:
            httpx.HTTPStatusError: Non-2xx after retries (404 is never retried).
            httpx.TransportError: Connection failures after retries.
            NotAuthenticatedError: `authenticated=True` without a signed-in user.
        """
        retry = self._settings.api.retry
        max_attempts = int(retry.max_attempts)
        base_delay_seconds = float(retry.base_delay_seconds)
        max_delay_seconds = float(retry.max_delay_seconds)
        timeout = self._settings.app.http_timeout_seconds

        refreshed_token = False
        last_exc: Exception | None = None

        for attempt in range(max_attempts + 1):
            headers = self._headers(authenticated=authenticated, json_body=upload is None)
            try:
                if upload is not None:
                    field, path = upload
                    return post_file(url, field=field, path=path, params=params, headers=headers)
                if method.upper() == "GET":
                    return get_json(url, params=params, headers=headers, timeout_seconds=timeout)
                return send_json(
                    method,
                    url,
                    payload=payload,
                    params=params,
                    headers=headers,
                    timeout_seconds=timeout,
                )
            except httpx.HTTPStatusError as exc:
                last_exc = exc
                status = exc.response.status_code

                if status == 401 and authenticated and not refreshed_token:
                    logger.info("%s %s unauthorized; refreshing token and retrying.", method, url)
                    self._invalidate_token()
                    refreshed_token = True
                    continue

                if status not in RETRYABLE_STATUSES or attempt >= max_attempts:
                    raise

                delay = min(max_delay_seconds, base_delay_seconds * (2**attempt))
                retry_after = self._parse_retry_after_seconds(exc.response.headers.get("Retry-After"))
                if retry_after is not None:
                    delay = max(delay, retry_after)

                logger.warning(
                    "%s %s failed with status=%s; retrying in %.2fs (attempt %s/%s)",
                    method,
                    url,
                    status,
                    delay,
                    attempt + 1,
                    max_attempts,
                )
                time.sleep(delay)
            except httpx.TransportError as exc:
                last_exc = exc
                if attempt >= max_attempts:
                    raise
                delay = min(max_delay_seconds, base_delay_seconds * (2**attempt))
                logger.warning(
                    "%s %s transport error; retrying in %.2fs (attempt %s/%s)",
                    method,
                    url,
                    delay,
                    attempt + 1,
                    max_attempts,
                )
                time.sleep(delay)

        if last_exc:
            raise last_exc
        raise RuntimeError(f"{method} {url} failed without an exception (unexpected).")

    def get(self, url: str, *, params: dict[str, Any] | None = None, authenticated: bool = False) -> Any:
        return self.request("GET", url, params=params, authenticated=authenticated)

    def get_or_none(self, url: str, *, params: dict[str, Any] | None = None, authenticated: bool = False) -> Any:
        """GET that maps 404 to None."""
        try:
            return self.get(url, params=params, authenticated=authenticated)
        except httpx.HTTPStatusError as exc:
            if is_not_found(exc):
                logger.debug("Not found: %s", url)
                return None
            raise

    def post(self, url: str, payload: Any, *, authenticated: bool = True) -> Any:
        return self.request("POST", url, payload=payload, authenticated=authenticated)

    def put(self, url: str, payload: Any, *, authenticated: bool = True) -> Any:
        return self.request("PUT", url, payload=payload, authenticated=authenticated)

    def delete(self, url: str, *, authenticated: bool = True) -> Any:
        return self.request("DELETE", url, authenticated=authenticated)

    def upload(self, url: str, field: str, path: str | Path, *, authenticated: bool = True) -> Any:
        """Multipart POST of one file (retried like any other request)."""
        return self.request("POST", url, upload=(field, path), authenticated=authenticated)
