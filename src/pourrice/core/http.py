"""
HTTP helpers.

This module centralizes the minimal HTTP client logic used by the API clients.

Design goals:
- Small surface area (GET JSON, send JSON with any method, POST form, POST file).
- Deterministic defaults (timeout + User-Agent).
- Raise on non-2xx so callers can decide how to fail (e.g. `None` on 404 for lookups).
"""

from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import Any

import httpx


DEFAULT_USER_AGENT = "pourrice/0.1.0 (+https://local)"


def _headers(headers: dict[str, str] | None) -> dict[str, str]:
    request_headers = {"User-Agent": DEFAULT_USER_AGENT}
    if headers:
        request_headers.update(headers)
    return request_headers


def _decode(resp: httpx.Response) -> Any:
    # 204 No Content (and empty 200/201 bodies) decode to None.
    if resp.status_code == 204 or not resp.content:
        return None
    return resp.json()


def get_json(
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 15,
) -> Any:
    """GET `url` and return the decoded JSON response.

    Raises:
        httpx.HTTPError: On transport errors or non-2xx status codes.
        ValueError: If the response body is not valid JSON.
    """
    with httpx.Client(timeout=timeout_seconds) as client:
        resp = client.get(url, params=params, headers=_headers(headers))
        resp.raise_for_status()
        return _decode(resp)


def send_json(
    method: str,
    url: str,
    *,
    payload: Any = None,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 15,
) -> Any:
    """Send `payload` as a JSON body with `method` and return the decoded JSON response (or None).

    Raises:
        httpx.HTTPError: On transport errors or non-2xx status codes.
        ValueError: If a non-empty response body is not valid JSON.
    """
    with httpx.Client(timeout=timeout_seconds) as client:
        resp = client.request(
            method.upper(),
            url,
            json=payload,
            params=params,
            headers=_headers(headers),
        )
        resp.raise_for_status()
        return _decode(resp)


def post_form(
    url: str,
    *,
    data: dict[str, Any],
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 15,
) -> Any:
    """POST `data` as form-encoded body and return the decoded JSON response.

    Used by the Firebase Secure Token refresh flow.
    """
    with httpx.Client(timeout=timeout_seconds) as client:
        resp = client.post(url, data=data, params=params, headers=_headers(headers))
        resp.raise_for_status()
        return _decode(resp)


def post_file(
    url: str,
    *,
    field: str,
    path: str | Path,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 60,
) -> Any:
    """POST the file at `path` as a multipart form field and return the decoded JSON response.

    Used for restaurant image uploads.
    """
    file_path = Path(path)
    content_type = mimetypes.guess_type(file_path.name)[0] or "application/octet-stream"
    with file_path.open("rb") as fh, httpx.Client(timeout=timeout_seconds) as client:
        resp = client.post(
            url,
            files={field: (file_path.name, fh, content_type)},
            params=params,
            headers=_headers(headers),
        )
        resp.raise_for_status()
        return _decode(resp)
