from __future__ import annotations

import json
import logging
import time
from hashlib import sha256
from pathlib import Path
from typing import Any, Callable

"""
Simple on-disk JSON cache.

Used to keep the last fetched restaurant catalog around so that `nearby` and
`featured` do not refetch the whole list on every call, and so a stale copy can
be served when the API is unreachable.

- Values are stored as JSON under `.cache/pourrice/<namespace>/` by default.
- Keys are hashed (SHA-256) to avoid filesystem path issues.
- TTL is enforced on read.
"""

logger = logging.getLogger(__name__)


class FileCache:
    """A filesystem-backed cache keyed by (namespace, key)."""

    def __init__(self, base_dir: Path, enabled: bool = True, default_ttl_seconds: int = 86400):
        self._base_dir = base_dir
        self._enabled = enabled
        self._default_ttl_seconds = default_ttl_seconds

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    @property
    def enabled(self) -> bool:
        return self._enabled

    def _key_path(self, namespace: str, key: str) -> Path:
        digest = sha256(f"{namespace}:{key}".encode("utf-8")).hexdigest()
        return self._base_dir / namespace / f"{digest}.json"

    def _read_envelope(self, namespace: str, key: str) -> dict[str, Any] | None:
        path = self._key_path(namespace, key)
        if not path.exists():
            return None
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable cache entry %s", path)
            return None
        if not isinstance(raw, dict) or "value" not in raw:
            return None
        return raw

    def get(self, namespace: str, key: str, ttl_seconds: int | None = None) -> Any | None:
        """Read a cached value if present and not expired; otherwise return None."""
        if not self._enabled:
            return None
        raw = self._read_envelope(namespace, key)
        if raw is None:
            return None

        created = int(raw.get("created_at_unix", 0))
        ttl = ttl_seconds if ttl_seconds is not None else int(raw.get("ttl_seconds", 0))
        if int(time.time()) - created > ttl:
            return None
        return raw["value"]

    def get_stale(self, namespace: str, key: str) -> Any | None:
        """Read a cached value even if expired (for stale-if-error fallbacks)."""
        if not self._enabled:
            return None
        raw = self._read_envelope(namespace, key)
        return None if raw is None else raw["value"]

    def set(self, namespace: str, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """Write a JSON-serializable value to disk via temp file + atomic replace."""
        if not self._enabled:
            return None

        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl_seconds
        path = self._key_path(namespace, key)
        path.parent.mkdir(parents=True, exist_ok=True)

        payload = {"created_at_unix": int(time.time()), "ttl_seconds": int(ttl), "value": value}
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
        tmp.replace(path)

    def get_or_set(
        self,
        namespace: str,
        key: str,
        builder: Callable[[], Any],
        ttl_seconds: int | None = None,
        *,
        stale_if_error: bool = False,
        stale_predicate: Callable[[Exception], bool] | None = None,
    ) -> Any:
        """Return cached value, or compute/store it via `builder`.

        With `stale_if_error`, a failing `builder()` falls back to an expired entry when
        one exists and `stale_predicate(exc)` accepts the error (or no predicate is given).
        """
        cached = self.get(namespace, key, ttl_seconds=ttl_seconds)
        if cached is not None:
            return cached
        try:
            value = builder()
        except Exception as exc:
            if stale_if_error and (stale_predicate(exc) if stale_predicate else True):
                stale = self.get_stale(namespace, key)
                if stale is not None:
                    logger.warning("Serving stale %s/%s after error: %s", namespace, key, exc)
                    return stale
            raise
        self.set(namespace, key, value, ttl_seconds=ttl_seconds)
        return value
