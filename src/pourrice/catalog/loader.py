"""
Restaurant catalog loader.

An exported catalog is a local JSON file: either a bare list of restaurant
documents or the REST envelope `{"data": [...]}`. It lets `pourrice nearby` and
`pourrice featured` run offline against a snapshot.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import TypeAdapter

from pourrice.clients.base import unwrap_list
from pourrice.core.env import resolve_project_path
from pourrice.domain.models import Restaurant


_RESTAURANTS_ADAPTER = TypeAdapter(list[Restaurant])


def load_restaurants(path: str | Path) -> list[Restaurant]:
    """Load and validate a restaurant catalog JSON file."""
    resolved = resolve_project_path(path)
    payload = json.loads(resolved.read_text(encoding="utf-8"))
    if not isinstance(payload, (list, dict)):
        raise ValueError(f"Catalog {resolved} must contain a JSON list or an object with 'data'.")
    return _RESTAURANTS_ADAPTER.validate_python(unwrap_list(payload, "data", "restaurants", "hits"))


def save_restaurants(path: str | Path, restaurants: list[Restaurant]) -> Path:
    """Write restaurants in REST field naming so `load_restaurants` can read them back."""
    resolved = resolve_project_path(path)
    resolved.parent.mkdir(parents=True, exist_ok=True)
    payload = [r.to_api_payload() for r in restaurants]
    resolved.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    return resolved
