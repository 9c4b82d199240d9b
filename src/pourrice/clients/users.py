"""User profile client (`API/Users/<uid>`)."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pourrice.clients.base import ApiClient, path_segment
from pourrice.domain.models import UserPreferences, UserProfile


class UserClient:
    def __init__(self, api: ApiClient):
        self._api = api
        self._collection_url = api.url(api.settings.api.endpoints.users)

    def _item_url(self, uid: str) -> str:
        return f"{self._collection_url}/{path_segment(uid)}"

    def create(self, profile: UserProfile) -> None:
        self._api.post(self._collection_url, profile.to_payload())

    def get(self, uid: str) -> UserProfile | None:
        payload = self._api.get_or_none(self._item_url(uid), authenticated=True)
        return None if payload is None else UserProfile.model_validate(payload)

    def exists(self, uid: str) -> bool:
        return self.get(uid) is not None

    def update(self, uid: str, updates: dict[str, Any]) -> None:
        self._api.put(self._item_url(uid), updates)

    def record_login(self, uid: str, *, login_count: int | None = None) -> int:
        """Stamp `lastLoginAt` and bump `loginCount`; returns the new count.

        `login_count` is the count already known to the caller; without it the profile is fetched.
        """
        if login_count is None:
            profile = self.get(uid)
            login_count = (profile.login_count if profile else None) or 0
        new_count = login_count + 1
        self.update(uid, {"lastLoginAt": datetime.now(timezone.utc).isoformat(), "loginCount": new_count})
        return new_count

    def update_preferences(self, uid: str, preferences: UserPreferences) -> None:
        self.update(uid, {"preferences": preferences.to_payload()})

    def delete(self, uid: str) -> None:
        self._api.delete(self._item_url(uid))
