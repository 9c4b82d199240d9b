"""
Store-owner client.

A restaurant account claims one restaurant; the claimed id is then kept on the
owner's user profile (`restaurantId`). Every call here needs a signed-in user.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pourrice.clients.base import ApiClient, path_segment
from pourrice.domain.models import Restaurant, UserProfile

logger = logging.getLogger(__name__)


class StoreClient:
    def __init__(self, api: ApiClient):
        self._api = api
        endpoints = api.settings.api.endpoints
        self._restaurants_url = api.url(endpoints.restaurants)
        self._users_url = api.url(endpoints.users)

    def _restaurant_url(self, restaurant_id: str, *parts: str) -> str:
        return "/".join([self._restaurants_url, path_segment(restaurant_id), *parts])

    def claim(self, restaurant_id: str) -> Restaurant:
        """Claim ownership of a restaurant and return it as stored after the claim.

        Raises:
            NotAuthenticatedError: If no user is signed in.
            httpx.HTTPStatusError: If the API refuses the claim (e.g. already owned).
        """
        self._api.require_user_id()
        data = self._api.post(self._restaurant_url(restaurant_id, "claim"), None)
        logger.info("Restaurant %s claimed", restaurant_id)
        return Restaurant.model_validate(data or {"id": restaurant_id})

    def owned_restaurant(self) -> Restaurant | None:
        """The restaurant linked to the signed-in user's profile, if any."""
        uid = self._api.require_user_id()
        profile_data = self._api.get_or_none(f"{self._users_url}/{path_segment(uid)}", authenticated=True)
        if profile_data is None:
            return None
        restaurant_id = UserProfile.model_validate(profile_data).restaurant_id
        if not restaurant_id:
            logger.debug("User %s has no claimed restaurant", uid)
            return None
        payload = self._api.get_or_none(self._restaurant_url(restaurant_id))
        return None if payload is None else Restaurant.model_validate(payload)

    def update(self, restaurant_id: str, updates: dict[str, Any]) -> Restaurant | None:
        """Partial update in REST field names (`Name_EN`, `Seats`, ...); returns the stored record."""
        data = self._api.put(self._restaurant_url(restaurant_id), updates)
        return Restaurant.model_validate(data) if isinstance(data, dict) else None

    def upload_image(self, restaurant_id: str, image_path: str | Path) -> str | None:
        """Upload a cover image; returns the hosted image URL."""
        data = self._api.upload(self._restaurant_url(restaurant_id, "image"), "image", image_path)
        if not isinstance(data, dict):
            return None
        url = data.get("imageUrl") or data.get("downloadURL")
        logger.info("Image uploaded for restaurant %s", restaurant_id)
        return str(url) if url else None
