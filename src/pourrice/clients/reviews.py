"""Review client: list/get/create/update/delete reviews and per-restaurant stats."""

from __future__ import annotations

import logging

from pydantic import TypeAdapter

from pourrice.clients.base import ApiClient, path_segment, unwrap_list
from pourrice.domain.models import CreateReviewRequest, Review, ReviewStats, UpdateReviewRequest

logger = logging.getLogger(__name__)

_REVIEWS_ADAPTER = TypeAdapter(list[Review])


class ReviewClient:
    def __init__(self, api: ApiClient):
        self._api = api
        self._collection_url = api.url(api.settings.api.endpoints.reviews)

    def _item_url(self, review_id: str) -> str:
        return f"{self._collection_url}/{path_segment(review_id)}"

    def list_reviews(self, *, restaurant_id: str | None = None, user_id: str | None = None) -> list[Review]:
        """Reviews filtered by restaurant and/or author (both optional)."""
        params: dict[str, str] = {}
        if restaurant_id:
            params["restaurantId"] = restaurant_id
        if user_id:
            params["userId"] = user_id
        payload = self._api.get(self._collection_url, params=params or None)
        return _REVIEWS_ADAPTER.validate_python(unwrap_list(payload, "data", "reviews"))

    def get(self, review_id: str) -> Review | None:
        payload = self._api.get_or_none(self._item_url(review_id))
        return None if payload is None else Review.model_validate(payload)

    def create(self, request: CreateReviewRequest) -> str:
        """Post a review as the signed-in user; returns the new review id."""
        self._api.require_user_id()
        data = self._api.post(self._collection_url, request.to_payload())
        new_id = str((data or {}).get("id") or "")
        if not new_id:
            raise RuntimeError("Create review response did not include an id.")
        logger.info("Review %s created for restaurant %s", new_id, request.restaurant_id)
        return new_id

    def update(self, review_id: str, request: UpdateReviewRequest) -> None:
        self._api.put(self._item_url(review_id), request.to_payload())

    def delete(self, review_id: str) -> None:
        self._api.delete(self._item_url(review_id))

    def stats(self, restaurant_id: str) -> ReviewStats | None:
        url = f"{self._collection_url}/Restaurant/{path_segment(restaurant_id)}/stats"
        payload = self._api.get_or_none(url)
        return None if payload is None else ReviewStats.model_validate(payload)
