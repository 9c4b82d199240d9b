"""
Restaurant and menu clients.

Search goes through the API's search proxy (which fronts Algolia); lookups and
writes go to the REST collection. The full restaurant list backs the "nearby" and
"featured" views, so it is cached on disk and served stale if the API is down.
"""

from __future__ import annotations

import logging
import random
from typing import Any

import httpx
from pydantic import TypeAdapter

from pourrice.clients.base import ApiClient, path_segment, unwrap_list
from pourrice.core.cache import FileCache
from pourrice.core.geo import GeoPoint
from pourrice.domain.models import (
    MenuItem,
    MenuItemPayload,
    NearbyRestaurant,
    Restaurant,
    SearchRequest,
    SearchResponse,
)
from pourrice.ranking.featured import select_featured
from pourrice.ranking.nearby import NearbyReport, rank_nearby_with_distance

logger = logging.getLogger(__name__)

_RESTAURANTS_ADAPTER = TypeAdapter(list[Restaurant])
_MENU_ADAPTER = TypeAdapter(list[MenuItem])

CATALOG_NAMESPACE = "catalog"
CATALOG_KEY = "restaurants:all"


class RestaurantClient:
    def __init__(self, api: ApiClient, cache: FileCache | None = None):
        self._api = api
        self._cache = cache
        endpoints = api.settings.api.endpoints
        self._search_url = api.url(endpoints.search)
        self._collection_url = api.url(endpoints.restaurants)

    def _with_placeholder(self, restaurant: Restaurant) -> Restaurant:
        placeholder = self._api.settings.app.placeholder_image_url
        if restaurant.image_url or not placeholder:
            return restaurant
        return restaurant.model_copy(update={"image_url": placeholder})

    def search(self, request: SearchRequest) -> SearchResponse:
        """Run one page of a search and return hits with pagination metadata."""
        logger.debug("Searching restaurants: %s", request.to_query_params())
        payload = self._api.get(self._search_url, params=request.to_query_params())
        response = SearchResponse.model_validate(payload or {})
        hits = [self._with_placeholder(r) for r in response.hits]
        logger.info(
            "Search returned %s hits (page %s of %s, %s total)",
            len(hits),
            response.page,
            response.nb_pages,
            response.nb_hits,
        )
        return response.model_copy(update={"hits": hits})

    def get(self, restaurant_id: str) -> Restaurant | None:
        payload = self._api.get_or_none(f"{self._collection_url}/{path_segment(restaurant_id)}")
        if payload is None:
            return None
        return self._with_placeholder(Restaurant.model_validate(payload))

    def _fetch_all_raw(self) -> list[Any]:
        return unwrap_list(self._api.get(self._collection_url), "data", "restaurants")

    def list_all(self, *, use_cache: bool = True) -> list[Restaurant]:
        """Fetch every restaurant (cached on disk; stale copy served on HTTP errors)."""
        if self._cache is None or not use_cache:
            raw = self._fetch_all_raw()
        else:
            raw = self._cache.get_or_set(
                CATALOG_NAMESPACE,
                CATALOG_KEY,
                self._fetch_all_raw,
                ttl_seconds=self._api.settings.cache.catalog_ttl_seconds,
                stale_if_error=True,
                stale_predicate=lambda exc: isinstance(exc, httpx.HTTPError),
            )
        return [self._with_placeholder(r) for r in _RESTAURANTS_ADAPTER.validate_python(raw)]

    def nearby(self, origin: GeoPoint, limit: int | None = None) -> NearbyReport[Restaurant]:
        """The closest `limit` restaurants to `origin`, with distances."""
        limit = limit if limit is not None else self._api.settings.ranking.nearby_limit
        report = rank_nearby_with_distance(origin, self.list_all(), limit)
        if report.missing:
            logger.info("%s of %s restaurants had no location", report.missing, report.total)
        return report

    def nearby_restaurants(self, origin: GeoPoint, limit: int | None = None) -> list[NearbyRestaurant]:
        return [
            NearbyRestaurant(restaurant=r, distance_m=d) for r, d in self.nearby(origin, limit).items
        ]

    def featured(self, count: int | None = None, *, rng: random.Random | None = None) -> list[Restaurant]:
        count = count if count is not None else self._api.settings.ranking.featured_count
        return select_featured(self.list_all(), count, rng=rng)

    def create(self, restaurant: Restaurant) -> str:
        """Create a restaurant (authenticated); returns the new id."""
        data = self._api.post(self._collection_url, restaurant.to_api_payload())
        new_id = str((data or {}).get("id") or "")
        if not new_id:
            raise RuntimeError("Create restaurant response did not include an id.")
        logger.info("Restaurant created with id %s", new_id)
        return new_id

    def update(self, restaurant_id: str, restaurant: Restaurant) -> None:
        self._api.put(f"{self._collection_url}/{path_segment(restaurant_id)}", restaurant.to_api_payload())
        logger.info("Restaurant updated: %s", restaurant_id)

    def delete(self, restaurant_id: str) -> None:
        self._api.delete(f"{self._collection_url}/{path_segment(restaurant_id)}")
        logger.info("Restaurant deleted: %s", restaurant_id)


class MenuClient:
    """Menu items live under `<restaurants>/<id>/menu`."""

    def __init__(self, api: ApiClient):
        self._api = api
        self._collection_url = api.url(api.settings.api.endpoints.restaurants)

    def _menu_url(self, restaurant_id: str, item_id: str | None = None) -> str:
        url = f"{self._collection_url}/{path_segment(restaurant_id)}/menu"
        return f"{url}/{path_segment(item_id)}" if item_id else url

    def list_items(self, restaurant_id: str) -> list[MenuItem]:
        """All menu items of a restaurant; a restaurant without a menu yields []."""
        payload = self._api.get_or_none(self._menu_url(restaurant_id))
        return _MENU_ADAPTER.validate_python(unwrap_list(payload, "data", "menuItems", "items"))

    def get(self, restaurant_id: str, item_id: str) -> MenuItem | None:
        payload = self._api.get_or_none(self._menu_url(restaurant_id, item_id))
        return None if payload is None else MenuItem.model_validate(payload)

    def create(self, restaurant_id: str, item: MenuItemPayload) -> str:
        data = self._api.post(self._menu_url(restaurant_id), item.to_payload())
        new_id = str((data or {}).get("id") or "")
        if not new_id:
            raise RuntimeError("Create menu item response did not include an id.")
        return new_id

    def update(self, restaurant_id: str, item_id: str, item: MenuItemPayload) -> None:
        self._api.put(self._menu_url(restaurant_id, item_id), item.to_payload())

    def delete(self, restaurant_id: str, item_id: str) -> None:
        self._api.delete(self._menu_url(restaurant_id, item_id))
