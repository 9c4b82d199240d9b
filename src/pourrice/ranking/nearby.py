"""
Nearby ranking: order located entities by distance from the user.

Entities without coordinates are excluded rather than treated as "distance 0" or
"infinitely far", and the exclusion is reported (`NearbyReport.missing`) so callers
can say "3 of 120 restaurants had no location".

Everything here is pure: inputs are never mutated and the output depends only on
(origin, entities, limit). Ties keep input order (Python's sort is stable).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, Generic, Iterable, TypeVar

from pourrice.core.geo import GeoPoint, distance_m

T = TypeVar("T")

PointGetter = Callable[[T], GeoPoint | None]


def location_of(entity: object) -> GeoPoint | None:
    """Default point getter: the entity's `location` attribute (None if absent)."""
    point = getattr(entity, "location", None)
    return point if isinstance(point, GeoPoint) else None


def partition_by_location(
    entities: Iterable[T],
    get_point: PointGetter = location_of,
) -> tuple[list[tuple[T, GeoPoint]], list[T]]:
    """Split entities into `(entity, point)` pairs and entities lacking a usable point.

    Input order is preserved on both sides.
    """
    located: list[tuple[T, GeoPoint]] = []
    missing: list[T] = []
    for entity in entities:
        point = get_point(entity)
        if point is None or point.lat is None or point.lon is None:
            missing.append(entity)
        else:
            located.append((entity, point))
    return located, missing


@dataclass(frozen=True)
class NearbyReport(Generic[T]):
    """Ranked entities with their distances plus exclusion counts."""

    items: list[tuple[T, float]] = field(default_factory=list)
    total: int = 0
    missing: int = 0

    @property
    def entities(self) -> list[T]:
        return [entity for entity, _ in self.items]


def rank_nearby_with_distance(
    origin: GeoPoint,
    entities: Iterable[T],
    limit: int,
    *,
    get_point: PointGetter = location_of,
) -> NearbyReport[T]:
    """Rank located entities by distance from `origin` and keep the closest `limit`.

    Entities whose distance is not a number (e.g. NaN coordinates) cannot be ordered and
    are counted as missing.
    """
    entities = list(entities)
    located, missing = partition_by_location(entities, get_point)

    scored: list[tuple[T, float]] = []
    unordered = 0
    for entity, point in located:
        d = distance_m(origin, point)
        if math.isnan(d):
            unordered += 1
            continue
        scored.append((entity, d))

    scored.sort(key=lambda pair: pair[1])
    top = scored[: max(0, int(limit))]
    return NearbyReport(items=top, total=len(entities), missing=len(missing) + unordered)


def rank_nearby(
    origin: GeoPoint,
    entities: Iterable[T],
    limit: int,
    *,
    get_point: PointGetter = location_of,
) -> list[T]:
    """Return up to `limit` located entities, closest first. Never raises on empty input."""
    return rank_nearby_with_distance(origin, entities, limit, get_point=get_point).entities
