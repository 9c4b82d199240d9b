import copy
import math
from dataclasses import dataclass

from pourrice.core.geo import GeoPoint, distance_m
from pourrice.domain.models import Restaurant
from pourrice.ranking.nearby import partition_by_location, rank_nearby, rank_nearby_with_distance

ORIGIN = GeoPoint(22.3193, 114.1694)


@dataclass
class Place:
    name: str
    location: GeoPoint | None


def _places(n: int) -> list[Place]:
    # Distinct coordinates, deliberately not in distance order.
    return [Place(f"p{i}", GeoPoint(22.3193 + ((i * 7) % n) * 0.001, 114.1694)) for i in range(n)]


def test_rank_nearby_empty_input():
    assert rank_nearby(ORIGIN, [], 10) == []


def test_rank_nearby_all_missing_locations():
    places = [Place("a", None), Place("b", None)]
    assert rank_nearby(ORIGIN, places, 10) == []

    report = rank_nearby_with_distance(ORIGIN, places, 10)
    assert report.items == []
    assert report.total == 2
    assert report.missing == 2


def test_rank_nearby_returns_closest_sorted_subset():
    places = _places(15)
    out = rank_nearby(ORIGIN, places, 10)

    assert len(out) == 10
    assert all(p in places for p in out)
    distances = [distance_m(ORIGIN, p.location) for p in out]
    assert distances == sorted(distances)

    expected = sorted(places, key=lambda p: distance_m(ORIGIN, p.location))[:10]
    assert out == expected


def test_rank_nearby_is_stable_for_equal_distances():
    same = GeoPoint(22.30, 114.17)
    first = Place("first", same)
    second = Place("second", same)
    far = Place("far", GeoPoint(22.50, 114.30))

    out = rank_nearby(ORIGIN, [far, first, second], 3)
    assert [p.name for p in out] == ["first", "second", "far"]


def test_rank_nearby_is_idempotent_and_pure():
    places = _places(15) + [Place("nowhere", None)]
    snapshot = copy.deepcopy(places)

    first = rank_nearby(ORIGIN, places, 10)
    second = rank_nearby(ORIGIN, places, 10)

    assert first == second
    assert places == snapshot


def test_rank_nearby_limit_larger_than_input_and_non_positive():
    places = _places(3)
    assert len(rank_nearby(ORIGIN, places, 10)) == 3
    assert rank_nearby(ORIGIN, places, 0) == []
    assert rank_nearby(ORIGIN, places, -5) == []


def test_report_counts_missing_and_nan_locations():
    places = [
        Place("near", GeoPoint(22.32, 114.17)),
        Place("none", None),
        Place("nan", GeoPoint(math.nan, 114.17)),
    ]
    report = rank_nearby_with_distance(ORIGIN, places, 10)

    assert [p.name for p in report.entities] == ["near"]
    assert report.total == 3
    assert report.missing == 2
    assert report.items[0][1] == distance_m(ORIGIN, places[0].location)


def test_partition_preserves_order():
    places = [Place("a", None), Place("b", GeoPoint(1, 1)), Place("c", None), Place("d", GeoPoint(2, 2))]
    located, missing = partition_by_location(places)
    assert [p.name for p, _ in located] == ["b", "d"]
    assert [p.name for p in missing] == ["a", "c"]


def test_rank_nearby_custom_point_getter():
    rows = [{"id": "x", "pt": (22.40, 114.20)}, {"id": "y", "pt": (22.32, 114.17)}, {"id": "z", "pt": None}]

    def get_point(row):
        return GeoPoint(*row["pt"]) if row["pt"] else None

    out = rank_nearby(ORIGIN, rows, 10, get_point=get_point)
    assert [r["id"] for r in out] == ["y", "x"]


def test_rank_nearby_restaurants_requires_both_coordinates():
    restaurants = [
        Restaurant.model_validate({"id": "lat-only", "Latitude": 22.32}),
        Restaurant.model_validate({"id": "both", "Latitude": 22.32, "Longitude": 114.17}),
    ]
    assert [r.id for r in rank_nearby(ORIGIN, restaurants, 10)] == ["both"]


def test_infinite_coordinates_count_as_missing():
    places = [
        Place("near", GeoPoint(22.32, 114.17)),
        Place("inf", GeoPoint(math.inf, 114.17)),
    ]
    report = rank_nearby_with_distance(ORIGIN, places, 10)

    assert [p.name for p in report.entities] == ["near"]
    assert report.missing == 1


def test_restaurants_with_overflowing_coordinates_are_skipped():
    restaurants = [
        Restaurant.model_validate({"id": "ok", "Latitude": 22.32, "Longitude": 114.17}),
        Restaurant.model_validate({"id": "inf", "Latitude": "inf", "Longitude": 114.17}),
        Restaurant.model_validate({"id": "huge", "Latitude": 1e309, "Longitude": 114.17}),
    ]
    report = rank_nearby_with_distance(ORIGIN, restaurants, 10)

    assert restaurants[1].location is None
    assert [r.id for r in report.entities] == ["ok"]
    assert report.missing == 2
