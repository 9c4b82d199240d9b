"""
PourRice CLI entrypoint.

Quick local access to the restaurant API and the nearby ranking without the mobile
app. `nearby` and `featured` can run against an exported catalog (`--catalog`) or
against the live API (cached on disk).
"""

from __future__ import annotations

import argparse
import json
import random
from typing import Any

from pourrice.catalog.loader import load_restaurants, save_restaurants
from pourrice.clients.factory import build_api, build_cache
from pourrice.clients.restaurants import RestaurantClient
from pourrice.config.settings import Settings, get_settings
from pourrice.core.geo import GeoPoint, distance_m, format_distance
from pourrice.core.logging import configure_logging
from pourrice.domain.models import Language, Restaurant, SearchRequest
from pourrice.ranking.featured import select_featured
from pourrice.ranking.nearby import rank_nearby_with_distance


def _language(args: argparse.Namespace, settings: Settings) -> Language:
    return "TC" if getattr(args, "tc", False) else settings.search.default_language


def _restaurant_client(settings: Settings) -> RestaurantClient:
    return RestaurantClient(build_api(settings), build_cache(settings))


def _load(args: argparse.Namespace, settings: Settings) -> list[Restaurant]:
    if args.catalog:
        return load_restaurants(args.catalog)
    return _restaurant_client(settings).list_all(use_cache=not args.refresh)


def _describe(r: Restaurant, lang: Language) -> str:
    return f"{r.display_name(lang)} ({r.display_district(lang)})"


def _cmd_nearby(args: argparse.Namespace) -> int:
    """Handle the `nearby` subcommand."""
    settings = get_settings()
    lang = _language(args, settings)
    origin = GeoPoint(lat=float(args.lat), lon=float(args.lon))
    limit = int(args.limit) if args.limit is not None else settings.ranking.nearby_limit

    report = rank_nearby_with_distance(origin, _load(args, settings), limit)

    if args.json:
        payload = {
            "origin": {"lat": origin.lat, "lon": origin.lon},
            "total": report.total,
            "missing_location": report.missing,
            "results": [
                {**r.to_api_payload(), "distance_m": round(d, 1), "distance": format_distance(d)}
                for r, d in report.items
            ],
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0

    if not report.items:
        print("No restaurants with a known location.")
    for i, (r, d) in enumerate(report.items, start=1):
        print(f"{i:>2}. {format_distance(d):>8}  {_describe(r, lang)}")
    if report.missing:
        print(f"{report.missing} of {report.total} restaurants had no location.")
    return 0


def _cmd_featured(args: argparse.Namespace) -> int:
    settings = get_settings()
    lang = _language(args, settings)
    count = int(args.count) if args.count is not None else settings.ranking.featured_count
    rng = random.Random(args.seed) if args.seed is not None else None
    for r in select_featured(_load(args, settings), count, rng=rng):
        print(f"- {_describe(r, lang)}")
    return 0


def _cmd_search(args: argparse.Namespace) -> int:
    settings = get_settings()
    lang = _language(args, settings)
    around = None
    if args.lat is not None and args.lon is not None:
        around = GeoPoint(lat=float(args.lat), lon=float(args.lon))
    request = SearchRequest(
        query=args.query or "",
        districts=args.district or [],
        keywords=args.keyword or [],
        language=lang,
        page=int(args.page),
        hits_per_page=int(args.hits_per_page or settings.search.hits_per_page),
        around=around,
        around_radius_m=args.radius,
    )
    response = _restaurant_client(settings).search(request)

    if args.json:
        print(json.dumps(response.model_dump(mode="json", by_alias=True), ensure_ascii=False, indent=2))
        return 0

    print(f"{response.nb_hits} hits, page {response.page + 1} of {max(response.nb_pages, 1)}")
    for r in response.hits:
        line = f"- {_describe(r, lang)}"
        if around is not None and r.location is not None:
            line += f"  {format_distance(distance_m(around, r.location))}"
        print(line)
    if response.next_page is not None:
        print(f"More results: --page {response.next_page}")
    return 0


def _cmd_distance(args: argparse.Namespace) -> int:
    d = distance_m(GeoPoint(lat=args.lat1, lon=args.lon1), GeoPoint(lat=args.lat2, lon=args.lon2))
    print(f"{format_distance(d)} ({d:.1f} m)")
    return 0


def _cmd_export_catalog(args: argparse.Namespace) -> int:
    settings = get_settings()
    restaurants = _restaurant_client(settings).list_all(use_cache=False)
    path = save_restaurants(args.output, restaurants)
    print(f"Wrote {len(restaurants)} restaurants to {path}")
    return 0


def _add_catalog_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--catalog", type=str, default=None, help="Exported catalog JSON (skips the API)")
    p.add_argument("--refresh", action="store_true", help="Bypass the on-disk restaurant cache")
    p.add_argument("--tc", action="store_true", help="Display Traditional Chinese names")


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the PourRice CLI."""
    parser = argparse.ArgumentParser(prog="pourrice")
    parser.add_argument("--log-level", type=str, default=None, help="Override POURRICE_LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    near = sub.add_parser("nearby", help="List the restaurants closest to a position.")
    near.add_argument("--lat", required=True, type=float)
    near.add_argument("--lon", required=True, type=float)
    near.add_argument("--limit", type=int, default=None)
    near.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    _add_catalog_args(near)
    near.set_defaults(func=_cmd_nearby)

    feat = sub.add_parser("featured", help="Pick a random selection of restaurants.")
    feat.add_argument("--count", type=int, default=None)
    feat.add_argument("--seed", type=int, default=None, help="Seed for a repeatable selection")
    _add_catalog_args(feat)
    feat.set_defaults(func=_cmd_featured)

    search = sub.add_parser("search", help="Search restaurants by text, district and keyword.")
    search.add_argument("query", nargs="?", default="")
    search.add_argument("--district", action="append", default=[])
    search.add_argument("--keyword", action="append", default=[])
    search.add_argument("--page", type=int, default=0)
    search.add_argument("--hits-per-page", dest="hits_per_page", type=int, default=None)
    search.add_argument("--lat", type=float, default=None)
    search.add_argument("--lon", type=float, default=None)
    search.add_argument("--radius", type=int, default=None, help="Search radius in meters around --lat/--lon")
    search.add_argument("--tc", action="store_true", help="Search and display in Traditional Chinese")
    search.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    search.set_defaults(func=_cmd_search)

    dist = sub.add_parser("distance", help="Great-circle distance between two points.")
    dist.add_argument("lat1", type=float)
    dist.add_argument("lon1", type=float)
    dist.add_argument("lat2", type=float)
    dist.add_argument("lon2", type=float)
    dist.set_defaults(func=_cmd_distance)

    export = sub.add_parser("export-catalog", help="Download all restaurants into a catalog JSON file.")
    export.add_argument("output", type=str)
    export.set_defaults(func=_cmd_export_catalog)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m pourrice.cli`."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())
