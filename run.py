"""CLI entrypoint."""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv as _load_dotenv

from stopfinder import config
from stopfinder.cache import shared_cache
from stopfinder.geo import midpoint, point_along_polyline, polyline_length_miles
from stopfinder.http import HttpClient, RequestMetrics
from stopfinder.models import Category, SearchMode
from stopfinder.pipeline import render_summary, run_search
from stopfinder.places_client import PlacesClient
from stopfinder.ratings_client import RatingsClient
from stopfinder.reporting import (
    atomic_write_text,
    ensure_dir,
    render_results_table,
    write_results_csv,
    write_results_json,
)
from stopfinder.routes_client import RoutesClient

logger = logging.getLogger("stopfinder.run")


def _repo_root() -> Path:
    return Path(__file__).resolve().parent


def load_env(path: str = ".env", root_dir: Optional[Path] = None) -> None:
    """Optionally load a repo-root .env file without overriding real env vars."""
    root = Path(root_dir) if root_dir else _repo_root()
    env_path = (root / path).resolve()
    if not env_path.exists():
        return
    _load_dotenv(dotenv_path=env_path, override=False)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Find and rank places along a route or around a meetup point"
    )
    parser.add_argument(
        "mode",
        nargs="?",
        choices=[m.value for m in SearchMode],
        default="route",
        help="route: one search circle at the route's halfway point; meetup: circle at the midpoint",
    )
    parser.add_argument("--from", dest="origin", type=str, default=None, help="Origin address")
    parser.add_argument("--to", dest="destination", type=str, default=None, help="Destination or second origin")
    parser.add_argument(
        "--category",
        type=str,
        default=Category.default().value,
        help="Place category (unknown values fall back to catering.restaurant)",
    )
    parser.add_argument(
        "--radius-miles",
        type=float,
        default=None,
        help="Search radius around the center (route mode does not cover the whole route)",
    )
    parser.add_argument("--limit", type=int, default=None)
    parser.add_argument("--max-workers", type=int, default=None)
    parser.add_argument("--no-cache", action="store_true")
    parser.add_argument("--format", choices=["table", "json", "csv"], default="table")
    parser.add_argument("--out", type=str, default=None, help="Write results to this file")
    parser.add_argument("--config", type=str, default=None, help="Path to search_config.json")
    parser.add_argument("--preflight", action="store_true", help="Run offline checks only")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def run_preflight() -> int:
    ok = True
    for name in (config.GEOAPIFY_API_KEY_ENV, config.TRIPADVISOR_API_KEY_ENV):
        if (os.environ.get(name) or "").strip():
            print(f"{name}: OK")
        else:
            print(f"{name}: MISSING")
            ok = False
    print(
        "Coverage: provider_max_radius_m={max_m}, grid_step_deg={step}, max_workers={workers}".format(
            max_m=config.PROVIDER_MAX_RADIUS_M,
            step=config.GRID_STEP_DEG,
            workers=config.MAX_WORKERS,
        )
    )
    print("Preflight: PASS" if ok else "Preflight: FAIL")
    return 0 if ok else 1


def main(argv: Optional[List[str]] = None) -> int:
    load_env()
    args = parse_args(argv)
    config.load_search_config(args.config)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.preflight:
        return run_preflight()

    if not args.origin or not args.destination:
        print("Both --from and --to are required", file=sys.stderr)
        return 1

    geoapify_key = (os.environ.get(config.GEOAPIFY_API_KEY_ENV) or "").strip()
    tripadvisor_key = (os.environ.get(config.TRIPADVISOR_API_KEY_ENV) or "").strip()
    if not geoapify_key or not tripadvisor_key:
        print(
            f"Missing {config.GEOAPIFY_API_KEY_ENV} or {config.TRIPADVISOR_API_KEY_ENV} in environment",
            file=sys.stderr,
        )
        return 1

    radius_miles = args.radius_miles if args.radius_miles is not None else config.DEFAULT_RADIUS_MILES
    limit = args.limit if args.limit is not None else config.DEFAULT_LIMIT
    mode = SearchMode.parse(args.mode)

    metrics = RequestMetrics()
    http_client = HttpClient(
        timeout=config.HTTP_TIMEOUT_SECONDS,
        retry_max=config.HTTP_RETRY_MAX,
        backoff_base=config.HTTP_BACKOFF_BASE,
        backoff_max=config.HTTP_BACKOFF_MAX,
    )
    cache = shared_cache()
    try:
        routes_client = RoutesClient(http_client, geoapify_key, cache, no_cache=args.no_cache, metrics=metrics)
        places_client = PlacesClient(http_client, geoapify_key, cache, no_cache=args.no_cache, metrics=metrics)
        ratings_client = RatingsClient(
            http_client, tripadvisor_key, cache, no_cache=args.no_cache, metrics=metrics
        )

        start = routes_client.geocode(args.origin)
        end = routes_client.geocode(args.destination)
        route_polyline = None
        if mode is SearchMode.ROUTE:
            route_polyline = routes_client.route(start, end)
            center = point_along_polyline(route_polyline, 0.5)
            distance_origin = start
            route_miles = polyline_length_miles(route_polyline)
            logger.info("Route length %.1f mi", route_miles)
            if radius_miles < route_miles / 2:
                logger.warning(
                    "Radius %.1f mi around the route midpoint misses the ends of a %.1f mi route",
                    radius_miles,
                    route_miles,
                )
        else:
            center = midpoint(start, end)
            distance_origin = center

        result = run_search(
            center,
            args.category,
            radius_miles,
            limit,
            distance_origin,
            mode,
            route_polyline,
            places_provider=places_client,
            ratings_provider=ratings_client,
            max_workers=args.max_workers,
        )
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        http_client.close()

    if args.out:
        ensure_dir(os.path.dirname(os.path.abspath(args.out)))
        if args.format == "csv":
            write_results_csv(args.out, result.places)
        elif args.format == "json":
            write_results_json(args.out, result.places, result.summary)
        else:
            atomic_write_text(args.out, "\n".join(render_results_table(result.places)) + "\n")
        print(f"Done. Results written to {args.out}")
    elif args.format == "json":
        print(json.dumps([p.to_dict() for p in result.places], ensure_ascii=False, indent=2))
    else:
        for line in render_results_table(result.places):
            print(line)

    for line in render_summary(result.summary):
        logger.info(line)
    logger.info("Requests: %s", metrics.as_dict())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
