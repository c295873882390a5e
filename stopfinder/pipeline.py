"""Pipeline orchestration."""
from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional, Sequence

from .aggregator import PlacesProvider, aggregate_candidates
from .coverage import plan_coverage
from .distance import annotate_distances
from .enrichment import RatingsProvider, enrich_candidates
from .models import (
    Category,
    Coordinate,
    EnrichedPlace,
    SearchMode,
    SearchResult,
    validate_coordinate,
    validate_polyline,
)
from .scoring import rank_places

logger = logging.getLogger(__name__)


def run_search(
    origin: Coordinate,
    category: Any,
    radius_miles: float,
    limit: int,
    origin_for_distance: Coordinate,
    mode: Any,
    route_polyline: Optional[Sequence[Coordinate]] = None,
    *,
    places_provider: PlacesProvider,
    ratings_provider: RatingsProvider,
    max_workers: Optional[int] = None,
) -> SearchResult:
    """Validate inputs, then coverage -> harvest -> distance -> enrich -> rank.

    Validation errors are raised before any provider call. Provider failures
    never escape; at worst the result is empty.
    """
    search_mode = SearchMode.parse(mode)
    validate_coordinate(origin, label="origin")
    validate_coordinate(origin_for_distance, label="origin_for_distance")
    polyline = None
    if search_mode is SearchMode.ROUTE and route_polyline is not None:
        polyline = validate_polyline(route_polyline)
    try:
        radius = float(radius_miles)
    except (TypeError, ValueError):
        raise ValueError(f"radius_miles must be a number (got {radius_miles!r})") from None
    if not math.isfinite(radius) or radius <= 0:
        raise ValueError("radius_miles must be positive")
    if int(limit) < 1:
        raise ValueError("limit must be >= 1")
    limit = int(limit)
    valid_category = Category.parse(category)

    logger.info("Stage 1: coverage (%s, radius %.1f mi)", search_mode.value, radius)
    coverage = plan_coverage(origin, radius)

    logger.info("Stage 2: harvest (%s points, %s)", len(coverage), valid_category.value)
    candidates = aggregate_candidates(
        places_provider, coverage, valid_category, limit, max_workers=max_workers
    )

    logger.info("Stage 3: distances")
    candidates = annotate_distances(candidates, search_mode, origin_for_distance, polyline)

    logger.info("Stage 4: enrichment (%s places)", len(candidates))
    enriched = enrich_candidates(ratings_provider, candidates, max_workers=max_workers)

    logger.info("Stage 5: ranking")
    ranked = rank_places(enriched, limit)

    summary: Dict[str, Any] = {
        "mode": search_mode.value,
        "category": valid_category.value,
        "radius_miles": radius,
        "limit": limit,
        "coverage_points": len(coverage),
        "candidates": len(candidates),
        "enriched": sum(1 for p in enriched if p.enriched),
        "returned": len(ranked),
    }
    return SearchResult(places=ranked, summary=summary)


def search(
    origin: Coordinate,
    category: Any,
    radius_miles: float,
    limit: int,
    origin_for_distance: Coordinate,
    mode: Any = SearchMode.ROUTE,
    route_polyline: Optional[Sequence[Coordinate]] = None,
    *,
    places_provider: PlacesProvider,
    ratings_provider: RatingsProvider,
    max_workers: Optional[int] = None,
) -> List[EnrichedPlace]:
    return run_search(
        origin,
        category,
        radius_miles,
        limit,
        origin_for_distance,
        mode,
        route_polyline,
        places_provider=places_provider,
        ratings_provider=ratings_provider,
        max_workers=max_workers,
    ).places


def render_summary(summary: Dict[str, Any]) -> List[str]:
    return [
        "Search summary:",
        f"- mode: {summary.get('mode')}",
        f"- category: {summary.get('category')}",
        f"- radius_miles: {summary.get('radius_miles')}",
        f"- coverage_points: {summary.get('coverage_points')}",
        f"- candidates: {summary.get('candidates')}",
        f"- enriched: {summary.get('enriched')}",
        f"- returned: {summary.get('returned')} (limit {summary.get('limit')})",
    ]
