"""Candidate harvesting across coverage points."""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Protocol, Sequence, Set

from . import config
from .concurrency import fan_out
from .coverage import CoveragePoint
from .models import Candidate, Category, Coordinate, InvalidCoordinateError, validate_coordinate

logger = logging.getLogger(__name__)


class PlacesProvider(Protocol):
    def search(
        self, center: Coordinate, radius_m: float, category: str, limit: int
    ) -> List[Candidate]:
        ...


def aggregate_candidates(
    places_provider: PlacesProvider,
    coverage: Sequence[CoveragePoint],
    category: Category,
    limit: int,
    max_workers: Optional[int] = None,
) -> List[Candidate]:
    """Search every coverage point concurrently and merge the results.

    A failed point contributes nothing; if every point fails the result is
    simply empty.
    """
    per_query_limit = max(1, min(int(limit), config.PLACES_MAX_LIMIT))

    def search_point(point: CoveragePoint) -> List[Candidate]:
        return list(
            places_provider.search(point.coordinate, point.radius_m, category.value, per_query_limit)
            or []
        )

    def on_error(point: CoveragePoint, exc: Exception) -> List[Candidate]:
        logger.warning(
            "Places search failed at (%.5f, %.5f): %s",
            point.coordinate.lat,
            point.coordinate.lng,
            exc,
        )
        return []

    batches = fan_out(search_point, list(coverage), on_error, max_workers=max_workers)
    merged = merge_candidates(batches)
    logger.info(
        "Aggregated %s unique candidates from %s coverage points", len(merged), len(coverage)
    )
    return merged


def merge_candidates(batches: Iterable[Iterable[Candidate]]) -> List[Candidate]:
    seen: Set[str] = set()
    merged: List[Candidate] = []
    for batch in batches:
        for candidate in batch:
            if not is_complete(candidate):
                logger.debug("Dropping incomplete place record: %r", candidate)
                continue
            if candidate.place_id in seen:
                continue
            seen.add(candidate.place_id)
            merged.append(candidate)
    return merged


def is_complete(candidate: Candidate) -> bool:
    if not candidate.place_id or not candidate.name:
        return False
    try:
        validate_coordinate(candidate.coordinate)
    except InvalidCoordinateError:
        return False
    return True
