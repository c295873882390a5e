"""Attach the search-mode distance to each candidate."""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from .geo import format_miles, haversine_miles, route_distance_miles
from .models import Candidate, Coordinate, SearchMode

logger = logging.getLogger(__name__)


def candidate_distance_miles(
    candidate: Candidate,
    mode: SearchMode,
    origin: Coordinate,
    polyline: Optional[Sequence[Coordinate]] = None,
) -> float:
    if candidate.coordinate is None:
        raise ValueError(f"Candidate {candidate.place_id} has no coordinate")
    if mode is SearchMode.ROUTE and polyline:
        return route_distance_miles(candidate.coordinate, polyline)
    return haversine_miles(candidate.coordinate, origin)


def annotate_distances(
    candidates: Iterable[Candidate],
    mode: SearchMode,
    origin: Coordinate,
    polyline: Optional[Sequence[Coordinate]] = None,
) -> List[Candidate]:
    """Set ``distance`` on every candidate; later stages must not change it.

    Route mode without a polyline falls back to straight-line distance.
    """
    if mode is SearchMode.ROUTE and not polyline:
        logger.warning("Route mode without a route polyline; using straight-line distance")
    annotated: List[Candidate] = []
    for candidate in candidates:
        candidate.distance = format_miles(candidate_distance_miles(candidate, mode, origin, polyline))
        annotated.append(candidate)
    return annotated
