"""Composite ranking: rating-weighted, distance-penalized."""
from __future__ import annotations

import re
from typing import Any, Iterable, List, Optional

from . import config
from .models import EnrichedPlace

_LEADING_NUMBER = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)")


def parse_distance_miles(distance: Optional[str]) -> float:
    """Read the leading number of a ``"2.3 mi"`` string; 0.0 if there is none."""
    if distance is None:
        return 0.0
    match = _LEADING_NUMBER.match(str(distance))
    if not match:
        return 0.0
    return float(match.group(1))


def safe_float(value: Any) -> float:
    try:
        return float(value)
    except Exception:
        return 0.0


def composite_score(place: EnrichedPlace) -> float:
    # rating (0-5) and miles are combined without normalization
    return config.RANK_RATING_WEIGHT * safe_float(place.rating) - parse_distance_miles(place.distance)


def rank_places(places: Iterable[EnrichedPlace], limit: int) -> List[EnrichedPlace]:
    if limit <= 0:
        return []
    ranked = sorted(places, key=composite_score, reverse=True)
    return ranked[:limit]
