"""Places API client (Geoapify) with caching and response parsing."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from . import config
from .http import CachedJsonClient
from .models import Candidate, Coordinate, InvalidCoordinateError

logger = logging.getLogger(__name__)


class PlacesClient(CachedJsonClient):
    kind = "places"

    def search(
        self,
        center: Coordinate,
        radius_m: float,
        category: str,
        limit: int = config.PLACES_MAX_LIMIT,
    ) -> List[Candidate]:
        params = build_places_params(center, radius_m, category, limit)
        try:
            response = self.fetch_json(config.GEOAPIFY_PLACES_URL, params)
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Places API error at (%.5f, %.5f): %s", center.lat, center.lng, exc)
            return []
        return parse_places_response(response)


def build_places_params(
    center: Coordinate,
    radius_m: float,
    category: str,
    limit: int,
) -> Dict[str, Any]:
    radius = min(float(radius_m), config.PROVIDER_MAX_RADIUS_M)
    return {
        "categories": category,
        "filter": f"circle:{center.lng},{center.lat},{radius:g}",
        "bias": f"proximity:{center.lng},{center.lat}",
        "limit": str(max(1, min(int(limit), config.PLACES_MAX_LIMIT))),
        "lang": config.PLACES_LANG,
        "conditions": config.PLACES_CONDITIONS,
        "fields": config.PLACES_FIELDS,
    }


# Adapter/mapper for Places response fields

def parse_places_response(response: Optional[Dict[str, Any]]) -> List[Candidate]:
    if not isinstance(response, dict):
        return []
    features = response.get("features") or []
    parsed: List[Candidate] = []
    for feature in features:
        props = (feature or {}).get("properties") or {}
        place_id = props.get("place_id")
        if not place_id:
            continue
        parsed.append(
            Candidate(
                place_id=str(place_id),
                name=props.get("name") or "",
                coordinate=_parse_coordinate(props),
                address_line1=props.get("address_line1"),
                address_line2=props.get("address_line2"),
                categories=tuple(props.get("categories") or ()),
                website=props.get("website"),
            )
        )
    return parsed


def _parse_coordinate(props: Dict[str, Any]) -> Optional[Coordinate]:
    try:
        return Coordinate.from_dict(props)
    except InvalidCoordinateError:
        return None
