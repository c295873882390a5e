"""Ratings API client (TripAdvisor content API) with caching and response parsing."""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

import requests

from . import config
from .http import CachedJsonClient
from .models import Coordinate, RatingRecord

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]")


class RatingsClient(CachedJsonClient):
    kind = "ratings"
    api_key_param = "key"

    def lookup(self, name: str, coordinate: Coordinate) -> Optional[RatingRecord]:
        """Find ``name`` near ``coordinate`` and return its rating details.

        Returns None when nothing matches. If the search hits but the details
        call fails, the record carries only the matched location id.
        """
        if not (name or "").strip():
            return None
        try:
            search = self.fetch_json(
                config.TRIPADVISOR_SEARCH_URL, build_search_params(name, coordinate)
            )
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Ratings search failed for %s: %s", name, exc)
            return None

        match = best_match(name, (search or {}).get("data") or [])
        if match is None:
            logger.debug("No ratings results found for: %s", name)
            return None

        location_id = str(match.get("location_id") or "")
        if not location_id:
            return None
        try:
            details = self.fetch_json(
                config.TRIPADVISOR_DETAILS_URL_TEMPLATE.format(location_id=location_id),
                {"language": config.RATINGS_LANGUAGE, "currency": config.RATINGS_CURRENCY},
            )
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Ratings details failed for %s (%s): %s", name, location_id, exc)
            details = None
        return parse_rating_record(match, details)


def build_search_params(name: str, coordinate: Coordinate) -> Dict[str, Any]:
    return {
        "searchQuery": name,
        "latLong": f"{coordinate.lat},{coordinate.lng}",
        "radius": str(config.RATINGS_SEARCH_RADIUS),
        "radiusUnit": config.RATINGS_SEARCH_RADIUS_UNIT,
        "language": config.RATINGS_LANGUAGE,
    }


def normalize_name(name: str) -> str:
    return _NON_ALNUM.sub("", (name or "").lower())


def best_match(name: str, results: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not results:
        return None
    wanted = normalize_name(name)
    for item in results:
        if normalize_name(item.get("name") or "") == wanted:
            return item
    return results[0]


def parse_rating_record(match: Dict[str, Any], details: Optional[Dict[str, Any]]) -> RatingRecord:
    location_id = str(match.get("location_id") or "") or None
    provider_distance = _format_provider_distance(match.get("distance"))
    if not isinstance(details, dict) or not details:
        return RatingRecord(location_id=location_id, provider_distance=provider_distance)

    cuisine = tuple(
        str(c.get("name"))
        for c in details.get("cuisine") or []
        if isinstance(c, dict) and c.get("name")
    )
    return RatingRecord(
        location_id=str(details.get("location_id") or location_id or "") or None,
        rating=_parse_float(details.get("rating")),
        review_count=_parse_int(details.get("num_reviews")),
        price_tier=details.get("price_level") or None,
        website=details.get("website") or match.get("website") or None,
        phone=details.get("phone") or match.get("phone") or None,
        structured_address=_parse_address(details.get("address_obj"))
        or _parse_address(match.get("address_obj")),
        cuisine_tags=cuisine,
        provider_distance=provider_distance,
    )


def _parse_address(address_obj: Any) -> Optional[str]:
    if not isinstance(address_obj, dict):
        return None
    text = address_obj.get("address_string")
    if text:
        return str(text)
    parts = [address_obj.get("street1"), address_obj.get("city")]
    parts = [str(p) for p in parts if p]
    return ", ".join(parts) or None


def _format_provider_distance(value: Any) -> Optional[str]:
    number = _parse_float(value)
    if number is None:
        return None
    return f"{number:.1f} mi"


def _parse_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _parse_int(value: Any) -> Optional[int]:
    number = _parse_float(value)
    if number is None:
        return None
    return max(0, int(number))
