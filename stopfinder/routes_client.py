"""Routing and geocoding client (Geoapify) with caching and response parsing."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from . import config
from .http import CachedJsonClient
from .models import Coordinate, InvalidCoordinateError, RoutePolyline

logger = logging.getLogger(__name__)


class GeocodingError(ValueError):
    pass


class RouteNotFoundError(ValueError):
    pass


class RoutesClient(CachedJsonClient):
    kind = "routes"

    def route(
        self,
        origin: Coordinate,
        destination: Coordinate,
        mode: Optional[str] = None,
    ) -> RoutePolyline:
        params = build_routing_params(origin, destination, mode or config.ROUTING_MODE)
        response = self.fetch_json(config.GEOAPIFY_ROUTING_URL, params, kind="routes")
        polyline = parse_route_polyline(response)
        if len(polyline) < 2:
            raise RouteNotFoundError(
                f"No route between ({origin.lat}, {origin.lng}) and ({destination.lat}, {destination.lng})"
            )
        logger.info("Route has %s points", len(polyline))
        return polyline

    def geocode(self, text: str) -> Coordinate:
        query = (text or "").strip()
        if not query:
            raise GeocodingError("Address is empty")
        params = {"text": query, "limit": "1", "format": "json"}
        response = self.fetch_json(config.GEOAPIFY_GEOCODE_URL, params, kind="geocode")
        coord = parse_geocode_response(response)
        if coord is None:
            raise GeocodingError(f"Could not geocode address: {query}")
        return coord


def build_routing_params(origin: Coordinate, destination: Coordinate, mode: str) -> Dict[str, Any]:
    return {
        "waypoints": f"{origin.lat},{origin.lng}|{destination.lat},{destination.lng}",
        "mode": mode,
    }


def parse_route_polyline(response: Optional[Dict[str, Any]]) -> RoutePolyline:
    """Flatten the first route feature into (lat, lng) points.

    GeoJSON stores positions as [lng, lat]; LineString and MultiLineString
    geometries are both accepted.
    """
    if not isinstance(response, dict):
        return ()
    features = response.get("features") or []
    if not features:
        return ()
    geometry = (features[0] or {}).get("geometry") or {}
    geom_type = geometry.get("type")
    coords = geometry.get("coordinates") or []
    if geom_type == "LineString":
        lines = [coords]
    elif geom_type == "MultiLineString":
        lines = coords
    else:
        return ()

    points: List[Coordinate] = []
    for line in lines:
        for position in line or []:
            if not position or len(position) < 2:
                continue
            point = Coordinate(lat=float(position[1]), lng=float(position[0]))
            # consecutive legs repeat the joint vertex
            if points and points[-1] == point:
                continue
            points.append(point)
    return tuple(points)


def parse_geocode_response(response: Optional[Dict[str, Any]]) -> Optional[Coordinate]:
    if not isinstance(response, dict):
        return None
    results = response.get("results")
    if results:
        first = results[0] or {}
    else:
        features = response.get("features") or []
        if not features:
            return None
        first = (features[0] or {}).get("properties") or {}
    try:
        return Coordinate.from_dict(first)
    except InvalidCoordinateError:
        return None
