"""Geospatial helpers.

Distances are great-circle miles. Segment projection works on raw lat/lng
as planar coordinates, which is close enough at street scale.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from . import config
from .models import Coordinate


@dataclass(frozen=True)
class PolylineMatch:
    distance: float
    segment_index: int
    projected_point: Coordinate


def haversine_miles(a: Coordinate, b: Coordinate) -> float:
    r = config.EARTH_RADIUS_MILES
    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    dphi = math.radians(b.lat - a.lat)
    dlambda = math.radians(b.lng - a.lng)

    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return r * c


def project_onto_segment(point: Coordinate, seg_start: Coordinate, seg_end: Coordinate) -> Coordinate:
    dx = seg_end.lng - seg_start.lng
    dy = seg_end.lat - seg_start.lat
    len2 = dx * dx + dy * dy
    if len2 == 0:
        return seg_start

    t = ((point.lng - seg_start.lng) * dx + (point.lat - seg_start.lat) * dy) / len2
    t = max(0.0, min(1.0, t))
    return Coordinate(lat=seg_start.lat + t * dy, lng=seg_start.lng + t * dx)


def nearest_point_on_polyline(point: Coordinate, polyline: Sequence[Coordinate]) -> PolylineMatch:
    if len(polyline) < 2:
        raise ValueError("Polyline needs at least 2 points")

    best: Optional[PolylineMatch] = None
    for i in range(len(polyline) - 1):
        projected = project_onto_segment(point, polyline[i], polyline[i + 1])
        dist = haversine_miles(point, projected)
        # strict < keeps the first segment on ties
        if best is None or dist < best.distance:
            best = PolylineMatch(distance=dist, segment_index=i, projected_point=projected)
    assert best is not None
    return best


def route_distance_miles(point: Coordinate, polyline: Sequence[Coordinate]) -> float:
    """Miles along ``polyline`` from its start to the spot nearest ``point``."""
    match = nearest_point_on_polyline(point, polyline)
    total = 0.0
    for i in range(match.segment_index):
        total += haversine_miles(polyline[i], polyline[i + 1])
    total += haversine_miles(polyline[match.segment_index], match.projected_point)
    return total


def polyline_length_miles(polyline: Sequence[Coordinate]) -> float:
    total = 0.0
    for i in range(len(polyline) - 1):
        total += haversine_miles(polyline[i], polyline[i + 1])
    return total


def point_along_polyline(polyline: Sequence[Coordinate], fraction: float) -> Coordinate:
    """Interpolate the point at ``fraction`` (0..1) of the polyline length."""
    if not polyline:
        raise ValueError("Polyline is empty")
    if len(polyline) == 1:
        return polyline[0]
    fraction = max(0.0, min(1.0, fraction))
    target = polyline_length_miles(polyline) * fraction
    walked = 0.0
    for i in range(len(polyline) - 1):
        start = polyline[i]
        end = polyline[i + 1]
        seg = haversine_miles(start, end)
        if seg > 0 and walked + seg >= target:
            t = (target - walked) / seg
            return Coordinate(
                lat=start.lat + t * (end.lat - start.lat),
                lng=start.lng + t * (end.lng - start.lng),
            )
        walked += seg
    return polyline[-1]


def midpoint(a: Coordinate, b: Coordinate) -> Coordinate:
    """Geographic midpoint of the great-circle arc between two points."""
    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    lambda1 = math.radians(a.lng)
    dlambda = math.radians(b.lng - a.lng)

    bx = math.cos(phi2) * math.cos(dlambda)
    by = math.cos(phi2) * math.sin(dlambda)
    phi_m = math.atan2(
        math.sin(phi1) + math.sin(phi2),
        math.sqrt((math.cos(phi1) + bx) ** 2 + by ** 2),
    )
    lambda_m = lambda1 + math.atan2(by, math.cos(phi1) + bx)
    lng = (math.degrees(lambda_m) + 540.0) % 360.0 - 180.0
    return Coordinate(lat=math.degrees(phi_m), lng=lng)


def format_miles(value: float) -> str:
    return f"{value:.1f} mi"
