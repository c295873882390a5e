"""Coverage planning: tile a search radius into provider-sized queries."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional

from . import config
from .models import Coordinate


@dataclass(frozen=True)
class CoveragePoint:
    coordinate: Coordinate
    radius_m: float


def miles_to_meters(miles: float) -> float:
    return miles * config.METERS_PER_MILE


def grid_multiplier(radius_m: float, provider_max_m: float) -> int:
    return int(math.ceil(radius_m / provider_max_m))


def plan_coverage(
    origin: Coordinate,
    radius_miles: float,
    provider_max_m: Optional[float] = None,
    grid_step_deg: Optional[float] = None,
) -> List[CoveragePoint]:
    """Return the search centers needed to cover ``radius_miles`` around origin.

    The origin always comes first. Larger radii add a square grid of
    ``grid_step_deg`` steps; the step is not corrected for latitude, so the
    grid is sparser in longitude near the poles. Every point is searched with
    the per-query provider cap.
    """
    if not math.isfinite(radius_miles) or radius_miles <= 0:
        raise ValueError("radius_miles must be a positive number")
    max_m = float(provider_max_m if provider_max_m is not None else config.PROVIDER_MAX_RADIUS_M)
    step = float(grid_step_deg if grid_step_deg is not None else config.GRID_STEP_DEG)
    if max_m <= 0:
        raise ValueError("provider_max_m must be positive")

    radius_m = miles_to_meters(radius_miles)
    per_point_m = min(radius_m, max_m)
    points = [CoveragePoint(coordinate=origin, radius_m=per_point_m)]
    if radius_m <= max_m:
        return points

    n = grid_multiplier(radius_m, max_m)
    for i in range(-n, n + 1):
        for j in range(-n, n + 1):
            if i == 0 and j == 0:
                continue
            points.append(
                CoveragePoint(
                    coordinate=Coordinate(lat=origin.lat + i * step, lng=origin.lng + j * step),
                    radius_m=per_point_m,
                )
            )
    return points
