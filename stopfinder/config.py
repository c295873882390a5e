"""Project configuration.

Loads user-defined search parameters from search_config.json when available,
falling back to sensible defaults. Keep API request shapes centralized here.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

_REPO_ROOT = Path(__file__).resolve().parent.parent

# --- API endpoints ---

GEOAPIFY_PLACES_URL = "https://api.geoapify.com/v2/places"
GEOAPIFY_ROUTING_URL = "https://api.geoapify.com/v1/routing"
GEOAPIFY_GEOCODE_URL = "https://api.geoapify.com/v1/geocode/search"
TRIPADVISOR_SEARCH_URL = "https://api.content.tripadvisor.com/api/v1/location/search"
TRIPADVISOR_DETAILS_URL_TEMPLATE = (
    "https://api.content.tripadvisor.com/api/v1/location/{location_id}/details"
)

GEOAPIFY_API_KEY_ENV = "GEOAPIFY_API_KEY"
TRIPADVISOR_API_KEY_ENV = "TRIPADVISOR_API_KEY"

# --- Places request shape ---

PLACES_FIELDS = (
    "formatted,name,place_id,lat,lon,categories,details,datasource,website,"
    "address_line1,address_line2"
)
PLACES_LANG = "en"
PLACES_CONDITIONS = "named"
PLACES_MAX_LIMIT = 50

# --- Ratings request shape ---

RATINGS_SEARCH_RADIUS = 20
RATINGS_SEARCH_RADIUS_UNIT = "mi"
RATINGS_LANGUAGE = "en"
RATINGS_CURRENCY = "USD"

# --- Routing ---

ROUTING_MODE = "drive"

# --- Geometry and coverage ---

EARTH_RADIUS_MILES = 3959.0
METERS_PER_MILE = 1609.34
PROVIDER_MAX_RADIUS_M = 5000.0
GRID_STEP_DEG = 0.05

# --- Search defaults ---

DEFAULT_RADIUS_MILES = 2.0
DEFAULT_LIMIT = 10
MAX_WORKERS = 8

# --- Ranking ---

RANK_RATING_WEIGHT = 2.0

# --- HTTP ---

HTTP_TIMEOUT_SECONDS = 20
HTTP_RETRY_MAX = 3
HTTP_BACKOFF_BASE = 1.0
HTTP_BACKOFF_MAX = 8.0

# --- Cache ---

CACHE_TTL_SECONDS = 3600.0


def load_search_config(path: Optional[str] = None) -> bool:
    """Load search configuration from a JSON file.

    Updates module-level globals with values from the config file.
    Returns True if config was loaded, False if file not found.
    """
    if path is None:
        path = str(_REPO_ROOT / "search_config.json")

    config_path = Path(path)
    if not config_path.exists():
        return False

    with open(config_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    globals_ref = globals()

    provider_max = data.get("provider_max_radius_m")
    if provider_max is not None:
        globals_ref["PROVIDER_MAX_RADIUS_M"] = float(provider_max)

    grid_step = data.get("grid_step_deg")
    if grid_step is not None:
        globals_ref["GRID_STEP_DEG"] = float(grid_step)

    max_workers = data.get("max_workers")
    if max_workers is not None:
        globals_ref["MAX_WORKERS"] = max(1, int(max_workers))

    default_limit = data.get("default_limit")
    if default_limit is not None:
        globals_ref["DEFAULT_LIMIT"] = int(default_limit)

    default_radius = data.get("default_radius_miles")
    if default_radius is not None:
        globals_ref["DEFAULT_RADIUS_MILES"] = float(default_radius)

    ttl = data.get("cache_ttl_seconds")
    if ttl is not None:
        globals_ref["CACHE_TTL_SECONDS"] = float(ttl)

    http = data.get("http", {})
    if "timeout_seconds" in http:
        globals_ref["HTTP_TIMEOUT_SECONDS"] = int(http["timeout_seconds"])
    if "retry_max" in http:
        globals_ref["HTTP_RETRY_MAX"] = int(http["retry_max"])

    return True
