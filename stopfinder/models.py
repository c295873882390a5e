"""Search data model shared by the core and the provider clients."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

BUSINESS_STATUS_OPERATIONAL = "OPERATIONAL"


class InvalidCoordinateError(ValueError):
    pass


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Coordinate":
        lat = data.get("lat", data.get("latitude"))
        lng = data.get("lng", data.get("lon", data.get("longitude")))
        if lat is None or lng is None:
            raise InvalidCoordinateError(f"Coordinate missing lat/lng: {data!r}")
        try:
            return cls(float(lat), float(lng))
        except (TypeError, ValueError) as exc:
            raise InvalidCoordinateError(f"Coordinate is not numeric: {data!r}") from exc


RoutePolyline = Tuple[Coordinate, ...]


def validate_coordinate(coord: Optional[Coordinate], label: str = "coordinate") -> None:
    if coord is None:
        raise InvalidCoordinateError(f"Missing {label}")
    lat = coord.lat
    lng = coord.lng
    if not isinstance(lat, (int, float)) or not isinstance(lng, (int, float)):
        raise InvalidCoordinateError(f"Invalid {label}: non-numeric lat/lng")
    if math.isnan(lat) or math.isnan(lng):
        raise InvalidCoordinateError(f"Invalid {label}: NaN lat/lng")
    if not -90.0 <= lat <= 90.0:
        raise InvalidCoordinateError(f"Invalid {label}: lat {lat} out of range")
    if not -180.0 <= lng <= 180.0:
        raise InvalidCoordinateError(f"Invalid {label}: lng {lng} out of range")


def validate_polyline(polyline: Sequence[Coordinate]) -> RoutePolyline:
    points = tuple(polyline)
    if len(points) < 2:
        raise ValueError("Route polyline needs at least 2 points")
    for idx, point in enumerate(points):
        validate_coordinate(point, label=f"route point {idx}")
    return points


class SearchMode(str, Enum):
    ROUTE = "route"
    MEETUP = "meetup"

    @classmethod
    def parse(cls, value: Any) -> "SearchMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"mode must be one of: route, meetup (got {value!r})") from None


class Category(str, Enum):
    """Categories the places provider accepts.

    Unknown input is mapped to ``RESTAURANT`` rather than rejected. This is
    deliberate: callers send free text and a restaurant search is the useful
    fallback. Typos are logged, not raised.
    """

    RESTAURANT = "catering.restaurant"
    PIZZA = "catering.restaurant.pizza"
    ITALIAN = "catering.restaurant.italian"
    CHINESE = "catering.restaurant.chinese"
    SUSHI = "catering.restaurant.sushi"
    SHOPPING_MALL = "commercial.shopping_mall"
    PARK = "leisure.park"
    ATTRACTION = "tourism.attraction"
    MUSEUM = "tourism.museum"
    CAFE = "catering.cafe"

    @classmethod
    def default(cls) -> "Category":
        return cls.RESTAURANT

    @classmethod
    def parse(cls, value: Any) -> "Category":
        if isinstance(value, cls):
            return value
        text = (str(value) if value is not None else "").strip()
        for member in cls:
            if member.value == text:
                return member
        logger.info("Unknown category %r, using %s", value, cls.default().value)
        return cls.default()


@dataclass
class Candidate:
    place_id: str
    name: str
    coordinate: Optional[Coordinate]
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    categories: Tuple[str, ...] = ()
    website: Optional[str] = None
    distance: Optional[str] = None


@dataclass(frozen=True)
class RatingRecord:
    location_id: Optional[str] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None
    price_tier: Optional[str] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    structured_address: Optional[str] = None
    cuisine_tags: Tuple[str, ...] = ()
    provider_distance: Optional[str] = None

    def has_details(self) -> bool:
        fields = (
            self.rating,
            self.review_count,
            self.price_tier,
            self.website,
            self.phone,
            self.structured_address,
        )
        return any(value not in (None, "") for value in fields) or bool(self.cuisine_tags)


@dataclass
class EnrichedPlace:
    place_id: str
    name: str
    coordinate: Optional[Coordinate]
    distance: Optional[str]
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    categories: Tuple[str, ...] = ()
    location_id: Optional[str] = None
    rating: float = 0.0
    reviews: int = 0
    price_level: str = ""
    website: str = ""
    phone: Optional[str] = None
    address: Optional[str] = None
    cuisine: List[str] = field(default_factory=list)
    business_status: str = BUSINESS_STATUS_OPERATIONAL
    enriched: bool = False

    @classmethod
    def from_candidate(cls, candidate: Candidate) -> "EnrichedPlace":
        return cls(
            place_id=candidate.place_id,
            name=candidate.name,
            coordinate=candidate.coordinate,
            distance=candidate.distance,
            address_line1=candidate.address_line1,
            address_line2=candidate.address_line2,
            categories=tuple(candidate.categories),
            location_id=candidate.place_id,
            website=candidate.website or "",
            address=candidate.address_line1,
        )

    def to_dict(self) -> Dict[str, Any]:
        coord = self.coordinate
        return {
            "place_id": self.place_id,
            "location_id": self.location_id,
            "name": self.name,
            "lat": coord.lat if coord else None,
            "lon": coord.lng if coord else None,
            "distance": self.distance,
            "rating": self.rating,
            "reviews": self.reviews,
            "price_level": self.price_level,
            "website": self.website,
            "phone": self.phone,
            "address": self.address,
            "address_line1": self.address_line1,
            "address_line2": self.address_line2,
            "categories": list(self.categories),
            "cuisine": list(self.cuisine),
            "business_status": self.business_status,
            "enriched": self.enriched,
        }


@dataclass
class SearchResult:
    places: List[EnrichedPlace]
    summary: Dict[str, Any]
