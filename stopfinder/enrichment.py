"""Merge third-party rating data into candidates."""
from __future__ import annotations

import logging
from typing import List, Optional, Protocol, Sequence

from .concurrency import fan_out
from .models import BUSINESS_STATUS_OPERATIONAL, Candidate, Coordinate, EnrichedPlace, RatingRecord

logger = logging.getLogger(__name__)


class RatingsProvider(Protocol):
    def lookup(self, name: str, coordinate: Coordinate) -> Optional[RatingRecord]:
        ...


def merge_enrichment(candidate: Candidate, record: Optional[RatingRecord]) -> EnrichedPlace:
    """Build the enriched place for ``candidate``.

    ``distance`` always comes from the candidate; ``record.provider_distance``
    is never used. A record without any detail fields counts as no match.
    """
    place = EnrichedPlace.from_candidate(candidate)
    if record is None or not record.has_details():
        return place

    place.location_id = record.location_id or candidate.place_id
    place.rating = float(record.rating) if record.rating else 0.0
    place.reviews = max(0, int(record.review_count)) if record.review_count else 0
    place.price_level = record.price_tier or ""
    place.website = record.website or candidate.website or ""
    place.phone = record.phone
    place.address = record.structured_address or candidate.address_line1
    place.cuisine = [tag for tag in record.cuisine_tags if tag]
    place.business_status = BUSINESS_STATUS_OPERATIONAL
    place.enriched = True
    place.distance = candidate.distance
    return place


def enrich_candidate(ratings_provider: RatingsProvider, candidate: Candidate) -> EnrichedPlace:
    if candidate.coordinate is None:
        logger.warning("Missing coordinates for place: %s", candidate.name)
        return merge_enrichment(candidate, None)
    record = ratings_provider.lookup(candidate.name, candidate.coordinate)
    if not record:
        logger.debug("No ratings match for: %s", candidate.name)
    return merge_enrichment(candidate, record or None)


def enrich_candidates(
    ratings_provider: RatingsProvider,
    candidates: Sequence[Candidate],
    max_workers: Optional[int] = None,
) -> List[EnrichedPlace]:
    def on_error(candidate: Candidate, exc: Exception) -> EnrichedPlace:
        logger.warning("Failed to enrich place %s: %s", candidate.name, exc)
        return merge_enrichment(candidate, None)

    return fan_out(
        lambda candidate: enrich_candidate(ratings_provider, candidate),
        list(candidates),
        on_error,
        max_workers=max_workers,
    )
