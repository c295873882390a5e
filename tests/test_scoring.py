import pytest

from stopfinder.models import Coordinate, EnrichedPlace
from stopfinder.scoring import composite_score, parse_distance_miles, rank_places


def make_place(name, rating, distance):
    return EnrichedPlace(
        place_id=name,
        name=name,
        coordinate=Coordinate(40.0, -75.0),
        distance=distance,
        rating=rating,
    )


def test_higher_rating_outweighs_small_distance_gap():
    good = make_place("good", 4.5, "1.0 mi")
    close = make_place("close", 3.0, "0.1 mi")
    assert composite_score(good) == pytest.approx(8.0)
    assert composite_score(close) == pytest.approx(5.9)
    assert [p.name for p in rank_places([close, good], limit=5)] == ["good", "close"]


def test_truncates_after_sorting():
    places = [make_place(f"p{i}", rating=i * 0.5, distance=f"{i % 3}.0 mi") for i in range(10)]
    ranked = rank_places(places, limit=3)
    assert len(ranked) == 3
    expected = sorted(places, key=composite_score, reverse=True)[:3]
    assert ranked == expected
    scores = [composite_score(p) for p in ranked]
    assert scores == sorted(scores, reverse=True)
    assert min(scores) >= max(composite_score(p) for p in places if p not in ranked)


def test_unrated_places_rank_lowest_at_equal_distance():
    rated = make_place("rated", 2.0, "1.0 mi")
    unrated = make_place("unrated", 0.0, "1.0 mi")
    assert rank_places([unrated, rated], limit=2)[0].name == "rated"


def test_distance_breaks_rating_ties():
    near = make_place("near", 4.0, "0.5 mi")
    far = make_place("far", 4.0, "3.0 mi")
    assert [p.name for p in rank_places([far, near], limit=2)] == ["near", "far"]


@pytest.mark.parametrize(
    "text,expected",
    [("2.3 mi", 2.3), ("0.0 mi", 0.0), ("12 mi", 12.0), ("", 0.0), (None, 0.0), ("n/a", 0.0)],
)
def test_parse_distance_miles(text, expected):
    assert parse_distance_miles(text) == expected


def test_limit_zero_returns_empty():
    assert rank_places([make_place("a", 5.0, "1.0 mi")], limit=0) == []
