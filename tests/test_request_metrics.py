import pytest
import requests

from stopfinder import config
from stopfinder.cache import TTLCache
from stopfinder.enrichment import enrich_candidates
from stopfinder.http import HttpClient, MissingApiKeyError, RequestMetrics
from stopfinder.models import Candidate, Coordinate
from stopfinder.places_client import PlacesClient
from stopfinder.ratings_client import RatingsClient
from stopfinder.routes_client import GeocodingError, RouteNotFoundError, RoutesClient


class FakeResponse:
    def __init__(self, payload, status_code=200, headers=None):
        self._payload = payload
        self.status_code = status_code
        self.headers = headers or {}

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")


class FakeSession:
    def __init__(self, responses_by_url):
        self.responses_by_url = responses_by_url
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append((url, dict(params or {})))
        queued = self.responses_by_url.get(url)
        if isinstance(queued, list):
            item = queued.pop(0)
        else:
            item = queued if queued is not None else FakeResponse({})
        if isinstance(item, Exception):
            raise item
        return item

    def close(self):
        return None


def make_http_client(responses_by_url, retry_max=1):
    client = HttpClient(timeout=1, retry_max=retry_max, backoff_base=0.0, backoff_max=0.0)
    client.session = FakeSession(responses_by_url)
    return client


def test_retries_on_429_then_succeeds():
    url = "https://example.test/api"
    http_client = make_http_client(
        {url: [FakeResponse({}, status_code=429), FakeResponse({"ok": True})]}, retry_max=3
    )
    assert http_client.get_json(url) == {"ok": True}
    assert len(http_client.session.calls) == 2


def test_retries_on_connection_error_then_raises():
    url = "https://example.test/api"
    http_client = make_http_client(
        {url: [requests.ConnectionError("down"), requests.ConnectionError("down")]}, retry_max=2
    )
    with pytest.raises(requests.ConnectionError):
        http_client.get_json(url)
    assert len(http_client.session.calls) == 2


def test_non_retryable_status_raises_immediately():
    url = "https://example.test/api"
    http_client = make_http_client({url: [FakeResponse({}, status_code=403)]}, retry_max=3)
    with pytest.raises(requests.HTTPError):
        http_client.get_json(url)
    assert len(http_client.session.calls) == 1


def test_places_client_caches_and_counts():
    payload = {
        "features": [
            {"properties": {"place_id": "p1", "name": "One", "lat": 40.0, "lon": -75.0}},
        ]
    }
    http_client = make_http_client({config.GEOAPIFY_PLACES_URL: FakeResponse(payload)})
    metrics = RequestMetrics()
    client = PlacesClient(http_client, "geo-key", TTLCache(), metrics=metrics)

    first = client.search(Coordinate(40.0, -75.0), 5000, "catering.restaurant", 20)
    second = client.search(Coordinate(40.0, -75.0), 5000, "catering.restaurant", 20)

    assert [c.place_id for c in first] == ["p1"]
    assert [c.place_id for c in second] == ["p1"]
    assert len(http_client.session.calls) == 1
    _, params = http_client.session.calls[0]
    assert params["apiKey"] == "geo-key"
    counts = metrics.as_dict()
    assert counts["network"]["places"] == 1
    assert counts["cache_hits"]["places"] == 1


def test_places_client_no_cache_hits_network_each_time():
    payload = {"features": []}
    http_client = make_http_client({config.GEOAPIFY_PLACES_URL: FakeResponse(payload)})
    client = PlacesClient(http_client, "geo-key", TTLCache(), no_cache=True)
    client.search(Coordinate(40.0, -75.0), 5000, "catering.restaurant", 20)
    client.search(Coordinate(40.0, -75.0), 5000, "catering.restaurant", 20)
    assert len(http_client.session.calls) == 2


def test_places_client_returns_empty_on_http_error():
    http_client = make_http_client(
        {config.GEOAPIFY_PLACES_URL: FakeResponse({}, status_code=401)}
    )
    metrics = RequestMetrics()
    client = PlacesClient(http_client, "geo-key", metrics=metrics)
    assert client.search(Coordinate(40.0, -75.0), 5000, "catering.restaurant", 20) == []
    assert metrics.as_dict()["failures"]["places"] == 1


def test_ratings_client_search_then_details():
    details_url = config.TRIPADVISOR_DETAILS_URL_TEMPLATE.format(location_id="42")
    http_client = make_http_client(
        {
            config.TRIPADVISOR_SEARCH_URL: FakeResponse(
                {"data": [{"location_id": "42", "name": "Diner", "distance": "1.27"}]}
            ),
            details_url: FakeResponse({"location_id": "42", "rating": "4.0", "num_reviews": "12"}),
        }
    )
    client = RatingsClient(http_client, "ta-key")
    record = client.lookup("Diner", Coordinate(40.0, -75.0))

    assert record.location_id == "42"
    assert record.rating == 4.0
    assert record.review_count == 12
    assert record.provider_distance == "1.3 mi"
    search_url, search_params = http_client.session.calls[0]
    assert search_url == config.TRIPADVISOR_SEARCH_URL
    assert search_params["key"] == "ta-key"
    assert search_params["latLong"] == "40.0,-75.0"
    assert search_params["searchQuery"] == "Diner"


def test_ratings_client_no_match_and_empty_name():
    http_client = make_http_client({config.TRIPADVISOR_SEARCH_URL: FakeResponse({"data": []})})
    client = RatingsClient(http_client, "ta-key")
    assert client.lookup("Nowhere", Coordinate(40.0, -75.0)) is None
    assert client.lookup("  ", Coordinate(40.0, -75.0)) is None
    assert len(http_client.session.calls) == 1


def test_ratings_client_details_failure_keeps_match():
    details_url = config.TRIPADVISOR_DETAILS_URL_TEMPLATE.format(location_id="7")
    http_client = make_http_client(
        {
            config.TRIPADVISOR_SEARCH_URL: FakeResponse({"data": [{"location_id": "7", "name": "X"}]}),
            details_url: FakeResponse({}, status_code=404),
        }
    )
    record = RatingsClient(http_client, "ta-key").lookup("X", Coordinate(40.0, -75.0))
    assert record.location_id == "7"
    assert record.rating is None


def test_routes_client_geocode_and_route():
    http_client = make_http_client(
        {
            config.GEOAPIFY_GEOCODE_URL: FakeResponse({"results": [{"lat": 40.0, "lon": -75.0}]}),
            config.GEOAPIFY_ROUTING_URL: FakeResponse(
                {
                    "features": [
                        {
                            "geometry": {
                                "type": "LineString",
                                "coordinates": [[-75.0, 40.0], [-74.5, 40.2]],
                            }
                        }
                    ]
                }
            ),
        }
    )
    metrics = RequestMetrics()
    client = RoutesClient(http_client, "geo-key", metrics=metrics)
    assert client.geocode("Philadelphia, PA") == Coordinate(40.0, -75.0)
    polyline = client.route(Coordinate(40.0, -75.0), Coordinate(40.2, -74.5))
    assert polyline == (Coordinate(40.0, -75.0), Coordinate(40.2, -74.5))
    _, route_params = http_client.session.calls[1]
    assert route_params["waypoints"] == "40.0,-75.0|40.2,-74.5"
    counts = metrics.as_dict()["network"]
    assert counts["geocode"] == 1
    assert counts["routes"] == 1


def test_routes_client_geocode_failures():
    http_client = make_http_client({config.GEOAPIFY_GEOCODE_URL: FakeResponse({"results": []})})
    client = RoutesClient(http_client, "geo-key")
    with pytest.raises(GeocodingError):
        client.geocode("nowhere at all")
    with pytest.raises(GeocodingError):
        client.geocode("")


def test_client_requires_api_key():
    with pytest.raises(MissingApiKeyError):
        PlacesClient(make_http_client({}), "")


def test_metrics_reject_unknown_kind():
    with pytest.raises(ValueError):
        RequestMetrics().inc_network("weather")


def test_routes_client_raises_when_no_route():
    http_client = make_http_client({config.GEOAPIFY_ROUTING_URL: FakeResponse({"features": []})})
    client = RoutesClient(http_client, "geo-key")
    with pytest.raises(RouteNotFoundError):
        client.route(Coordinate(40.0, -75.0), Coordinate(41.0, -74.0))


def test_failed_details_leave_place_unenriched():
    details_url = config.TRIPADVISOR_DETAILS_URL_TEMPLATE.format(location_id="7")
    http_client = make_http_client(
        {
            config.TRIPADVISOR_SEARCH_URL: FakeResponse({"data": [{"location_id": "7", "name": "Cafe"}]}),
            details_url: FakeResponse({}, status_code=500),
        }
    )
    candidate = Candidate(place_id="geo-1", name="Cafe", coordinate=Coordinate(40.0, -75.0), distance="1.0 mi")

    [place] = enrich_candidates(RatingsClient(http_client, "ta-key"), [candidate])

    assert place.enriched is False
    assert place.location_id == "geo-1"
    assert place.rating == 0.0
    assert place.distance == "1.0 mi"
