import json

import pytest
import respx
from httpx import Response

from anta.config import PricingSettings
from anta.errors import ApiError
from anta.services import DirectionsService, get_directions_service
from anta.services.directions import format_distance, format_duration

ORIGIN = (9.5092, -13.7122)
DESTINATION = (9.5716, -13.6476)

ROUTE_RESPONSE = {
    "routes": [
        {
            "distanceMeters": 9000,
            "duration": "1200s",
            "polyline": {"encodedPolyline": "abc~xyz"},
            "legs": [
                {
                    "startLocation": {"latLng": {"latitude": 9.5092, "longitude": -13.7122}},
                    "endLocation": {"latLng": {"latitude": 9.5716, "longitude": -13.6476}},
                }
            ],
        }
    ]
}


def routes_api():
    return respx.post(host="routes.googleapis.com", path="/directions/v2:computeRoutes")


@pytest.fixture
def directions() -> DirectionsService:
    service = DirectionsService("test-key", PricingSettings())
    yield service
    service.close()


@respx.mock
def test_get_route_parses_and_prices(directions):
    route = routes_api().mock(return_value=Response(200, json=ROUTE_RESPONSE))

    info = directions.get_route(ORIGIN, DESTINATION)

    assert route.called
    body = json.loads(route.calls.last.request.content)
    assert body["origin"]["location"]["latLng"] == {"latitude": ORIGIN[0], "longitude": ORIGIN[1]}
    assert body["travelMode"] == "DRIVE"
    assert route.calls.last.request.headers["X-Goog-Api-Key"] == "test-key"

    assert info["distance"] == {"text": "9.0 km", "meters": 9000, "kilometers": 9.0}
    assert info["duration"] == {"text": "20 min", "seconds": 1200, "minutes": 20}
    assert info["polyline"] == "abc~xyz"
    assert info["bounds"] == {
        "northeast": {"lat": 9.5716, "lng": -13.6476},
        "southwest": {"lat": 9.5092, "lng": -13.7122},
    }
    # 5000 + 9 * 2000 + 20 * 100
    assert info["estimated_price"]["total"] == 25000
    assert info["estimated_price"]["currency"] == "GNF"


@respx.mock
def test_viewport_wins_over_legs(directions):
    payload = json.loads(json.dumps(ROUTE_RESPONSE))
    payload["routes"][0]["viewport"] = {
        "low": {"latitude": 9.5, "longitude": -13.8},
        "high": {"latitude": 9.6, "longitude": -13.6},
    }
    routes_api().mock(return_value=Response(200, json=payload))

    bounds = directions.get_route(ORIGIN, DESTINATION)["bounds"]

    assert bounds == {"northeast": {"lat": 9.6, "lng": -13.6}, "southwest": {"lat": 9.5, "lng": -13.8}}


@respx.mock
def test_routes_are_cached(directions):
    route = routes_api().mock(return_value=Response(200, json=ROUTE_RESPONSE))
    directions.get_route(ORIGIN, DESTINATION)
    directions.get_route(ORIGIN, DESTINATION)
    assert route.call_count == 1


@respx.mock
def test_short_trip_gets_minimum_fare(directions):
    payload = {"routes": [{"distanceMeters": 0, "duration": "0s", "polyline": {"encodedPolyline": ""}}]}
    routes_api().mock(return_value=Response(200, json=payload))
    info = directions.get_route(ORIGIN, ORIGIN)
    assert info["estimated_price"]["total"] == 5000
    assert info["distance"]["text"] == "0 m"


@respx.mock
def test_no_route_is_internal_error(directions):
    routes_api().mock(return_value=Response(200, json={"routes": []}))
    with pytest.raises(ApiError) as exc_info:
        directions.get_route(ORIGIN, DESTINATION)
    assert exc_info.value.code == "INTERNAL_ERROR"


@respx.mock
def test_upstream_failure_is_internal_error(directions):
    routes_api().mock(return_value=Response(503, json={"error": "unavailable"}))
    with pytest.raises(ApiError) as exc_info:
        directions.get_route(ORIGIN, DESTINATION)
    assert exc_info.value.status_code == 500


def test_missing_api_key():
    with pytest.raises(ApiError) as exc_info:
        DirectionsService(None).get_route(ORIGIN, DESTINATION)
    assert exc_info.value.message == "Google Maps API key not configured"


def test_custom_pricing():
    service = DirectionsService("k", PricingSettings(base_fare=1000, per_km=500, per_minute=0, minimum_fare=0))
    assert service.estimate_price(4000, 600) == 3000


def test_text_formatting():
    assert format_distance(850) == "850 m"
    assert format_distance(12345) == "12.3 km"
    assert format_duration(90) == "2 min"
    assert format_duration(3900) == "1 h 5 min"


@respx.mock
def test_route_endpoint(client, directions):
    client.app.dependency_overrides[get_directions_service] = lambda: directions
    routes_api().mock(return_value=Response(200, json=ROUTE_RESPONSE))

    resp = client.get("/api/directions/route", params={
        "originLat": ORIGIN[0], "originLng": ORIGIN[1], "destLat": DESTINATION[0], "destLng": DESTINATION[1],
    })

    assert resp.status_code == 200
    assert resp.json()["data"]["distance"]["meters"] == 9000


def test_route_endpoint_validates_coordinates(client, directions):
    client.app.dependency_overrides[get_directions_service] = lambda: directions
    resp = client.get("/api/directions/route", params={
        "originLat": 91, "originLng": 0, "destLat": 0, "destLng": 0,
    })
    assert resp.status_code == 400


def test_pricing_endpoint(client, directions):
    client.app.dependency_overrides[get_directions_service] = lambda: directions
    data = client.get("/api/directions/pricing").json()["data"]
    assert data == {"base_fare": 5000, "per_km": 2000, "per_minute": 100, "minimum_fare": 5000, "currency": "GNF"}


def test_route_endpoint_without_key(client):
    client.app.dependency_overrides[get_directions_service] = lambda: DirectionsService(None)
    resp = client.get("/api/directions/route", params={
        "originLat": ORIGIN[0], "originLng": ORIGIN[1], "destLat": DESTINATION[0], "destLng": DESTINATION[1],
    })
    assert resp.status_code == 500
    assert resp.json()["error"]["code"] == "INTERNAL_ERROR"
