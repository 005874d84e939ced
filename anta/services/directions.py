"""Route distance, duration and fare estimate from the Google Routes API."""

import logging
import math
from typing import Any, Dict, Optional, Tuple

import httpx

from ..config import PricingSettings
from ..errors import ApiError
from .cache import TTLCache

logger = logging.getLogger(__name__)

ROUTES_URL = "https://routes.googleapis.com/directions/v2:computeRoutes"
FIELD_MASK = "routes.duration,routes.distanceMeters,routes.polyline.encodedPolyline,routes.legs,routes.viewport"

LatLng = Tuple[float, float]


def _waypoint(point: LatLng) -> Dict[str, Any]:
    return {"location": {"latLng": {"latitude": point[0], "longitude": point[1]}}}


def format_distance(meters: int) -> str:
    km = meters / 1000
    return f"{km:.1f} km" if km >= 1 else f"{meters} m"


def format_duration(seconds: int) -> str:
    minutes = seconds / 60
    if minutes >= 60:
        return f"{int(minutes // 60)} h {math.ceil(minutes % 60)} min"
    return f"{math.ceil(minutes)} min"


def route_bounds(route: Dict[str, Any]) -> Dict[str, Dict[str, float]]:
    viewport = route.get("viewport")
    if viewport:
        return {
            "northeast": {"lat": viewport["high"]["latitude"], "lng": viewport["high"]["longitude"]},
            "southwest": {"lat": viewport["low"]["latitude"], "lng": viewport["low"]["longitude"]},
        }
    legs = route.get("legs") or []
    if not legs:
        return {"northeast": {"lat": 0, "lng": 0}, "southwest": {"lat": 0, "lng": 0}}
    start = legs[0]["startLocation"]["latLng"]
    end = legs[-1]["endLocation"]["latLng"]
    return {
        "northeast": {
            "lat": max(start["latitude"], end["latitude"]),
            "lng": max(start["longitude"], end["longitude"]),
        },
        "southwest": {
            "lat": min(start["latitude"], end["latitude"]),
            "lng": min(start["longitude"], end["longitude"]),
        },
    }


class DirectionsService:
    def __init__(
        self,
        api_key: Optional[str],
        pricing: Optional[PricingSettings] = None,
        url: str = ROUTES_URL,
        timeout: float = 15.0,
        cache_ttl: float = 1800,
    ):
        if not api_key:
            logger.warning("GOOGLE_MAPS_API_KEY not set, directions will fail")
        self.api_key = api_key
        self.pricing = pricing or PricingSettings()
        self.url = url
        self._client = httpx.Client(timeout=timeout)
        self._cache = TTLCache(cache_ttl)

    def close(self) -> None:
        self._client.close()

    def clear_cache(self) -> None:
        self._cache.clear()

    def get_pricing(self) -> Dict[str, Any]:
        return self.pricing.model_dump()

    def estimate_price(self, distance_m: float, duration_s: float) -> int:
        p = self.pricing
        total = p.base_fare + distance_m / 1000 * p.per_km + duration_s / 60 * p.per_minute
        return round(max(total, p.minimum_fare))

    def _fetch_route(self, origin: LatLng, destination: LatLng) -> Dict[str, Any]:
        resp = self._client.post(
            self.url,
            json={
                "origin": _waypoint(origin),
                "destination": _waypoint(destination),
                "travelMode": "DRIVE",
                "routingPreference": "TRAFFIC_AWARE",
                "computeAlternativeRoutes": False,
                "languageCode": "fr",
                "units": "METRIC",
            },
            headers={
                "X-Goog-Api-Key": self.api_key,
                "X-Goog-FieldMask": FIELD_MASK,
            },
        )
        resp.raise_for_status()
        routes = resp.json().get("routes") or []
        if not routes:
            raise ApiError.internal("No route found")
        return routes[0]

    def get_route(self, origin: LatLng, destination: LatLng) -> Dict[str, Any]:
        """Route summary between two (lat, lng) points, priced with the fare grid."""
        if not self.api_key:
            raise ApiError.internal("Google Maps API key not configured")

        cache_key = (origin, destination)
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            route = self._fetch_route(origin, destination)
            meters = int(route.get("distanceMeters") or 0)
            seconds = int(str(route.get("duration", "0s")).rstrip("s") or 0)
            polyline = route["polyline"]["encodedPolyline"]
        except ApiError:
            logger.error("Directions API returned no route for %s -> %s", origin, destination)
            raise
        except httpx.HTTPStatusError as exc:
            logger.error("Directions API error %s: %s", exc.response.status_code, exc.response.text)
            raise ApiError.internal("Failed to calculate route") from exc
        except (httpx.HTTPError, KeyError, ValueError) as exc:
            logger.error("Directions API error: %s", exc)
            raise ApiError.internal("Failed to calculate route") from exc

        info = {
            "distance": {
                "text": format_distance(meters),
                "meters": meters,
                "kilometers": round(meters / 1000, 2),
            },
            "duration": {
                "text": format_duration(seconds),
                "seconds": seconds,
                "minutes": math.ceil(seconds / 60),
            },
            "polyline": polyline,
            "bounds": route_bounds(route),
            "estimated_price": {
                "base": self.pricing.base_fare,
                "per_km": self.pricing.per_km,
                "total": self.estimate_price(meters, seconds),
                "currency": self.pricing.currency,
            },
        }
        self._cache.set(cache_key, info)
        return info
