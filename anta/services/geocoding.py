"""Google Places / Geocoding client restricted to Guinea."""

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..errors import ApiError
from .cache import TTLCache

logger = logging.getLogger(__name__)

GOOGLE_MAPS_BASE_URL = "https://maps.googleapis.com/maps/api"
COUNTRY = "country:gn"
LANGUAGE = "fr"
NEARBY_RADIUS_M = 50000
MIN_QUERY_LENGTH = 3

# most specific component wins
NAME_COMPONENT_TYPES = ("point_of_interest", "route", "neighborhood", "locality")


def extract_main_name(result: Dict[str, Any]) -> str:
    components = result.get("address_components") or []
    for wanted in NAME_COMPONENT_TYPES:
        for component in components:
            if wanted in component.get("types", []):
                return component["long_name"]
    return result.get("formatted_address", "").split(",")[0].strip()


class GeocodingService:
    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = GOOGLE_MAPS_BASE_URL,
        timeout: float = 10.0,
        cache_ttl: float = 3600,
    ):
        if not api_key:
            logger.warning("GOOGLE_MAPS_API_KEY not set, geocoding will fail")
        self.api_key = api_key
        self._client = httpx.Client(base_url=base_url, timeout=timeout)
        self._cache = TTLCache(cache_ttl)

    def close(self) -> None:
        self._client.close()

    def clear_cache(self) -> None:
        self._cache.clear()

    def _require_key(self) -> None:
        if not self.api_key:
            raise ApiError.internal("Google Maps API key not configured")

    def _autocomplete(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        resp = self._client.get("/place/autocomplete/json", params={
            **params,
            "key": self.api_key,
            "components": COUNTRY,
            "language": LANGUAGE,
        })
        resp.raise_for_status()
        data = resp.json()
        status = data.get("status")
        if status not in ("OK", "ZERO_RESULTS"):
            logger.error("Google Places autocomplete error: %s", status)
            return []
        return data.get("predictions") or []

    def get_place_details(self, place_id: str) -> Optional[Dict[str, Any]]:
        """Coordinates and display name for one place, or None when the lookup fails."""
        try:
            resp = self._client.get("/place/details/json", params={
                "place_id": place_id,
                "fields": "place_id,formatted_address,geometry,address_components,types",
                "key": self.api_key,
                "language": LANGUAGE,
            })
            resp.raise_for_status()
            data = resp.json()
            if data.get("status") != "OK":
                return None
            result = data["result"]
            location = result["geometry"]["location"]
            return {
                "id": result["place_id"],
                "name": extract_main_name(result),
                "description": result.get("formatted_address", ""),
                "latitude": location["lat"],
                "longitude": location["lng"],
                "type": (result.get("types") or ["unknown"])[0],
            }
        except (httpx.HTTPError, KeyError, ValueError) as exc:
            logger.warning("Place details lookup failed for %s: %s", place_id, exc)
            return None

    def _search(self, cache_key: tuple, params: Dict[str, Any], limit: int) -> List[Dict[str, Any]]:
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached
        try:
            predictions = self._autocomplete(params)[:limit]
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Google Places search error: %s", exc)
            raise ApiError.internal("Failed to search places") from exc

        places = [self.get_place_details(p["place_id"]) for p in predictions if p.get("place_id")]
        places = [p for p in places if p is not None]
        self._cache.set(cache_key, places)
        return places

    def search_places(self, query: str, limit: int = 10) -> List[Dict[str, Any]]:
        if not query or len(query.strip()) < MIN_QUERY_LENGTH:
            return []
        self._require_key()
        return self._search(("search", query, limit), {"input": query}, limit)

    def search_nearby(self, query: str, latitude: float, longitude: float, limit: int = 10) -> List[Dict[str, Any]]:
        if not query or len(query.strip()) < MIN_QUERY_LENGTH:
            return []
        self._require_key()
        params = {
            "input": query,
            "location": f"{latitude},{longitude}",
            "radius": NEARBY_RADIUS_M,
        }
        return self._search(("nearby", query, latitude, longitude, limit), params, limit)

    def reverse_geocode(self, latitude: float, longitude: float) -> Optional[str]:
        self._require_key()
        cache_key = ("reverse", latitude, longitude)
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached
        try:
            resp = self._client.get("/geocode/json", params={
                "latlng": f"{latitude},{longitude}",
                "key": self.api_key,
                "language": LANGUAGE,
            })
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Reverse geocoding error: %s", exc)
            return None

        results = data.get("results") or []
        if data.get("status") != "OK" or not results:
            return None
        address = results[0]["formatted_address"]
        self._cache.set(cache_key, address)
        return address
