from functools import lru_cache

from ..config import get_settings
from .cache import TTLCache
from .directions import DirectionsService
from .geocoding import GeocodingService
from .notifications import NotificationService
from .otp import OtpService
from .stats import dashboard_stats


@lru_cache
def get_geocoding_service() -> GeocodingService:
    return GeocodingService(get_settings().google.maps_api_key)


@lru_cache
def get_directions_service() -> DirectionsService:
    settings = get_settings()
    return DirectionsService(settings.google.maps_api_key, settings.pricing)


__all__ = [
    "TTLCache",
    "DirectionsService",
    "GeocodingService",
    "NotificationService",
    "OtpService",
    "dashboard_stats",
    "get_directions_service",
    "get_geocoding_service",
]
