from fastapi import APIRouter, Depends, Query

from ..errors import ApiError
from ..responses import success
from ..services import GeocodingService, get_geocoding_service

router = APIRouter(prefix="/geocoding", tags=["geocoding"])


@router.get("/search")
def search_places(
    q: str = Query(...),
    limit: int = Query(10, ge=1, le=20),
    geocoder: GeocodingService = Depends(get_geocoding_service),
):
    places = geocoder.search_places(q, limit)
    return success(places, {"count": len(places)})


@router.get("/search-nearby")
def search_nearby(
    q: str = Query(...),
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    limit: int = Query(10, ge=1, le=20),
    geocoder: GeocodingService = Depends(get_geocoding_service),
):
    places = geocoder.search_nearby(q, lat, lng, limit)
    return success(places, {"count": len(places)})


@router.get("/reverse")
def reverse_geocode(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    geocoder: GeocodingService = Depends(get_geocoding_service),
):
    address = geocoder.reverse_geocode(lat, lng)
    if address is None:
        raise ApiError.not_found("Address")
    return success({"address": address, "latitude": lat, "longitude": lng})
