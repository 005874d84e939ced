from fastapi import APIRouter, Depends, Query

from ..responses import success
from ..services import DirectionsService, get_directions_service

router = APIRouter(prefix="/directions", tags=["directions"])


@router.get("/route")
def get_route(
    originLat: float = Query(..., ge=-90, le=90),
    originLng: float = Query(..., ge=-180, le=180),
    destLat: float = Query(..., ge=-90, le=90),
    destLng: float = Query(..., ge=-180, le=180),
    directions: DirectionsService = Depends(get_directions_service),
):
    return success(directions.get_route((originLat, originLng), (destLat, destLng)))


@router.get("/pricing")
def get_pricing(directions: DirectionsService = Depends(get_directions_service)):
    return success(directions.get_pricing())
