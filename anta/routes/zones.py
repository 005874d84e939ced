from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from .. import schemas as s
from ..auth import CurrentUser, get_current_user, require_admin
from ..database import get_session
from ..errors import ApiError
from ..repositories import ZoneRepository
from ..responses import success

router = APIRouter(prefix="/zones", tags=["zones"])


@router.get("")
def list_zones(
    _user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return success(ZoneRepository(session).find_all())


@router.post("", status_code=201)
def create_zone(
    payload: s.ZoneCreate,
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = ZoneRepository(session)
    if repo.find_by_name(payload.name) is not None:
        raise ApiError.conflict("Zone name already exists")
    return success(repo.create(payload.model_dump()))


@router.get("/{zone_id}")
def get_zone(
    zone_id: int,
    _user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return success(ZoneRepository(session).get_or_404(zone_id))


@router.get("/{zone_id}/estimate")
def estimate_price(
    zone_id: int,
    distance_m: float = Query(..., ge=0),
    duration_s: float = Query(..., ge=0),
    _user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    zone = ZoneRepository(session).get_or_404(zone_id)
    return success({
        "zone_id": zone.id,
        "distance_m": distance_m,
        "duration_s": duration_s,
        "surge_multiplier": zone.surge_multiplier,
        "price": ZoneRepository.calculate_price(zone, distance_m, duration_s),
    })


@router.put("/{zone_id}")
def update_zone(
    zone_id: int,
    payload: s.ZoneUpdate,
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = ZoneRepository(session)
    repo.get_or_404(zone_id)
    data = payload.model_dump(exclude_unset=True)
    if data:
        repo.update_by_id(zone_id, data)
    return success(repo.get_or_404(zone_id))


@router.patch("/{zone_id}/surge")
def update_surge(
    zone_id: int,
    payload: s.ZoneSurgeUpdate,
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = ZoneRepository(session)
    repo.get_or_404(zone_id)
    repo.update_surge(zone_id, payload.surge_multiplier)
    return success(repo.get_or_404(zone_id))


@router.delete("/{zone_id}")
def delete_zone(
    zone_id: int,
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = ZoneRepository(session)
    repo.get_or_404(zone_id)
    repo.delete_by_id(zone_id)
    return success({"deleted": True})
