from fastapi import APIRouter, Depends
from sqlmodel import Session

from .. import schemas as s
from ..auth import CurrentUser, ensure_owner_or_admin, get_current_user, require_admin
from ..database import get_session
from ..errors import ApiError
from ..models import VehicleStatus, VehicleType
from ..repositories import DriverRepository, VehicleRepository
from ..responses import Page, paginated, pagination, success

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


def _check_driver_owner(session: Session, current: CurrentUser, driver_id: int) -> None:
    driver = DriverRepository(session).get_or_404(driver_id)
    ensure_owner_or_admin(current, driver.user_id)


@router.get("")
def list_vehicles(
    page: Page = Depends(pagination),
    _user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    repo = VehicleRepository(session)
    return paginated(repo.find_all(limit=page.limit, offset=page.offset), page.page, page.limit, repo.count())


@router.get("/active")
def active_vehicles(
    page: Page = Depends(pagination),
    _user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    repo = VehicleRepository(session)
    total = repo.count({"status": VehicleStatus.ACTIVE.value})
    return paginated(repo.get_active_vehicles(page.limit, page.offset), page.page, page.limit, total)


@router.get("/type/{vehicle_type}")
def vehicles_by_type(
    vehicle_type: VehicleType,
    page: Page = Depends(pagination),
    _user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    repo = VehicleRepository(session)
    rows = repo.get_by_type(vehicle_type.value, page.limit, page.offset)
    return paginated(rows, page.page, page.limit, repo.count({"type": vehicle_type.value}))


@router.get("/driver/{driver_id}")
def vehicle_by_driver(
    driver_id: int,
    _user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    vehicle = VehicleRepository(session).find_by_driver_id(driver_id)
    if vehicle is None:
        raise ApiError.not_found("Vehicle")
    return success(vehicle)


@router.post("", status_code=201)
def create_vehicle(
    payload: s.VehicleCreate,
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    _check_driver_owner(session, current, payload.driver_id)
    data = payload.model_dump()
    if not current.is_admin:
        data["status"] = VehicleStatus.PENDING.value
    return success(VehicleRepository(session).create(data))


@router.get("/{vehicle_id}")
def get_vehicle(
    vehicle_id: int,
    _user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return success(VehicleRepository(session).get_or_404(vehicle_id))


@router.put("/{vehicle_id}")
def update_vehicle(
    vehicle_id: int,
    payload: s.VehicleUpdate,
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    repo = VehicleRepository(session)
    vehicle = repo.get_or_404(vehicle_id)
    _check_driver_owner(session, current, vehicle.driver_id)
    data = payload.model_dump(exclude_unset=True)
    if data:
        repo.update_by_id(vehicle_id, data)
    return success(repo.get_or_404(vehicle_id))


@router.patch("/{vehicle_id}/status")
def update_vehicle_status(
    vehicle_id: int,
    payload: s.VehicleStatusUpdate,
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = VehicleRepository(session)
    repo.get_or_404(vehicle_id)
    repo.update_status(vehicle_id, payload.status)
    return success(repo.get_or_404(vehicle_id))


@router.delete("/{vehicle_id}")
def delete_vehicle(
    vehicle_id: int,
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    repo = VehicleRepository(session)
    vehicle = repo.get_or_404(vehicle_id)
    _check_driver_owner(session, current, vehicle.driver_id)
    repo.delete_by_id(vehicle_id)
    return success({"deleted": True})
