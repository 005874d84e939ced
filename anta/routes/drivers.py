from fastapi import APIRouter, Depends, Query, Request
from sqlmodel import Session

from .. import schemas as s
from ..admin_log import log_admin_action
from ..auth import CurrentUser, ensure_owner_or_admin, get_current_user, require_admin
from ..database import get_session
from ..errors import ApiError
from ..models import DriverStatus, KycStatus
from ..repositories import (
    DriverLocationRepository,
    DriverRepository,
    KycDocumentRepository,
    UserRepository,
)
from ..responses import Page, paginated, pagination, success

router = APIRouter(prefix="/drivers", tags=["drivers"])


def _owned_driver(session: Session, current: CurrentUser, driver_id: int):
    driver = DriverRepository(session).get_or_404(driver_id)
    ensure_owner_or_admin(current, driver.user_id)
    return driver


# ---------------- listings ----------------
@router.get("")
def list_drivers(
    page: Page = Depends(pagination),
    _user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    repo = DriverRepository(session)
    return paginated(repo.find_all(limit=page.limit, offset=page.offset), page.page, page.limit, repo.count())


@router.get("/nearby")
def nearby_drivers(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius: float = Query(5000, gt=0),
    limit: int = Query(10, ge=1, le=50),
    _user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    drivers = DriverRepository(session).get_available_nearby(lat, lng, radius, limit)
    return success(drivers, {"count": len(drivers), "radius": radius})


@router.get("/live/nearby")
def live_locations_nearby(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius: float = Query(5000, gt=0),
    limit: int = Query(10, ge=1, le=50),
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    locations = DriverLocationRepository(session).get_nearby(lat, lng, radius, limit)
    return success(locations, {"count": len(locations), "radius": radius})


@router.get("/online")
def online_drivers(
    page: Page = Depends(pagination),
    _user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    repo = DriverRepository(session)
    total = repo.count({"status": DriverStatus.ONLINE.value})
    return paginated(repo.get_online_drivers(page.limit, page.offset), page.page, page.limit, total)


@router.get("/available")
def available_drivers(
    page: Page = Depends(pagination),
    _user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    repo = DriverRepository(session)
    total = repo.count({"status": DriverStatus.ONLINE.value})
    return paginated(repo.get_available_drivers(page.limit, page.offset), page.page, page.limit, total)


@router.get("/details")
def drivers_with_details(
    page: Page = Depends(pagination),
    _user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    repo = DriverRepository(session)
    rows = repo.get_drivers_with_details(page.limit, page.offset)
    return paginated(rows, page.page, page.limit, repo.count())


@router.get("/status/{status}")
def drivers_by_status(
    status: DriverStatus,
    page: Page = Depends(pagination),
    _user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    repo = DriverRepository(session)
    rows = repo.get_by_status(status.value, page.limit, page.offset)
    return paginated(rows, page.page, page.limit, repo.count({"status": status.value}))


@router.get("/user/{user_id}")
def driver_by_user(
    user_id: int,
    _user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    driver = DriverRepository(session).find_by_user_id(user_id)
    if driver is None:
        raise ApiError.not_found("Driver")
    return success(driver)


@router.get("/kyc/pending")
def pending_kyc(
    page: Page = Depends(pagination),
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = DriverRepository(session)
    rows = repo.get_pending_kyc_drivers(page.limit, page.offset)
    return paginated(rows, page.page, page.limit, repo.count({"kyc_status": KycStatus.PENDING.value}))


# ---------------- CRUD ----------------
@router.post("", status_code=201)
def create_driver(
    payload: s.DriverCreate,
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    ensure_owner_or_admin(current, payload.user_id)
    UserRepository(session).get_or_404(payload.user_id)
    repo = DriverRepository(session)
    if repo.find_by_user_id(payload.user_id) is not None:
        raise ApiError.conflict("User is already registered as a driver")
    return success(repo.create(payload.model_dump()))


@router.get("/{driver_id}")
def get_driver(
    driver_id: int,
    _user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return success(DriverRepository(session).get_or_404(driver_id))


@router.put("/{driver_id}")
def update_driver(
    driver_id: int,
    payload: s.DriverUpdate,
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    _owned_driver(session, current, driver_id)
    data = payload.model_dump(exclude_unset=True)
    if not current.is_admin:
        # rating, trip count and KYC are admin-managed
        for key in ("kyc_status", "rating_avg", "total_trips"):
            data.pop(key, None)
    repo = DriverRepository(session)
    if data:
        repo.update_by_id(driver_id, data)
    return success(repo.get_or_404(driver_id))


@router.delete("/{driver_id}")
def delete_driver(
    driver_id: int,
    request: Request,
    admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = DriverRepository(session)
    repo.get_or_404(driver_id)
    repo.delete_by_id(driver_id)
    log_admin_action(session, admin.user_id, "delete_driver", "driver", driver_id, request=request)
    return success({"deleted": True})


@router.patch("/{driver_id}/status")
def update_driver_status(
    driver_id: int,
    payload: s.DriverStatusUpdate,
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    _owned_driver(session, current, driver_id)
    repo = DriverRepository(session)
    repo.update_status(driver_id, payload.status)
    return success(repo.get_or_404(driver_id))


@router.patch("/{driver_id}/rating")
def update_driver_rating(
    driver_id: int,
    payload: s.DriverRatingUpdate,
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = DriverRepository(session)
    repo.get_or_404(driver_id)
    repo.update_rating(driver_id, payload.rating_avg, payload.total_trips)
    return success(repo.get_or_404(driver_id))


@router.post("/{driver_id}/increment-trips")
def increment_driver_trips(
    driver_id: int,
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = DriverRepository(session)
    repo.get_or_404(driver_id)
    repo.increment_trips(driver_id)
    driver = repo.get_or_404(driver_id)
    session.refresh(driver)
    return success(driver)


@router.patch("/{driver_id}/location")
def update_driver_location(
    driver_id: int,
    payload: s.LocationUpdate,
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    _owned_driver(session, current, driver_id)
    repo = DriverRepository(session)
    repo.update_location(driver_id, payload.latitude, payload.longitude)
    DriverLocationRepository(session).upsert(driver_id, payload.latitude, payload.longitude)
    return success(repo.get_or_404(driver_id))


@router.get("/{driver_id}/location")
def get_driver_location(
    driver_id: int,
    _user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    DriverRepository(session).get_or_404(driver_id)
    location = DriverLocationRepository(session).get_location(driver_id)
    if location is None:
        raise ApiError.not_found("Driver location")
    return success(location)


# ---------------- KYC ----------------
@router.post("/{driver_id}/kyc/documents", status_code=201)
def add_kyc_document(
    driver_id: int,
    payload: s.KycDocumentCreate,
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    _owned_driver(session, current, driver_id)
    document = KycDocumentRepository(session).create({"driver_id": driver_id, **payload.model_dump()})
    return success(document)


@router.get("/{driver_id}/kyc/documents")
def list_kyc_documents(
    driver_id: int,
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    _owned_driver(session, current, driver_id)
    return success(KycDocumentRepository(session).get_for_driver(driver_id))


@router.post("/{driver_id}/kyc/approve")
def approve_kyc(
    driver_id: int,
    request: Request,
    admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = DriverRepository(session)
    repo.get_or_404(driver_id)
    repo.approve_kyc(driver_id, admin.user_id)
    KycDocumentRepository(session).set_status_for_driver(driver_id, KycStatus.APPROVED.value)
    log_admin_action(session, admin.user_id, "approve_kyc", "driver", driver_id, request=request)
    return success(repo.get_or_404(driver_id))


@router.post("/{driver_id}/kyc/reject")
def reject_kyc(
    driver_id: int,
    payload: s.KycRejection,
    request: Request,
    admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = DriverRepository(session)
    repo.get_or_404(driver_id)
    repo.reject_kyc(driver_id, admin.user_id, payload.reason)
    KycDocumentRepository(session).set_status_for_driver(driver_id, KycStatus.REJECTED.value)
    log_admin_action(
        session, admin.user_id, "reject_kyc", "driver", driver_id,
        {"reason": payload.reason or "No reason provided"}, request,
    )
    return success(repo.get_or_404(driver_id))
