from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from .. import schemas as s
from ..auth import (
    CurrentUser,
    ensure_assigned_driver,
    ensure_owner_or_admin,
    ensure_trip_participant,
    get_current_user,
    require_admin,
    require_roles,
)
from ..database import get_session
from ..errors import ApiError
from ..models import TripStatus, UserRole
from ..repositories import DriverRepository, TripRepository
from ..repositories.trips import ACTIVE_STATUSES
from ..responses import Page, paginated, pagination, success
from ..services import NotificationService

router = APIRouter(prefix="/trips", tags=["trips"])

FINISHED_STATUSES = (TripStatus.COMPLETED.value, TripStatus.CANCELLED.value)

# fields a passenger or driver may edit; prices and payment state are admin-only
PARTICIPANT_EDITABLE = {"origin_text", "dest_text", "payment_method"}

require_driver_or_admin = require_roles(UserRole.DRIVER, UserRole.ADMIN)


# ---------------- listings ----------------
@router.get("")
def list_trips(
    page: Page = Depends(pagination),
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = TripRepository(session)
    return paginated(repo.find_all(limit=page.limit, offset=page.offset), page.page, page.limit, repo.count())


@router.get("/pending")
def pending_trips(
    page: Page = Depends(pagination),
    _user: CurrentUser = Depends(require_driver_or_admin),
    session: Session = Depends(get_session),
):
    repo = TripRepository(session)
    total = repo.count({"status": TripStatus.PENDING.value})
    return paginated(repo.get_pending_trips(page.limit, page.offset), page.page, page.limit, total)


@router.get("/active")
def active_trips(
    page: Page = Depends(pagination),
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = TripRepository(session)
    rows = repo.get_active_trips(page.limit, page.offset)
    total = sum(repo.count({"status": status}) for status in ACTIVE_STATUSES)
    return paginated(rows, page.page, page.limit, total)


@router.get("/history")
def trip_history(
    page: Page = Depends(pagination),
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    rows = TripRepository(session).get_trip_history(current.user_id, page.limit, page.offset)
    return success(rows, {"page": page.page, "limit": page.limit})


@router.get("/status/{status}")
def trips_by_status(
    status: TripStatus,
    page: Page = Depends(pagination),
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = TripRepository(session)
    rows = repo.get_by_status(status.value, page.limit, page.offset)
    return paginated(rows, page.page, page.limit, repo.count({"status": status.value}))


@router.get("/passenger/{passenger_id}")
def trips_by_passenger(
    passenger_id: int,
    page: Page = Depends(pagination),
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    ensure_owner_or_admin(current, passenger_id)
    repo = TripRepository(session)
    rows = repo.get_by_passenger(passenger_id, page.limit, page.offset)
    return paginated(rows, page.page, page.limit, repo.count({"passenger_id": passenger_id}))


@router.get("/passenger/{passenger_id}/active")
def passenger_active_trip(
    passenger_id: int,
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    ensure_owner_or_admin(current, passenger_id)
    return success(TripRepository(session).get_passenger_active_trip(passenger_id))


@router.get("/driver/{driver_id}")
def trips_by_driver(
    driver_id: int,
    page: Page = Depends(pagination),
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    driver = DriverRepository(session).get_or_404(driver_id)
    ensure_owner_or_admin(current, driver.user_id)
    repo = TripRepository(session)
    rows = repo.get_by_driver(driver_id, page.limit, page.offset)
    return paginated(rows, page.page, page.limit, repo.count({"driver_id": driver_id}))


@router.get("/driver/{driver_id}/active")
def driver_active_trip(
    driver_id: int,
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    driver = DriverRepository(session).get_or_404(driver_id)
    ensure_owner_or_admin(current, driver.user_id)
    return success(TripRepository(session).get_driver_active_trip(driver_id))


# ---------------- CRUD ----------------
@router.post("", status_code=201)
def create_trip(
    payload: s.TripCreate,
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    ensure_owner_or_admin(current, payload.passenger_id)
    repo = TripRepository(session)
    if repo.get_passenger_active_trip(payload.passenger_id) is not None:
        raise ApiError.conflict("Passenger already has an active trip")
    return success(repo.create(payload.model_dump()))


@router.get("/{trip_id}")
def get_trip(
    trip_id: int,
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    trip = TripRepository(session).get_or_404(trip_id)
    ensure_trip_participant(session, current, trip)
    return success(trip)


@router.get("/{trip_id}/details")
def get_trip_details(
    trip_id: int,
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    repo = TripRepository(session)
    ensure_trip_participant(session, current, repo.get_or_404(trip_id))
    return success(repo.get_trip_with_details(trip_id))


@router.put("/{trip_id}")
def update_trip(
    trip_id: int,
    payload: s.TripUpdate,
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    repo = TripRepository(session)
    ensure_trip_participant(session, current, repo.get_or_404(trip_id))
    data = payload.model_dump(exclude_unset=True)
    if not current.is_admin and set(data) - PARTICIPANT_EDITABLE:
        raise ApiError.forbidden("Only admins can change pricing or payment fields")
    if data:
        repo.update_by_id(trip_id, data)
    return success(repo.get_or_404(trip_id))


def _start(session: Session, trip) -> None:
    if trip.status != TripStatus.ASSIGNED.value:
        raise ApiError.bad_request("Only an assigned trip can be started")
    TripRepository(session).update_status(trip.id, TripStatus.IN_PROGRESS.value)
    session.refresh(trip)
    NotificationService(session).notify_trip_started(trip)


def _complete(session: Session, trip, price_final: Optional[int] = None) -> None:
    if trip.status in FINISHED_STATUSES:
        raise ApiError.bad_request(f"Trip is already {trip.status}")
    final_price = price_final if price_final is not None else trip.price_estimated
    TripRepository(session).complete_trip(trip.id, final_price)
    if trip.driver_id is not None:
        DriverRepository(session).increment_trips(trip.driver_id)
    session.refresh(trip)
    NotificationService(session).notify_trip_completed(trip)


def _cancel(session: Session, current: CurrentUser, trip, reason: Optional[str] = None) -> None:
    if trip.status in FINISHED_STATUSES:
        raise ApiError.bad_request(f"Trip is already {trip.status}")
    TripRepository(session).cancel_trip(trip.id, reason)
    session.refresh(trip)
    NotificationService(session).notify_trip_cancelled(trip, current.user_id, current.role)


@router.patch("/{trip_id}/status")
def update_trip_status(
    trip_id: int,
    payload: s.TripStatusUpdate,
    current: CurrentUser = Depends(require_driver_or_admin),
    session: Session = Depends(get_session),
):
    repo = TripRepository(session)
    trip = repo.get_or_404(trip_id)
    ensure_assigned_driver(session, current, trip)
    status = TripStatus(payload.status)
    if status == TripStatus.IN_PROGRESS:
        _start(session, trip)
    elif status == TripStatus.COMPLETED:
        _complete(session, trip)
    elif status == TripStatus.CANCELLED:
        _cancel(session, current, trip)
    else:
        raise ApiError.bad_request(f"Cannot move a trip to '{status.value}'; use the assign endpoint")
    return success(repo.get_or_404(trip_id))


@router.post("/{trip_id}/assign")
def assign_trip(
    trip_id: int,
    payload: s.TripAssign,
    current: CurrentUser = Depends(require_driver_or_admin),
    session: Session = Depends(get_session),
):
    repo = TripRepository(session)
    trip = repo.get_or_404(trip_id)
    if trip.status != TripStatus.PENDING.value:
        raise ApiError.bad_request("Trip is not available for assignment")
    driver = DriverRepository(session).get_or_404(payload.driver_id)
    ensure_owner_or_admin(current, driver.user_id)
    repo.assign_driver(trip_id, payload.driver_id, payload.vehicle_id)
    session.refresh(trip)
    NotificationService(session).notify_trip_accepted(trip)
    return success(repo.get_or_404(trip_id))


@router.post("/{trip_id}/complete")
def complete_trip(
    trip_id: int,
    payload: s.TripComplete,
    current: CurrentUser = Depends(require_driver_or_admin),
    session: Session = Depends(get_session),
):
    repo = TripRepository(session)
    trip = repo.get_or_404(trip_id)
    ensure_assigned_driver(session, current, trip)
    _complete(session, trip, payload.price_final)
    return success(repo.get_or_404(trip_id))


@router.post("/{trip_id}/cancel")
def cancel_trip(
    trip_id: int,
    payload: s.TripCancel,
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    repo = TripRepository(session)
    trip = repo.get_or_404(trip_id)
    ensure_trip_participant(session, current, trip)
    _cancel(session, current, trip, payload.reason)
    return success(repo.get_or_404(trip_id))


@router.delete("/{trip_id}")
def delete_trip(
    trip_id: int,
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = TripRepository(session)
    repo.get_or_404(trip_id)
    repo.delete_by_id(trip_id)
    return success({"deleted": True})
