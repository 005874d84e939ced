from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from .. import schemas as s
from ..auth import CurrentUser, ensure_trip_participant, get_current_user, require_admin
from ..database import get_session
from ..errors import ApiError
from ..models import PaymentStatus
from ..repositories import PaymentRepository, TripRepository
from ..responses import Page, paginated, pagination, success
from ..services import NotificationService

router = APIRouter(prefix="/payments", tags=["payments"])


def _parse_date(value: str, name: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise ApiError.bad_request(f"Invalid date format for '{name}'")


@router.get("")
def list_payments(
    page: Page = Depends(pagination),
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = PaymentRepository(session)
    return paginated(repo.find_all(limit=page.limit, offset=page.offset), page.page, page.limit, repo.count())


@router.get("/revenue/total")
def total_revenue(
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    return success({"total": PaymentRepository(session).get_total_revenue()})


@router.get("/revenue/range")
def revenue_by_range(
    start: str = Query(...),
    end: str = Query(...),
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    start_at = _parse_date(start, "start")
    end_at = _parse_date(end, "end")
    if start_at > end_at:
        raise ApiError.bad_request("'start' must be before 'end'")
    total = PaymentRepository(session).get_revenue_by_date_range(start_at, end_at)
    return success({"start": start_at, "end": end_at, "total": total})


@router.get("/trip/{trip_id}")
def payments_for_trip(
    trip_id: int,
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    ensure_trip_participant(session, current, TripRepository(session).get_or_404(trip_id))
    return success(PaymentRepository(session).get_by_trip(trip_id))


@router.get("/status/{status}")
def payments_by_status(
    status: PaymentStatus,
    page: Page = Depends(pagination),
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = PaymentRepository(session)
    rows = repo.get_by_status(status.value, page.limit, page.offset)
    return paginated(rows, page.page, page.limit, repo.count({"status": status.value}))


@router.post("", status_code=201)
def create_payment(
    payload: s.PaymentCreate,
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    ensure_trip_participant(session, current, TripRepository(session).get_or_404(payload.trip_id))
    return success(PaymentRepository(session).create(payload.model_dump()))


@router.get("/{payment_id}")
def get_payment(
    payment_id: int,
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    payment = PaymentRepository(session).get_or_404(payment_id)
    ensure_trip_participant(session, current, TripRepository(session).get_or_404(payment.trip_id))
    return success(payment)


@router.put("/{payment_id}")
def update_payment(
    payment_id: int,
    payload: s.PaymentUpdate,
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = PaymentRepository(session)
    repo.get_or_404(payment_id)
    data = payload.model_dump(exclude_unset=True)
    if data:
        repo.update_by_id(payment_id, data)
    return success(repo.get_or_404(payment_id))


@router.patch("/{payment_id}/status")
def update_payment_status(
    payment_id: int,
    payload: s.PaymentStatusUpdate,
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = PaymentRepository(session)
    was_paid = repo.get_or_404(payment_id).status == PaymentStatus.PAID.value
    repo.update_status(payment_id, payload.status, payload.provider_ref)
    payment = repo.get_or_404(payment_id)
    if not was_paid and payment.status == PaymentStatus.PAID.value:
        trip = TripRepository(session).find_by_id(payment.trip_id)
        if trip is not None:
            NotificationService(session).notify_payment_confirmed(trip, payment.amount)
    return success(payment)


@router.delete("/{payment_id}")
def delete_payment(
    payment_id: int,
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = PaymentRepository(session)
    repo.get_or_404(payment_id)
    repo.delete_by_id(payment_id)
    return success({"deleted": True})
