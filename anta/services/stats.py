from datetime import timedelta
from typing import Any, Dict

from sqlalchemy import func, select as sa_select
from sqlmodel import Session

from ..models import Driver, DriverStatus, Payment, PaymentStatus, Trip, TripStatus, User, utcnow


def _scalar(session: Session, stmt) -> int:
    return int(session.exec(stmt).scalar_one() or 0)


def _count(model, *conditions):
    return sa_select(func.count()).select_from(model).where(*conditions)


def dashboard_stats(session: Session) -> Dict[str, Any]:
    now = utcnow()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    week_ago = now - timedelta(days=7)
    month_ago = now - timedelta(days=30)

    users_by_role = dict(session.exec(
        sa_select(User.role, func.count()).group_by(User.role)
    ).all())
    users = {
        "total": _scalar(session, _count(User)),
        "new_today": _scalar(session, _count(User, User.created_at >= today)),
        "new_this_week": _scalar(session, _count(User, User.created_at >= week_ago)),
        "new_this_month": _scalar(session, _count(User, User.created_at >= month_ago)),
        "by_role": {role: int(n) for role, n in users_by_role.items()},
    }

    live = Driver.deleted_at.is_(None)
    kyc = dict(session.exec(
        sa_select(Driver.kyc_status, func.count()).where(live).group_by(Driver.kyc_status)
    ).all())
    avg_rating = session.exec(
        sa_select(func.avg(Driver.rating_avg)).where(live, Driver.rating_avg > 0)
    ).scalar_one()
    drivers = {
        "total": _scalar(session, _count(Driver, live)),
        "by_kyc_status": {status: int(n) for status, n in kyc.items()},
        "online": _scalar(session, _count(Driver, live, Driver.status == DriverStatus.ONLINE.value)),
        "average_rating": round(float(avg_rating), 2) if avg_rating is not None else 0.0,
    }

    trip_live = Trip.deleted_at.is_(None)
    total_trips = _scalar(session, _count(Trip, trip_live))
    completed = _scalar(session, _count(Trip, trip_live, Trip.status == TripStatus.COMPLETED.value))
    trips = {
        "total": total_trips,
        "today": _scalar(session, _count(Trip, trip_live, Trip.created_at >= today)),
        "this_week": _scalar(session, _count(Trip, trip_live, Trip.created_at >= week_ago)),
        "completed": completed,
        "cancelled": _scalar(session, _count(Trip, trip_live, Trip.status == TripStatus.CANCELLED.value)),
        "completion_rate": round(completed * 100 / total_trips, 1) if total_trips else 0.0,
    }

    def revenue_since(start=None) -> int:
        stmt = sa_select(func.sum(Payment.amount)).where(Payment.status == PaymentStatus.PAID.value)
        if start is not None:
            stmt = stmt.where(Payment.created_at >= start)
        return _scalar(session, stmt)

    revenue = {
        "total": revenue_since(),
        "today": revenue_since(today),
        "this_week": revenue_since(week_ago),
        "this_month": revenue_since(month_ago),
    }

    return {"users": users, "drivers": drivers, "trips": trips, "revenue": revenue}
