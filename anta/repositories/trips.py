from typing import Any, Dict, List, Optional

from sqlalchemy import or_, select as sa_select
from sqlalchemy.orm import aliased

from ..models import Driver, Rating, Trip, TripStatus, User, Vehicle, utcnow
from .base import CrudRepository

ACTIVE_STATUSES = (TripStatus.ASSIGNED.value, TripStatus.IN_PROGRESS.value)

# status -> timestamp column stamped on transition
STATUS_TIMESTAMPS = {
    TripStatus.IN_PROGRESS.value: "started_at",
    TripStatus.COMPLETED.value: "ended_at",
    TripStatus.CANCELLED.value: "cancelled_at",
}


class TripRepository(CrudRepository[Trip]):
    model = Trip
    resource = "Trip"
    soft_delete = True

    def get_by_passenger(self, passenger_id: int, limit: Optional[int] = None, offset: Optional[int] = None) -> List[Trip]:
        return self.find_all({"passenger_id": passenger_id}, limit, offset)

    def get_by_driver(self, driver_id: int, limit: Optional[int] = None, offset: Optional[int] = None) -> List[Trip]:
        return self.find_all({"driver_id": driver_id}, limit, offset)

    def get_by_status(self, status: str, limit: Optional[int] = None, offset: Optional[int] = None) -> List[Trip]:
        return self.find_all({"status": status}, limit, offset)

    def get_pending_trips(self, limit: Optional[int] = None, offset: Optional[int] = None) -> List[Trip]:
        return self.get_by_status(TripStatus.PENDING.value, limit, offset)

    def get_active_trips(self, limit: int = 100, offset: int = 0) -> List[Trip]:
        stmt = self.query().where(Trip.status.in_(ACTIVE_STATUSES)).order_by(Trip.id).limit(limit).offset(offset)
        return list(self.session.exec(stmt).all())

    def get_driver_active_trip(self, driver_id: int) -> Optional[Trip]:
        stmt = self.query({"driver_id": driver_id}).where(Trip.status.in_(ACTIVE_STATUSES))
        return self.session.exec(stmt).first()

    def get_passenger_active_trip(self, passenger_id: int) -> Optional[Trip]:
        statuses = (TripStatus.PENDING.value,) + ACTIVE_STATUSES
        stmt = self.query({"passenger_id": passenger_id}).where(Trip.status.in_(statuses))
        return self.session.exec(stmt).first()

    def update_status(self, id: int, status: str) -> int:
        data: Dict[str, Any] = {"status": status}
        column = STATUS_TIMESTAMPS.get(status)
        if column:
            data[column] = utcnow()
        return self.update_by_id(id, data)

    def assign_driver(self, trip_id: int, driver_id: int, vehicle_id: Optional[int] = None) -> int:
        return self.update_by_id(trip_id, {
            "driver_id": driver_id,
            "vehicle_id": vehicle_id,
            "status": TripStatus.ASSIGNED.value,
        })

    def complete_trip(self, trip_id: int, final_price: Optional[int]) -> int:
        return self.update_by_id(trip_id, {
            "status": TripStatus.COMPLETED.value,
            "price_final": final_price,
            "ended_at": utcnow(),
        })

    def cancel_trip(self, trip_id: int, reason: Optional[str] = None) -> int:
        return self.update_by_id(trip_id, {
            "status": TripStatus.CANCELLED.value,
            "cancellation_reason": reason,
            "cancelled_at": utcnow(),
        })

    def get_trip_with_details(self, trip_id: int) -> Optional[Dict[str, Any]]:
        passenger = aliased(User)
        driver_user = aliased(User)
        stmt = (
            self._filter(sa_select(Trip, passenger, Driver, driver_user, Vehicle), {"id": trip_id})
            .select_from(Trip)
            .join(passenger, Trip.passenger_id == passenger.id, isouter=True)
            .join(Driver, Trip.driver_id == Driver.id, isouter=True)
            .join(driver_user, Driver.user_id == driver_user.id, isouter=True)
            .join(Vehicle, Trip.vehicle_id == Vehicle.id, isouter=True)
        )
        row = self.session.exec(stmt).first()
        if row is None:
            return None
        trip, pax, drv, drv_user, vehicle = row
        return {
            **trip.model_dump(),
            "passenger_name": pax.name if pax else None,
            "passenger_phone": pax.phone if pax else None,
            "driver_rating": drv.rating_avg if drv else None,
            "driver_name": drv_user.name if drv_user else None,
            "driver_phone": drv_user.phone if drv_user else None,
            "vehicle_type": vehicle.type if vehicle else None,
            "vehicle_model": vehicle.model if vehicle else None,
            "vehicle_color": vehicle.color if vehicle else None,
        }

    def get_trip_history(self, user_id: int, limit: int = 20, offset: int = 0) -> List[Trip]:
        """Trips the user rode in or drove, newest first."""
        driver_ids = sa_select(Driver.id).where(Driver.user_id == user_id)
        stmt = (
            self.query()
            .where(or_(Trip.passenger_id == user_id, Trip.driver_id.in_(driver_ids)))
            .order_by(Trip.created_at.desc(), Trip.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(self.session.exec(stmt).all())

    def get_unrated_trips(self, user_id: int, as_driver: bool = False, limit: int = 10) -> List[Trip]:
        """Completed trips the user took part in but has not rated yet, latest first."""
        if as_driver:
            participant = Trip.driver_id.in_(sa_select(Driver.id).where(Driver.user_id == user_id))
        else:
            participant = Trip.passenger_id == user_id
        rated = sa_select(Rating.id).where(Rating.trip_id == Trip.id, Rating.from_user_id == user_id)
        stmt = (
            self.query({"status": TripStatus.COMPLETED.value})
            .where(participant, ~rated.exists())
            .order_by(Trip.ended_at.desc(), Trip.id.desc())
            .limit(limit)
        )
        return list(self.session.exec(stmt).all())
