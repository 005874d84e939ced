from typing import Any, Dict, List, Optional

from sqlalchemy import func, select as sa_select, update as sa_update

from ..models import Driver, DriverStatus, KycStatus, User, utcnow
from .base import CrudRepository

EARTH_RADIUS_M = 6371000


def haversine_distance(lat: float, lng: float, lat_col, lng_col):
    """SQL expression for the great-circle distance in meters.

    The acos argument is clamped to 1 so identical points give 0 rather than NULL.
    """
    cosine = (
        func.cos(func.radians(lat)) * func.cos(func.radians(lat_col))
        * func.cos(func.radians(lng_col) - func.radians(lng))
        + func.sin(func.radians(lat)) * func.sin(func.radians(lat_col))
    )
    return EARTH_RADIUS_M * func.acos(func.least(1.0, cosine))


def _user_summary(user: Optional[User], *fields: str) -> Optional[Dict[str, Any]]:
    if user is None:
        return None
    return {f: getattr(user, f) for f in ("id",) + fields}


class DriverRepository(CrudRepository[Driver]):
    model = Driver
    resource = "Driver"
    soft_delete = True

    def find_by_user_id(self, user_id: int) -> Optional[Driver]:
        return self.find_one({"user_id": user_id})

    def get_by_status(self, status: str, limit: Optional[int] = None, offset: Optional[int] = None) -> List[Driver]:
        return self.find_all({"status": status}, limit, offset)

    def get_online_drivers(self, limit: Optional[int] = None, offset: Optional[int] = None) -> List[Driver]:
        return self.get_by_status(DriverStatus.ONLINE.value, limit, offset)

    def get_available_drivers(self, limit: Optional[int] = None, offset: Optional[int] = None) -> List[Driver]:
        # online already excludes busy drivers
        return self.get_by_status(DriverStatus.ONLINE.value, limit, offset)

    def update_status(self, id: int, status: str) -> int:
        return self.update_by_id(id, {"status": status})

    def update_rating(self, id: int, rating_avg: float, total_trips: Optional[int] = None) -> int:
        data: Dict[str, Any] = {"rating_avg": rating_avg}
        if total_trips is not None:
            data["total_trips"] = total_trips
        return self.update_by_id(id, data)

    def increment_trips(self, id: int) -> int:
        stmt = (
            sa_update(Driver)
            .where(Driver.id == id)
            .values(total_trips=Driver.total_trips + 1)
            .execution_options(synchronize_session=False)
        )
        result = self.session.exec(stmt)
        self.commit()
        return result.rowcount

    def get_drivers_with_details(self, limit: Optional[int] = None, offset: Optional[int] = None) -> List[Dict[str, Any]]:
        stmt = (
            self._filter(sa_select(Driver, User))
            .join(User, Driver.user_id == User.id, isouter=True)
            .order_by(Driver.id)
        )
        if limit:
            stmt = stmt.limit(limit)
        if offset:
            stmt = stmt.offset(offset)
        return [
            {**driver.model_dump(), "user": _user_summary(user, "name", "phone", "email", "role", "is_active")}
            for driver, user in self.session.exec(stmt).all()
        ]

    # ---------------- KYC ----------------
    def get_by_kyc_status(self, kyc_status: str, limit: Optional[int] = None, offset: Optional[int] = None) -> List[Driver]:
        return self.find_all({"kyc_status": kyc_status}, limit, offset)

    def get_pending_kyc_drivers(self, limit: Optional[int] = None, offset: Optional[int] = None) -> List[Dict[str, Any]]:
        stmt = (
            self._filter(sa_select(Driver, User), {"kyc_status": KycStatus.PENDING.value})
            .join(User, Driver.user_id == User.id, isouter=True)
            .order_by(Driver.created_at.desc())
        )
        if limit:
            stmt = stmt.limit(limit)
        if offset:
            stmt = stmt.offset(offset)
        rows = []
        for driver, user in self.session.exec(stmt).all():
            rows.append({
                **driver.model_dump(),
                "user_name": user.name if user else None,
                "user_phone": user.phone if user else None,
                "user_email": user.email if user else None,
                "user_created_at": user.created_at if user else None,
            })
        return rows

    def approve_kyc(self, id: int, admin_id: int) -> int:
        return self.update_by_id(id, {
            "kyc_status": KycStatus.APPROVED.value,
            "kyc_approved_at": utcnow(),
            "kyc_approved_by": admin_id,
            "kyc_rejection_reason": None,
            "kyc_rejected_at": None,
        })

    def reject_kyc(self, id: int, admin_id: int, reason: Optional[str] = None) -> int:
        return self.update_by_id(id, {
            "kyc_status": KycStatus.REJECTED.value,
            "kyc_rejected_at": utcnow(),
            "kyc_approved_by": admin_id,
            "kyc_rejection_reason": reason or "No reason provided",
            "kyc_approved_at": None,
        })

    # ---------------- geolocation ----------------
    def update_location(self, id: int, latitude: float, longitude: float) -> int:
        return self.update_by_id(id, {
            "current_latitude": latitude,
            "current_longitude": longitude,
            "location_updated_at": utcnow(),
        })

    def get_available_nearby(
        self,
        latitude: float,
        longitude: float,
        radius_meters: float = 5000,
        limit: int = 10,
    ) -> List[Dict[str, Any]]:
        """Online drivers within ``radius_meters``, nearest first, with ``distance`` in meters."""
        distance = haversine_distance(
            latitude, longitude, Driver.current_latitude, Driver.current_longitude
        ).label("distance")
        stmt = (
            self._filter(sa_select(Driver, User, distance), {"status": DriverStatus.ONLINE.value})
            .join(User, Driver.user_id == User.id, isouter=True)
            .where(Driver.current_latitude.is_not(None))
            .where(Driver.current_longitude.is_not(None))
            .where(distance <= radius_meters)
            .order_by(distance)
            .limit(limit)
        )
        return [
            {
                **driver.model_dump(),
                "user": _user_summary(user, "name", "phone"),
                "distance": int(round(dist or 0)),
            }
            for driver, user, dist in self.session.exec(stmt).all()
        ]
