from typing import Any, Dict, List, Optional

from sqlalchemy import select as sa_select

from ..models import DriverLocation, utcnow
from .base import CrudRepository
from .drivers import haversine_distance


class DriverLocationRepository(CrudRepository[DriverLocation]):
    """Last known position per driver (``driver_location_live``)."""

    model = DriverLocation
    resource = "Driver location"

    def upsert(self, driver_id: int, lat: float, lng: float) -> DriverLocation:
        location = self.session.merge(DriverLocation(driver_id=driver_id, lat=lat, lng=lng, updated_at=utcnow()))
        self.commit()
        self.session.refresh(location)
        return location

    def get_location(self, driver_id: int) -> Optional[DriverLocation]:
        return self.find_by_id(driver_id)

    def get_nearby(self, lat: float, lng: float, radius_meters: float, limit: int = 10) -> List[Dict[str, Any]]:
        distance = haversine_distance(lat, lng, DriverLocation.lat, DriverLocation.lng).label("distance")
        stmt = (
            sa_select(DriverLocation, distance)
            .where(distance < radius_meters)
            .order_by(distance)
            .limit(limit)
        )
        return [
            {**loc.model_dump(), "distance": int(round(dist or 0))}
            for loc, dist in self.session.exec(stmt).all()
        ]
