from typing import List, Optional

from ..models import Vehicle, VehicleStatus
from .base import CrudRepository


class VehicleRepository(CrudRepository[Vehicle]):
    model = Vehicle
    resource = "Vehicle"

    def find_by_driver_id(self, driver_id: int) -> Optional[Vehicle]:
        return self.find_one({"driver_id": driver_id})

    def get_by_type(self, type: str, limit: Optional[int] = None, offset: Optional[int] = None) -> List[Vehicle]:
        return self.find_all({"type": type}, limit, offset)

    def get_active_vehicles(self, limit: Optional[int] = None, offset: Optional[int] = None) -> List[Vehicle]:
        return self.find_all({"status": VehicleStatus.ACTIVE.value}, limit, offset)

    def update_status(self, id: int, status: str) -> int:
        return self.update_by_id(id, {"status": status})
