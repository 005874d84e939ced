from typing import Optional

from ..models import Zone
from .base import CrudRepository


class ZoneRepository(CrudRepository[Zone]):
    model = Zone
    resource = "Zone"

    def find_by_name(self, name: str) -> Optional[Zone]:
        return self.find_one({"name": name})

    @staticmethod
    def calculate_price(zone: Zone, distance_meters: float, duration_seconds: float) -> int:
        distance_km = distance_meters / 1000
        duration_min = duration_seconds / 60
        subtotal = zone.base_fare + distance_km * zone.per_km + duration_min * zone.per_min
        return round(subtotal * zone.surge_multiplier)

    def update_surge(self, zone_id: int, surge_multiplier: float) -> int:
        return self.update_by_id(zone_id, {"surge_multiplier": surge_multiplier})
