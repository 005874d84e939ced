from typing import List

from ..models import KycDocument
from .base import CrudRepository


class KycDocumentRepository(CrudRepository[KycDocument]):
    model = KycDocument
    resource = "KYC document"

    def get_for_driver(self, driver_id: int) -> List[KycDocument]:
        return self.find_all({"driver_id": driver_id})

    def set_status_for_driver(self, driver_id: int, status: str) -> int:
        return self.update({"driver_id": driver_id}, {"status": status})
