from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select as sa_select

from ..models import Payment, PaymentStatus
from .base import CrudRepository


class PaymentRepository(CrudRepository[Payment]):
    model = Payment
    resource = "Payment"

    def get_by_trip(self, trip_id: int) -> List[Payment]:
        return self.find_all({"trip_id": trip_id})

    def get_by_status(self, status: str, limit: Optional[int] = None, offset: Optional[int] = None) -> List[Payment]:
        return self.find_all({"status": status}, limit, offset)

    def update_status(self, id: int, status: str, provider_ref: Optional[str] = None) -> int:
        data = {"status": status}
        if provider_ref:
            data["provider_ref"] = provider_ref
        return self.update_by_id(id, data)

    def get_total_revenue(self) -> int:
        stmt = sa_select(func.sum(Payment.amount)).where(Payment.status == PaymentStatus.PAID.value)
        return int(self.session.exec(stmt).scalar_one() or 0)

    def get_revenue_by_date_range(self, start: datetime, end: datetime) -> int:
        stmt = (
            sa_select(func.sum(Payment.amount))
            .where(Payment.status == PaymentStatus.PAID.value)
            .where(Payment.created_at.between(start, end))
        )
        return int(self.session.exec(stmt).scalar_one() or 0)
