from typing import List, Optional

from sqlalchemy import case, or_, update as sa_update

from ..models import DiscountType, PromoCode, utcnow
from .base import CrudRepository


class PromoCodeRepository(CrudRepository[PromoCode]):
    model = PromoCode
    resource = "Promo code"

    def find_by_code(self, code: str) -> Optional[PromoCode]:
        return self.find_one({"code": code.upper()})

    def _valid_now(self, stmt):
        now = utcnow()
        return (
            stmt.where(PromoCode.active.is_(True))
            .where(or_(PromoCode.valid_from.is_(None), PromoCode.valid_from <= now))
            .where(or_(PromoCode.valid_to.is_(None), PromoCode.valid_to >= now))
        )

    def is_valid(self, code: str) -> bool:
        stmt = self._valid_now(self.query({"code": code.upper()})).where(
            or_(PromoCode.usage_limit.is_(None), PromoCode.usage_limit > 0)
        )
        return self.session.exec(stmt).first() is not None

    def get_active_promo_codes(self) -> List[PromoCode]:
        return list(self.session.exec(self._valid_now(self.query()).order_by(PromoCode.id)).all())

    @staticmethod
    def calculate_discount(promo: PromoCode, original_amount: int) -> int:
        if promo.discount_type == DiscountType.PERCENT.value:
            return round(original_amount * promo.value / 100)
        return min(promo.value, original_amount)

    def apply_promo_code(self, code: str) -> bool:
        """Consume one use of the code; False when it is inactive or used up."""
        stmt = (
            sa_update(PromoCode)
            .where(PromoCode.code == code.upper())
            .where(PromoCode.active.is_(True))
            .where(or_(PromoCode.usage_limit.is_(None), PromoCode.usage_limit > 0))
            .values(usage_limit=case(
                (PromoCode.usage_limit.is_(None), None),
                else_=PromoCode.usage_limit - 1,
            ))
            .execution_options(synchronize_session=False)
        )
        result = self.session.exec(stmt)
        self.commit()
        return result.rowcount > 0

    def deactivate(self, id: int) -> int:
        return self.update_by_id(id, {"active": False})
