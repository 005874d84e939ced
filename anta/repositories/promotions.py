from typing import Any, Dict

from sqlalchemy import distinct, func, select as sa_select

from ..models import Promotion, PromotionUsage
from .base import CrudRepository


class PromotionRepository(CrudRepository[Promotion]):
    model = Promotion
    resource = "Promotion"

    def find_by_code(self, code: str):
        return self.find_one({"code": code})

    def toggle(self, promotion: Promotion) -> int:
        return self.update_by_id(promotion.id, {"is_active": not promotion.is_active})

    def get_usage_stats(self, promotion_id: int) -> Dict[str, Any]:
        stmt = sa_select(
            func.count(PromotionUsage.id),
            func.sum(PromotionUsage.discount_amount),
            func.count(distinct(PromotionUsage.user_id)),
        ).where(PromotionUsage.promotion_id == promotion_id)
        uses, discount, users = self.session.exec(stmt).one()
        return {
            "total_uses": int(uses or 0),
            "total_discount": int(discount or 0),
            "unique_users": int(users or 0),
        }


class PromotionUsageRepository(CrudRepository[PromotionUsage]):
    model = PromotionUsage
    resource = "Promotion usage"
