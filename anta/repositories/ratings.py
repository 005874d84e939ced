from typing import Any, Dict, List, Optional

from sqlalchemy import case, func, select as sa_select
from sqlmodel import select

from ..models import Driver, Rating
from .base import CrudRepository

TOP_DRIVER_MIN_AVERAGE = 4.8
TOP_DRIVER_MIN_RATINGS = 50
EXPERIENCED_MIN_TRIPS = 100


class RatingRepository(CrudRepository[Rating]):
    model = Rating
    resource = "Rating"

    def get_ratings_for_user(self, user_id: int, limit: Optional[int] = None, offset: Optional[int] = None) -> List[Rating]:
        return self.find_all({"to_user_id": user_id}, limit, offset)

    def get_ratings_by_user(self, user_id: int, limit: Optional[int] = None, offset: Optional[int] = None) -> List[Rating]:
        return self.find_all({"from_user_id": user_id}, limit, offset)

    def get_rating_for_trip(self, trip_id: int, from_user_id: Optional[int] = None) -> Optional[Rating]:
        where: Dict[str, Any] = {"trip_id": trip_id}
        if from_user_id:
            where["from_user_id"] = from_user_id
        return self.find_one(where)

    def has_rated_trip(self, trip_id: int, from_user_id: int) -> bool:
        return self.exists({"trip_id": trip_id, "from_user_id": from_user_id})

    def get_average_rating(self, user_id: int) -> float:
        stmt = sa_select(func.avg(Rating.rating)).where(Rating.to_user_id == user_id)
        avg = self.session.exec(stmt).scalar_one()
        return float(avg) if avg is not None else 0.0

    def get_rating_stats(self, user_id: int) -> Dict[str, Any]:
        stars = [func.sum(case((Rating.rating == n, 1), else_=0)) for n in range(5, 0, -1)]
        stmt = sa_select(func.avg(Rating.rating), func.count(), *stars).where(Rating.to_user_id == user_id)
        average, total, *distribution = self.session.exec(stmt).one()
        return {
            "average": float(average) if average is not None else 0.0,
            "total": int(total or 0),
            "distribution": {n: int(c or 0) for n, c in zip(range(5, 0, -1), distribution)},
        }

    def calculate_badges(self, user_id: int) -> List[str]:
        stats = self.get_rating_stats(user_id)
        badges = []
        if stats["average"] >= TOP_DRIVER_MIN_AVERAGE and stats["total"] >= TOP_DRIVER_MIN_RATINGS:
            badges.append("top_driver")
        driver = self.session.exec(select(Driver).where(Driver.user_id == user_id)).first()
        if driver is not None and driver.total_trips >= EXPERIENCED_MIN_TRIPS:
            badges.append("experienced")
        return badges
