from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select as sa_select

from ..models import AdminLog, User, utcnow
from .base import CrudRepository


class AdminLogRepository(CrudRepository[AdminLog]):
    model = AdminLog
    resource = "Admin log"

    @staticmethod
    def _apply_filters(
        stmt,
        admin_id: Optional[int] = None,
        action: Optional[str] = None,
        resource_type: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ):
        if admin_id is not None:
            stmt = stmt.where(AdminLog.admin_id == admin_id)
        if action:
            stmt = stmt.where(AdminLog.action == action)
        if resource_type:
            stmt = stmt.where(AdminLog.resource_type == resource_type)
        if date_from:
            stmt = stmt.where(AdminLog.created_at >= date_from)
        if date_to:
            stmt = stmt.where(AdminLog.created_at <= date_to)
        return stmt

    @staticmethod
    def _with_admin(log: AdminLog, admin: Optional[User]) -> Dict[str, Any]:
        return {
            **log.model_dump(),
            "admin_name": admin.name if admin else None,
            "admin_email": admin.email if admin else None,
        }

    def search(self, limit: int = 20, offset: int = 0, **filters) -> Tuple[List[Dict[str, Any]], int]:
        """Filtered page of logs, newest first, plus the filtered total."""
        stmt = self._apply_filters(
            sa_select(AdminLog, User).join(User, AdminLog.admin_id == User.id, isouter=True),
            **filters,
        ).order_by(AdminLog.created_at.desc(), AdminLog.id.desc()).limit(limit).offset(offset)
        rows = [self._with_admin(log, admin) for log, admin in self.session.exec(stmt).all()]

        count_stmt = self._apply_filters(sa_select(func.count()).select_from(AdminLog), **filters)
        total = int(self.session.exec(count_stmt).scalar_one() or 0)
        return rows, total

    def get_with_admin(self, id: int) -> Optional[Dict[str, Any]]:
        stmt = (
            sa_select(AdminLog, User)
            .join(User, AdminLog.admin_id == User.id, isouter=True)
            .where(AdminLog.id == id)
        )
        row = self.session.exec(stmt).first()
        return self._with_admin(*row) if row else None

    def get_stats(self, days_back: int = 30) -> Dict[str, Any]:
        start = utcnow() - timedelta(days=days_back)

        action_count = func.count().label("action_count")
        top_admins = self.session.exec(
            sa_select(User.id, User.name, action_count)
            .select_from(AdminLog)
            .join(User, AdminLog.admin_id == User.id)
            .where(AdminLog.created_at >= start)
            .group_by(User.id, User.name)
            .order_by(action_count.desc())
            .limit(10)
        ).all()

        count = func.count().label("count")
        by_type = self.session.exec(
            sa_select(AdminLog.action, count)
            .where(AdminLog.created_at >= start)
            .group_by(AdminLog.action)
            .order_by(count.desc())
        ).all()

        day = func.date(AdminLog.created_at).label("date")
        over_time = self.session.exec(
            sa_select(day, func.count())
            .where(AdminLog.created_at >= start)
            .group_by(day)
            .order_by(day)
        ).all()

        return {
            "top_admins": [{"id": i, "name": n, "action_count": c} for i, n, c in top_admins],
            "actions_by_type": [{"action": a, "count": c} for a, c in by_type],
            "actions_over_time": [{"date": str(d), "count": c} for d, c in over_time],
        }
