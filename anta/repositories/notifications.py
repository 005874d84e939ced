from typing import List, Optional

from ..models import Notification, utcnow
from .base import CrudRepository


class NotificationRepository(CrudRepository[Notification]):
    model = Notification
    resource = "Notification"

    def get_user_notifications(self, user_id: int, limit: Optional[int] = None, offset: Optional[int] = None) -> List[Notification]:
        order = (Notification.created_at.desc(), Notification.id.desc())
        stmt = self.query({"user_id": user_id}).order_by(*order)
        if limit:
            stmt = stmt.limit(limit)
        if offset:
            stmt = stmt.offset(offset)
        return list(self.session.exec(stmt).all())

    def get_unread_count(self, user_id: int) -> int:
        return self.count({"user_id": user_id, "is_read": False})

    def mark_as_read(self, id: int, user_id: int) -> int:
        """Only the recipient can mark a notification read; 0 when it isn't theirs."""
        return self.update({"id": id, "user_id": user_id}, {"is_read": True, "read_at": utcnow()})

    def mark_all_as_read(self, user_id: int) -> int:
        return self.update({"user_id": user_id, "is_read": False}, {"is_read": True, "read_at": utcnow()})
