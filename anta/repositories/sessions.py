from typing import List

from ..models import AuthSession, utcnow
from .base import CrudRepository


class SessionRepository(CrudRepository[AuthSession]):
    """Login sessions recorded when an OTP login issues a token, keyed by the token hash."""

    model = AuthSession
    resource = "Session"

    def get_active_sessions(self, user_id: int) -> List[AuthSession]:
        stmt = (
            self.query({"user_id": user_id})
            .where(AuthSession.expires_at > utcnow())
            .order_by(AuthSession.created_at.desc())
        )
        return list(self.session.exec(stmt).all())
