from typing import List, Optional

from ..models import User, utcnow
from .base import CrudRepository


class UserRepository(CrudRepository[User]):
    model = User
    resource = "User"

    def find_by_phone(self, phone: str) -> Optional[User]:
        return self.find_one({"phone": phone})

    def find_by_email(self, email: str) -> Optional[User]:
        return self.find_one({"email": email})

    def phone_exists(self, phone: str) -> bool:
        return self.exists({"phone": phone})

    def email_exists(self, email: str) -> bool:
        return self.exists({"email": email})

    def get_active_users(self, limit: Optional[int] = None, offset: Optional[int] = None) -> List[User]:
        return self.find_all({"is_active": True}, limit, offset)

    def set_active(self, id: int, active: bool) -> int:
        return self.update_by_id(id, {"is_active": active})

    def touch(self, id: int) -> int:
        return self.update_by_id(id, {"updated_at": utcnow()})

    def record_login(self, id: int) -> int:
        return self.update_by_id(id, {"last_login_at": utcnow()})

    def mark_phone_verified(self, phone: str) -> int:
        return self.update({"phone": phone}, {"phone_verified": True, "phone_verified_at": utcnow()})
