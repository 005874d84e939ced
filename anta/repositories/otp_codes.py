from typing import Optional

from sqlalchemy import delete as sa_delete, update as sa_update

from ..models import OtpCode, utcnow
from .base import CrudRepository


class OtpCodeRepository(CrudRepository[OtpCode]):
    model = OtpCode
    resource = "OTP code"

    def find_active(self, phone: str, purpose: str) -> Optional[OtpCode]:
        """Newest code for (phone, purpose) that is neither verified nor expired."""
        stmt = (
            self.query({"phone": phone, "purpose": purpose})
            .where(OtpCode.verified_at.is_(None))
            .where(OtpCode.expires_at > utcnow())
            .order_by(OtpCode.created_at.desc(), OtpCode.id.desc())
        )
        return self.session.exec(stmt).first()

    def find_latest_verified(self, phone: str, purpose: str) -> Optional[OtpCode]:
        stmt = (
            self.query({"phone": phone, "purpose": purpose})
            .where(OtpCode.verified_at.is_not(None))
            .order_by(OtpCode.created_at.desc(), OtpCode.id.desc())
        )
        return self.session.exec(stmt).first()

    def increment_attempts(self, id: int) -> int:
        stmt = (
            sa_update(OtpCode)
            .where(OtpCode.id == id)
            .values(attempts=OtpCode.attempts + 1)
            .execution_options(synchronize_session=False)
        )
        result = self.session.exec(stmt)
        self.commit()
        return result.rowcount

    def mark_verified(self, id: int) -> int:
        return self.update_by_id(id, {"verified_at": utcnow()})

    def delete_expired(self) -> int:
        result = self.session.exec(sa_delete(OtpCode).where(OtpCode.expires_at < utcnow()))
        self.commit()
        return result.rowcount
