"""One-time codes sent by SMS to verify a phone number."""

import logging
import secrets
from datetime import timedelta
from typing import Callable, Dict, Optional

from sqlmodel import Session

from ..config import Settings
from ..errors import ApiError
from ..models import OtpPurpose, utcnow
from ..repositories import OtpCodeRepository, UserRepository

logger = logging.getLogger(__name__)

OTP_LENGTH = 4
OTP_EXPIRY_MINUTES = 5
MAX_ATTEMPTS = 3
DEV_BYPASS_CODE = "1234"
PHONE_PREFIX = "+224"

SmsSender = Callable[[str, str], None]


def log_sms_sender(phone: str, code: str) -> None:
    # no SMS provider wired in yet
    logger.info("SMS to %s: %s", phone, code)


class OtpService:
    def __init__(self, session: Session, settings: Settings, sms_sender: Optional[SmsSender] = None):
        self.session = session
        self.settings = settings
        self.sms_sender = sms_sender or log_sms_sender
        self.codes = OtpCodeRepository(session)

    def generate_code(self) -> str:
        if self.settings.otp.dev_bypass:
            return DEV_BYPASS_CODE
        low = 10 ** (OTP_LENGTH - 1)
        return str(low + secrets.randbelow(10 ** OTP_LENGTH - low))

    def send_otp(self, phone: str, purpose: str = OtpPurpose.REGISTRATION.value) -> Dict[str, object]:
        if not phone.startswith(PHONE_PREFIX) or len(phone) < 12:
            raise ApiError.bad_request("Invalid phone number format. Must be +224XXXXXXXXX")

        existing = self.codes.find_active(phone, purpose)
        if existing is not None:
            seconds_left = int((existing.expires_at - utcnow()).total_seconds()) + 1
            raise ApiError.too_many_requests(
                f"An OTP was already sent. Please wait {seconds_left} seconds before requesting a new one."
            )

        code = self.generate_code()
        self.codes.create({
            "phone": phone,
            "code": code,
            "purpose": purpose,
            "attempts": 0,
            "expires_at": utcnow() + timedelta(minutes=OTP_EXPIRY_MINUTES),
        })

        if self.settings.otp.dev_bypass:
            logger.info("OTP dev bypass enabled, code %s for %s", code, phone)
        else:
            self.sms_sender(phone, code)

        return {"success": True, "expires_in": OTP_EXPIRY_MINUTES * 60}

    def verify_otp(self, phone: str, code: str, purpose: str = OtpPurpose.REGISTRATION.value) -> Dict[str, bool]:
        record = self.codes.find_active(phone, purpose)
        if record is None:
            raise ApiError.bad_request("Invalid or expired OTP code")

        if record.attempts >= MAX_ATTEMPTS:
            raise ApiError.bad_request("Maximum verification attempts exceeded. Please request a new code.")

        if not secrets.compare_digest(record.code, code):
            self.codes.increment_attempts(record.id)
            raise ApiError.unauthorized("Invalid OTP code")

        self.codes.mark_verified(record.id)
        if purpose == OtpPurpose.REGISTRATION.value:
            UserRepository(self.session).mark_phone_verified(phone)

        return {"success": True}

    def has_verified_otp(self, phone: str, purpose: str = OtpPurpose.REGISTRATION.value) -> bool:
        return self.codes.find_latest_verified(phone, purpose) is not None

    def cleanup_expired(self) -> int:
        deleted = self.codes.delete_expired()
        logger.info("Cleaned up %d expired OTP codes", deleted)
        return deleted
