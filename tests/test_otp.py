from datetime import timedelta

import pytest

from anta.config import OTPSettings, Settings
from anta.errors import ApiError
from anta.models import utcnow
from anta.repositories import OtpCodeRepository, SessionRepository, UserRepository
from anta.services.otp import MAX_ATTEMPTS, OtpService

PHONE = "+224620555555"


class FakeSms:
    def __init__(self):
        self.sent = []

    def __call__(self, phone, code):
        self.sent.append((phone, code))

    @property
    def last_code(self):
        return self.sent[-1][1]


@pytest.fixture
def sms():
    return FakeSms()


@pytest.fixture
def otp(session, settings, sms):
    return OtpService(session, settings, sms_sender=sms)


def test_send_stores_four_digit_code(otp, sms, session):
    result = otp.send_otp(PHONE)

    assert result == {"success": True, "expires_in": 300}
    assert len(sms.last_code) == 4 and sms.last_code.isdigit()
    record = OtpCodeRepository(session).find_active(PHONE, "registration")
    assert record.code == sms.last_code
    assert record.attempts == 0


@pytest.mark.parametrize("phone", ["+33612345678", "+22462", "620555555"])
def test_send_rejects_non_guinean_numbers(otp, phone):
    with pytest.raises(ApiError) as exc_info:
        otp.send_otp(phone)
    assert exc_info.value.code == "BAD_REQUEST"


def test_second_send_while_pending_is_rate_limited(otp):
    otp.send_otp(PHONE)
    with pytest.raises(ApiError) as exc_info:
        otp.send_otp(PHONE)
    assert exc_info.value.status_code == 429
    assert "seconds" in exc_info.value.message


def test_purposes_are_independent(otp):
    otp.send_otp(PHONE, "registration")
    otp.send_otp(PHONE, "login")


def test_verify_marks_user_phone_verified(otp, sms, session):
    user = UserRepository(session).create({"phone": PHONE})
    otp.send_otp(PHONE)

    assert otp.verify_otp(PHONE, sms.last_code) == {"success": True}

    session.refresh(user)
    assert user.phone_verified is True
    assert user.phone_verified_at is not None
    assert otp.has_verified_otp(PHONE)


def test_wrong_code_increments_attempts(otp, session):
    otp.send_otp(PHONE)
    wrong = "0000"  # generated codes are 1000-9999

    with pytest.raises(ApiError) as exc_info:
        otp.verify_otp(PHONE, wrong)
    assert exc_info.value.code == "UNAUTHORIZED"
    assert OtpCodeRepository(session).find_active(PHONE, "registration").attempts == 1


def test_correct_code_rejected_after_max_attempts(otp, sms):
    otp.send_otp(PHONE)
    code = sms.last_code
    wrong = "0000"

    for _ in range(MAX_ATTEMPTS):
        with pytest.raises(ApiError):
            otp.verify_otp(PHONE, wrong)

    with pytest.raises(ApiError) as exc_info:
        otp.verify_otp(PHONE, code)
    assert exc_info.value.code == "BAD_REQUEST"
    assert not otp.has_verified_otp(PHONE)


def test_verify_without_pending_code(otp):
    with pytest.raises(ApiError) as exc_info:
        otp.verify_otp(PHONE, "1234")
    assert exc_info.value.code == "BAD_REQUEST"


def test_expired_code_cannot_be_verified_and_is_cleaned_up(otp, session):
    OtpCodeRepository(session).create({
        "phone": PHONE,
        "code": "4321",
        "expires_at": utcnow() - timedelta(minutes=1),
    })
    with pytest.raises(ApiError):
        otp.verify_otp(PHONE, "4321")
    assert otp.cleanup_expired() == 1


def test_dev_bypass_uses_fixed_code(session, sms):
    service = OtpService(session, Settings(otp=OTPSettings(dev_bypass=True)), sms_sender=sms)
    service.send_otp(PHONE)
    assert sms.sent == []
    assert service.verify_otp(PHONE, "1234") == {"success": True}


def test_login_verification_returns_token(client, session):
    user = UserRepository(session).create({"phone": PHONE, "name": "Fanta"})
    assert client.post("/api/auth/otp/send", json={"phone": PHONE, "purpose": "login"}).status_code == 200

    code = OtpCodeRepository(session).find_active(PHONE, "login").code
    resp = client.post("/api/auth/otp/verify", json={"phone": PHONE, "code": code, "purpose": "login"})

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["verified"] is True
    assert data["user"]["id"] == user.id
    assert data["user"]["last_login_at"] is not None

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['token']}"})
    assert me.json()["data"]["phone"] == PHONE
    assert len(SessionRepository(session).get_active_sessions(user.id)) == 1

    sessions = client.get("/api/auth/sessions", headers={"Authorization": f"Bearer {data['token']}"}).json()["data"]
    assert len(sessions) == 1
    assert "token_hash" not in sessions[0]


def test_registration_verification_has_no_token(client, session):
    client.post("/api/auth/otp/send", json={"phone": PHONE})
    code = OtpCodeRepository(session).find_active(PHONE, "registration").code
    resp = client.post("/api/auth/otp/verify", json={"phone": PHONE, "code": code})
    assert resp.json()["data"] == {"verified": True}
