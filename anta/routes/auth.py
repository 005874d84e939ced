from datetime import timedelta

from fastapi import APIRouter, Depends
from sqlmodel import Session

from .. import schemas as s
from ..auth import CurrentUser, create_access_token, get_current_user, hash_token
from ..config import Settings, get_settings
from ..database import get_session
from ..errors import ApiError
from ..models import OtpPurpose, utcnow
from ..repositories import SessionRepository, UserRepository
from ..responses import success
from ..services import OtpService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/otp/send")
def send_otp(
    payload: s.OtpSend,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    result = OtpService(session, settings).send_otp(payload.phone, payload.purpose)
    return success({"expires_in": result["expires_in"]})


@router.post("/otp/verify")
def verify_otp(
    payload: s.OtpVerify,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    OtpService(session, settings).verify_otp(payload.phone, payload.code, payload.purpose)
    data = {"verified": True}

    if payload.purpose == OtpPurpose.LOGIN.value:
        users = UserRepository(session)
        user = users.find_by_phone(payload.phone)
        if user is not None and user.is_active:
            token = create_access_token(user.id, user.role, settings)
            SessionRepository(session).create({
                "user_id": user.id,
                "token_hash": hash_token(token),
                "expires_at": utcnow() + timedelta(hours=settings.jwt.expiration_hours),
            })
            users.record_login(user.id)
            session.refresh(user)
            data["token"] = token
            data["user"] = s.UserRead.model_validate(user)

    return success(data)


@router.get("/me")
def me(
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    user = UserRepository(session).find_by_id(current.user_id)
    if user is None:
        raise ApiError.not_found("User")
    return success(s.UserRead.model_validate(user))


@router.get("/sessions")
def active_sessions(
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    rows = SessionRepository(session).get_active_sessions(current.user_id)
    return success([{"id": r.id, "created_at": r.created_at, "expires_at": r.expires_at} for r in rows])
