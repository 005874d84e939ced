import hashlib
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from fastapi import Depends, Request
from sqlmodel import Session

from .config import Settings, get_settings
from .errors import ApiError
from .models import Driver, UserRole


@dataclass
class CurrentUser:
    user_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


def create_access_token(user_id: int, role: str, settings: Settings) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "user_id": user_id,
        "role": role,
        "iat": now,
        "exp": now + timedelta(hours=settings.jwt.expiration_hours),
    }
    return jwt.encode(payload, settings.jwt.secret, algorithm=settings.jwt.algorithm)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def decode_token(token: str, settings: Settings) -> Dict[str, Any]:
    try:
        return jwt.decode(token, settings.jwt.secret, algorithms=[settings.jwt.algorithm])
    except jwt.ExpiredSignatureError:
        raise ApiError.unauthorized("Token expired")
    except jwt.PyJWTError:
        raise ApiError.unauthorized("Invalid token")


def get_current_user(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> CurrentUser:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        raise ApiError.unauthorized("No token provided")
    token = auth.split(" ", 1)[1].strip()
    if not token:
        raise ApiError.unauthorized("No token provided")

    claims = decode_token(token, settings)
    if "user_id" not in claims or "role" not in claims:
        raise ApiError.unauthorized("Invalid token")
    return CurrentUser(user_id=int(claims["user_id"]), role=str(claims["role"]))


def require_roles(*roles: UserRole):
    """Dependency allowing only the listed roles through."""
    allowed = {r.value if isinstance(r, UserRole) else r for r in roles}

    def checker(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in allowed:
            raise ApiError.forbidden("Insufficient permissions")
        return user

    return checker


require_admin = require_roles(UserRole.ADMIN)


def ensure_owner_or_admin(user: CurrentUser, owner_id: int) -> None:
    if not user.is_admin and user.user_id != owner_id:
        raise ApiError.forbidden("You can only access your own resources")


def ensure_trip_participant(session: Session, user: CurrentUser, trip) -> None:
    """Passenger, assigned driver or admin."""
    if user.is_admin or trip.passenger_id == user.user_id:
        return
    if trip.driver_id is not None and _driver_user_id(session, trip.driver_id) == user.user_id:
        return
    raise ApiError.forbidden("You can only access your own trips")


def ensure_assigned_driver(session: Session, user: CurrentUser, trip) -> None:
    if user.is_admin:
        return
    if trip.driver_id is None or _driver_user_id(session, trip.driver_id) != user.user_id:
        raise ApiError.forbidden("Only the assigned driver can do this")


def _driver_user_id(session: Session, driver_id: int) -> Optional[int]:
    driver = session.get(Driver, driver_id)
    return driver.user_id if driver is not None else None
