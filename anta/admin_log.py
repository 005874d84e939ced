import json
import logging
from typing import Any, Optional

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from .errors import ApiError
from .repositories import AdminLogRepository

logger = logging.getLogger(__name__)


def client_ip(request: Optional[Request]) -> Optional[str]:
    if request is None:
        return None
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def log_admin_action(
    session: Session,
    admin_id: int,
    action: str,
    resource_type: str,
    resource_id: Optional[int] = None,
    details: Any = None,
    request: Optional[Request] = None,
) -> None:
    """Record an admin action. Failures are logged and swallowed so the action itself stands."""
    if details is not None and not isinstance(details, str):
        details = json.dumps(details, default=str)
    try:
        AdminLogRepository(session).create({
            "admin_id": admin_id,
            "action": action,
            "resource_type": resource_type,
            "resource_id": resource_id,
            "details": details,
            "ip_address": client_ip(request),
            "user_agent": request.headers.get("User-Agent") if request else None,
        })
    except (ApiError, SQLAlchemyError):
        session.rollback()
        logger.exception("Failed to log admin action %s on %s", action, resource_type)
