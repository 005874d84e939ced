from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from ..auth import CurrentUser, require_admin
from ..database import get_session
from ..errors import ApiError
from ..repositories import AdminLogRepository
from ..responses import Page, paginated, pagination, success

router = APIRouter(prefix="/admin-logs", tags=["admin-logs"])


@router.get("")
def list_admin_logs(
    page: Page = Depends(pagination),
    admin_id: Optional[int] = Query(None),
    action: Optional[str] = Query(None),
    resource_type: Optional[str] = Query(None),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    rows, total = AdminLogRepository(session).search(
        limit=page.limit,
        offset=page.offset,
        admin_id=admin_id,
        action=action,
        resource_type=resource_type,
        date_from=date_from,
        date_to=date_to,
    )
    return paginated(rows, page.page, page.limit, total)


@router.get("/stats")
def admin_log_stats(
    days: int = Query(30, ge=1, le=365),
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    return success(AdminLogRepository(session).get_stats(days))


@router.get("/{log_id}")
def get_admin_log(
    log_id: int,
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    log = AdminLogRepository(session).get_with_admin(log_id)
    if log is None:
        raise ApiError.not_found("Admin log")
    return success(log)
