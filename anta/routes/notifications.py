from fastapi import APIRouter, Depends
from sqlmodel import Session

from ..auth import CurrentUser, get_current_user
from ..database import get_session
from ..errors import ApiError
from ..repositories import NotificationRepository
from ..responses import Page, paginated, pagination, success

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
def list_notifications(
    page: Page = Depends(pagination),
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    repo = NotificationRepository(session)
    rows = repo.get_user_notifications(current.user_id, page.limit, page.offset)
    return paginated(rows, page.page, page.limit, repo.count({"user_id": current.user_id}))


@router.get("/unread-count")
def unread_count(
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return success({"count": NotificationRepository(session).get_unread_count(current.user_id)})


@router.patch("/{notification_id}/read")
def mark_as_read(
    notification_id: int,
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    repo = NotificationRepository(session)
    if repo.mark_as_read(notification_id, current.user_id) == 0:
        raise ApiError.not_found("Notification")
    return success(repo.get_or_404(notification_id))


@router.post("/mark-all-read")
def mark_all_as_read(
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return success({"updated": NotificationRepository(session).mark_all_as_read(current.user_id)})
