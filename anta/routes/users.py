from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from .. import schemas as s
from ..admin_log import log_admin_action
from ..auth import CurrentUser, ensure_owner_or_admin, get_current_user, require_admin
from ..database import get_session
from ..errors import ApiError
from ..models import UserRole
from ..repositories import UserRepository
from ..responses import Page, paginated, pagination, success

router = APIRouter(prefix="/users", tags=["users"])


def _read(user):
    return s.UserRead.model_validate(user)


# ---------------- admin lookups ----------------
@router.get("")
def list_users(
    page: Page = Depends(pagination),
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = UserRepository(session)
    users = repo.find_all(limit=page.limit, offset=page.offset)
    return paginated([_read(u) for u in users], page.page, page.limit, repo.count())


@router.get("/active")
def list_active_users(
    page: Page = Depends(pagination),
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = UserRepository(session)
    users = repo.get_active_users(page.limit, page.offset)
    return paginated([_read(u) for u in users], page.page, page.limit, repo.count({"is_active": True}))


@router.get("/phone/{phone}")
def get_user_by_phone(
    phone: str,
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    user = UserRepository(session).find_by_phone(phone)
    if user is None:
        raise ApiError.not_found("User")
    return success(_read(user))


@router.get("/email/{email}")
def get_user_by_email(
    email: str,
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    user = UserRepository(session).find_by_email(email)
    if user is None:
        raise ApiError.not_found("User")
    return success(_read(user))


# ---------------- CRUD ----------------
@router.post("", status_code=201)
def create_user(payload: s.UserCreate, session: Session = Depends(get_session)):
    if payload.role == UserRole.ADMIN.value:
        raise ApiError.forbidden("Admin accounts cannot be self-registered")
    repo = UserRepository(session)
    if repo.phone_exists(payload.phone):
        raise ApiError.conflict("Phone number already registered")
    if payload.email and repo.email_exists(payload.email):
        raise ApiError.conflict("Email already registered")
    user = repo.create(payload.model_dump())
    return success(_read(user))


@router.get("/{user_id}")
def get_user(
    user_id: int,
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    ensure_owner_or_admin(current, user_id)
    return success(_read(UserRepository(session).get_or_404(user_id)))


@router.put("/{user_id}")
def update_user(
    user_id: int,
    payload: s.UserUpdate,
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    ensure_owner_or_admin(current, user_id)
    repo = UserRepository(session)
    repo.get_or_404(user_id)
    data = payload.model_dump(exclude_unset=True)
    if data:
        repo.update_by_id(user_id, data)
    return success(_read(repo.get_or_404(user_id)))


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    request: Request,
    admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = UserRepository(session)
    user = repo.get_or_404(user_id)
    phone = user.phone
    repo.delete_by_id(user_id)
    log_admin_action(session, admin.user_id, "delete_user", "user", user_id, {"phone": phone}, request)
    return success({"deleted": True})


def _set_active(session: Session, admin: CurrentUser, request: Request, user_id: int, active: bool):
    repo = UserRepository(session)
    repo.get_or_404(user_id)
    repo.set_active(user_id, active)
    action = "activate_user" if active else "suspend_user"
    log_admin_action(session, admin.user_id, action, "user", user_id, request=request)
    return success(_read(repo.get_or_404(user_id)))


@router.patch("/{user_id}/suspend")
def suspend_user(
    user_id: int,
    request: Request,
    admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    return _set_active(session, admin, request, user_id, False)


@router.patch("/{user_id}/activate")
def activate_user(
    user_id: int,
    request: Request,
    admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    return _set_active(session, admin, request, user_id, True)
