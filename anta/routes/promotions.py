from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlmodel import Session

from .. import schemas as s
from ..admin_log import log_admin_action
from ..auth import CurrentUser, require_admin
from ..database import get_session
from ..errors import ApiError
from ..repositories import PromotionRepository
from ..responses import Page, paginated, pagination, success

router = APIRouter(prefix="/promotions", tags=["promotions"])


@router.get("")
def list_promotions(
    page: Page = Depends(pagination),
    is_active: Optional[bool] = Query(None),
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = PromotionRepository(session)
    where = {"is_active": is_active} if is_active is not None else None
    rows = repo.find_all(where, page.limit, page.offset)
    return paginated(rows, page.page, page.limit, repo.count(where))


@router.post("", status_code=201)
def create_promotion(
    payload: s.PromotionCreate,
    request: Request,
    admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = PromotionRepository(session)
    if repo.find_by_code(payload.code) is not None:
        raise ApiError.conflict("Promotion code already exists")
    promotion = repo.create(payload.model_dump())
    log_admin_action(
        session, admin.user_id, "create_promotion", "promotion", promotion.id,
        {"code": payload.code}, request,
    )
    return success(repo.get_or_404(promotion.id))


@router.get("/{promotion_id}")
def get_promotion(
    promotion_id: int,
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    return success(PromotionRepository(session).get_or_404(promotion_id))


@router.put("/{promotion_id}")
def update_promotion(
    promotion_id: int,
    payload: s.PromotionUpdate,
    request: Request,
    admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = PromotionRepository(session)
    promotion = repo.get_or_404(promotion_id)
    data = payload.model_dump(exclude_unset=True)
    if "code" in data and data["code"] != promotion.code and repo.find_by_code(data["code"]) is not None:
        raise ApiError.conflict("Promotion code already exists")
    if data:
        repo.update_by_id(promotion_id, data)
    log_admin_action(session, admin.user_id, "update_promotion", "promotion", promotion_id, data, request)
    return success(repo.get_or_404(promotion_id))


@router.patch("/{promotion_id}/toggle")
def toggle_promotion(
    promotion_id: int,
    request: Request,
    admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = PromotionRepository(session)
    promotion = repo.get_or_404(promotion_id)
    repo.toggle(promotion)
    promotion = repo.get_or_404(promotion_id)
    log_admin_action(
        session, admin.user_id, "toggle_promotion", "promotion", promotion_id,
        {"is_active": promotion.is_active}, request,
    )
    return success(repo.get_or_404(promotion_id))


@router.get("/{promotion_id}/stats")
def promotion_stats(
    promotion_id: int,
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = PromotionRepository(session)
    promotion = repo.get_or_404(promotion_id)
    return success({"promotion_id": promotion.id, "code": promotion.code, **repo.get_usage_stats(promotion_id)})


@router.delete("/{promotion_id}")
def delete_promotion(
    promotion_id: int,
    request: Request,
    admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = PromotionRepository(session)
    promotion = repo.get_or_404(promotion_id)
    code = promotion.code
    repo.delete_by_id(promotion_id)
    log_admin_action(session, admin.user_id, "delete_promotion", "promotion", promotion_id, {"code": code}, request)
    return success({"deleted": True})
