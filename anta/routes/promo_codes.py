from fastapi import APIRouter, Depends
from sqlmodel import Session

from .. import schemas as s
from ..auth import CurrentUser, get_current_user, require_admin
from ..database import get_session
from ..errors import ApiError
from ..repositories import PromoCodeRepository
from ..responses import Page, paginated, pagination, success

router = APIRouter(prefix="/promo-codes", tags=["promo-codes"])


def _quote(repo: PromoCodeRepository, payload: s.PromoCodeCheck):
    if not repo.is_valid(payload.code):
        raise ApiError.bad_request("Invalid or expired promo code")
    promo = repo.find_by_code(payload.code)
    discount = PromoCodeRepository.calculate_discount(promo, payload.amount)
    return {
        "code": promo.code,
        "discount_type": promo.discount_type,
        "value": promo.value,
        "amount": payload.amount,
        "discount": discount,
        "final_amount": payload.amount - discount,
    }


@router.post("/validate")
def validate_promo_code(
    payload: s.PromoCodeCheck,
    _user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return success(_quote(PromoCodeRepository(session), payload))


@router.post("/apply")
def apply_promo_code(
    payload: s.PromoCodeCheck,
    _user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    repo = PromoCodeRepository(session)
    quote = _quote(repo, payload)
    if not repo.apply_promo_code(payload.code):
        raise ApiError.bad_request("Promo code usage limit reached")
    return success(quote)


@router.get("")
def list_promo_codes(
    page: Page = Depends(pagination),
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = PromoCodeRepository(session)
    return paginated(repo.find_all(limit=page.limit, offset=page.offset), page.page, page.limit, repo.count())


@router.get("/active")
def active_promo_codes(
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    return success(PromoCodeRepository(session).get_active_promo_codes())


@router.post("", status_code=201)
def create_promo_code(
    payload: s.PromoCodeCreate,
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = PromoCodeRepository(session)
    if repo.find_by_code(payload.code) is not None:
        raise ApiError.conflict("Promo code already exists")
    return success(repo.create(payload.model_dump()))


@router.get("/{promo_id}")
def get_promo_code(
    promo_id: int,
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    return success(PromoCodeRepository(session).get_or_404(promo_id))


@router.put("/{promo_id}")
def update_promo_code(
    promo_id: int,
    payload: s.PromoCodeUpdate,
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = PromoCodeRepository(session)
    repo.get_or_404(promo_id)
    data = payload.model_dump(exclude_unset=True)
    if data:
        repo.update_by_id(promo_id, data)
    return success(repo.get_or_404(promo_id))


@router.patch("/{promo_id}/deactivate")
def deactivate_promo_code(
    promo_id: int,
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = PromoCodeRepository(session)
    repo.get_or_404(promo_id)
    repo.deactivate(promo_id)
    return success(repo.get_or_404(promo_id))


@router.delete("/{promo_id}")
def delete_promo_code(
    promo_id: int,
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = PromoCodeRepository(session)
    repo.get_or_404(promo_id)
    repo.delete_by_id(promo_id)
    return success({"deleted": True})
