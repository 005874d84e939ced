from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from .. import schemas as s
from ..admin_log import log_admin_action
from ..auth import CurrentUser, get_current_user, require_admin
from ..database import get_session
from ..errors import ApiError
from ..models import OwnerType
from ..repositories import DriverRepository, WalletRepository
from ..responses import success

router = APIRouter(prefix="/wallets", tags=["wallets"])


def _check_wallet_owner(session: Session, current: CurrentUser, owner_type: str, owner_id: int) -> None:
    if current.is_admin:
        return
    if owner_type == OwnerType.USER.value and owner_id == current.user_id:
        return
    if owner_type == OwnerType.DRIVER.value:
        driver = DriverRepository(session).find_by_id(owner_id)
        if driver is not None and driver.user_id == current.user_id:
            return
    raise ApiError.forbidden("You can only access your own wallet")


@router.post("/transfer")
def transfer(
    payload: s.WalletTransfer,
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    _check_wallet_owner(session, current, payload.from_type, payload.from_id)
    if (payload.from_type, payload.from_id) == (payload.to_type, payload.to_id):
        raise ApiError.bad_request("Cannot transfer to the same wallet")

    repo = WalletRepository(session)
    ok = repo.transfer(payload.from_type, payload.from_id, payload.to_type, payload.to_id, payload.amount_cents)
    if not ok:
        raise ApiError.bad_request("Insufficient balance")
    return success({
        "amount_cents": payload.amount_cents,
        "from_balance": repo.get_balance(payload.from_type, payload.from_id),
        "to_balance": repo.get_balance(payload.to_type, payload.to_id),
    })


@router.get("/{owner_type}/{owner_id}")
def get_wallet(
    owner_type: OwnerType,
    owner_id: int,
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    _check_wallet_owner(session, current, owner_type.value, owner_id)
    return success(WalletRepository(session).get_or_create(owner_type.value, owner_id))


@router.post("/{owner_type}/{owner_id}/credit")
def credit_wallet(
    owner_type: OwnerType,
    owner_id: int,
    payload: s.WalletCredit,
    request: Request,
    admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = WalletRepository(session)
    repo.get_or_create(owner_type.value, owner_id)
    repo.add_funds(owner_type.value, owner_id, payload.amount_cents)
    log_admin_action(
        session, admin.user_id, "credit_wallet", "wallet", owner_id,
        {"owner_type": owner_type.value, "amount_cents": payload.amount_cents}, request,
    )
    return success(repo.get_by_owner(owner_type.value, owner_id))
