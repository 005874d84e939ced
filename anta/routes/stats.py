from fastapi import APIRouter, Depends
from sqlmodel import Session

from ..auth import CurrentUser, require_admin
from ..database import get_session
from ..responses import success
from ..services import dashboard_stats

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/dashboard")
def dashboard(
    _admin: CurrentUser = Depends(require_admin),
    session: Session = Depends(get_session),
):
    return success(dashboard_stats(session))
