from fastapi import APIRouter

from .. import APP_VERSION
from ..models import utcnow
from ..responses import success

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    return success({"status": "ok", "version": APP_VERSION, "timestamp": utcnow().isoformat()})
