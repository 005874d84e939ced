"""Uniform JSON envelope: ``{success, data, error, meta}``."""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from fastapi import Query


def success(data: Any = None, meta: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True, "data": data}
    if meta:
        body["meta"] = meta
    return body


def paginated(items: Sequence[Any], page: int, limit: int, total: int) -> Dict[str, Any]:
    return success(list(items), {"page": page, "limit": limit, "total": total})


def error(code: str, message: str, details: Any = None) -> Dict[str, Any]:
    err: Dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        err["details"] = details
    return {"success": False, "error": err}


@dataclass
class Page:
    page: int = 1
    limit: int = 20

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def pagination(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
) -> Page:
    return Page(page=page, limit=limit)
