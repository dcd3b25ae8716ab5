from __future__ import annotations

from fastapi import APIRouter, Depends

from ..logs import search_logs
from ..services.config_svc import Settings, get_settings
from .security import require_token

router = APIRouter()


@router.get("/api/logs/search", dependencies=[Depends(require_token)])
def api_logs_search(
    page: int = 1,
    size: int = 20,
    action: str | None = None,
    query: str | None = None,
    ts_from: str | None = None,
    ts_to: str | None = None,
    settings: Settings = Depends(get_settings),
):
    total, items = search_logs(query, action, ts_from, ts_to, page, size, db_path=settings.db_path)
    return {"total": total, "items": items}
