import asyncio

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from app.core.deps import get_config, get_db, get_token_guard
from app.core.errors import StorageFailure
from app.logger import read_logs
from app.models import HealthResponse, LogsResponse
from app.repositories import LeaderboardRepository
from app.security import require_admin_token

router = APIRouter()


@router.get("/api/health", response_model=HealthResponse)
async def get_health(
    request: Request,
    db=Depends(get_db),
    token_guard=Depends(get_token_guard),
    config=Depends(get_config),
):
    repo = LeaderboardRepository(db)
    try:
        entries = await asyncio.to_thread(repo.count)
    except StorageFailure as exc:
        raise HTTPException(status_code=500, detail=exc.user_message)

    reaper = getattr(request.app.state, "token_reaper", None)
    return {
        "status": "online",
        "entries": entries,
        "max_slots": config.max_slots,
        "outstanding_tokens": token_guard.outstanding_count(),
        "token_reaper_running": bool(reaper and reaper.running),
    }


@router.get("/api/logs", response_model=LogsResponse, dependencies=[Depends(require_admin_token)])
async def get_logs(lines: int = Query(200, ge=1, le=2000, description="Number of log lines to return")):
    log_lines = await asyncio.to_thread(read_logs, lines)
    return {"logs": log_lines}
