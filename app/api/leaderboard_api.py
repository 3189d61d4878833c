from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.deps import get_config, get_db, get_token_guard
from app.core.errors import AUTH, CONFLICT, VALIDATION, LeaderboardError
from app.core.settings import clamp_read_limit
from app.models import LeaderboardEntry, SubmitScoreRequest
from app.services import LeaderboardService

router = APIRouter()
service = LeaderboardService()

_STATUS_BY_CATEGORY = {
    VALIDATION: 400,
    AUTH: 401,
    CONFLICT: 409,
}


def to_http_exception(exc: LeaderboardError) -> HTTPException:
    status_code = _STATUS_BY_CATEGORY.get(exc.category, 500)
    return HTTPException(status_code=status_code, detail=exc.user_message)


@router.get("/api/leaderboard", response_model=List[LeaderboardEntry])
async def get_leaderboard(
    limit: Optional[str] = Query(None, description="返回条数，夹到 [1, 100]"),
    db=Depends(get_db),
):
    try:
        return await service.get_top(db=db, limit=clamp_read_limit(limit))
    except LeaderboardError as exc:
        raise to_http_exception(exc)


@router.post("/api/leaderboard", response_model=LeaderboardEntry, status_code=201)
async def submit_score(
    payload: SubmitScoreRequest,
    db=Depends(get_db),
    token_guard=Depends(get_token_guard),
    config=Depends(get_config),
):
    try:
        return await service.submit_score(
            db=db,
            token_guard=token_guard,
            max_slots=config.max_slots,
            name=payload.name,
            score=payload.score,
            token=payload.token,
        )
    except LeaderboardError as exc:
        raise to_http_exception(exc)
