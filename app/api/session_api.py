from fastapi import APIRouter, Depends

from app.core.deps import get_token_guard
from app.models import SessionTokenResponse
from app.services import LeaderboardService

router = APIRouter()
service = LeaderboardService()


@router.post("/api/session-token", response_model=SessionTokenResponse, status_code=201)
async def issue_session_token(token_guard=Depends(get_token_guard)):
    """开局时领取一次性令牌，至少 5 秒后随成绩一起提交"""
    return service.issue_token(token_guard=token_guard)
