from pydantic import BaseModel
from typing import Any, List


class LeaderboardEntry(BaseModel):
    id: int
    name: str
    score: int
    created_at: str


class SubmitScoreRequest(BaseModel):
    # 类型在服务层校验，保持与前端 JSON 的宽松约定
    name: Any = None
    score: Any = None
    token: Any = None


class SessionTokenResponse(BaseModel):
    token: str


class HealthResponse(BaseModel):
    status: str
    entries: int
    max_slots: int
    outstanding_tokens: int
    token_reaper_running: bool


class LogsResponse(BaseModel):
    logs: List[str]
