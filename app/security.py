import secrets
from typing import Optional

from fastapi import Depends, Header, HTTPException

from app.core.deps import get_config
from app.core.settings import LeaderboardConfig


def require_admin_token(
    x_admin_token: Optional[str] = Header(None, alias="X-Admin-Token"),
    config: LeaderboardConfig = Depends(get_config),
) -> None:
    expected = config.admin_token
    if not expected:
        return

    provided = x_admin_token or ""
    if not secrets.compare_digest(provided, expected):
        raise HTTPException(status_code=401, detail="Invalid admin token")
