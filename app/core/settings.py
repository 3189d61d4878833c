from dataclasses import dataclass
from pathlib import Path
import os
import re

from app.logger import logger


# 固定常量：不随环境变化
MIN_SESSION_MS = 5000
NAME_MAX_LENGTH = 20
DEFAULT_READ_LIMIT = 20
MAX_READ_LIMIT = 100

DEFAULT_DB_PATH = Path(__file__).parent.parent.parent / "data" / "leaderboard.db"

_LEADING_INT = re.compile(r"\s*[+-]?0*\d{1,12}")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int, minimum: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        value = default
    else:
        try:
            value = int(raw)
        except ValueError:
            logger.warning(f"环境变量 {name}={raw} 非法，使用默认值 {default}")
            value = default
    if minimum is not None:
        value = max(minimum, value)
    return value


@dataclass(frozen=True)
class LeaderboardConfig:
    db_path: str
    max_slots: int
    enable_token_reaper: bool
    token_max_age_minutes: int
    token_sweep_interval_minutes: int
    admin_token: str

    @property
    def token_max_age_ms(self) -> int:
        return self.token_max_age_minutes * 60 * 1000


def load_config() -> LeaderboardConfig:
    return LeaderboardConfig(
        db_path=os.getenv("LEADERBOARD_DB_PATH") or str(DEFAULT_DB_PATH),
        max_slots=_env_int("LEADERBOARD_MAX_SLOTS", 10, minimum=1),
        enable_token_reaper=_env_bool("ENABLE_TOKEN_REAPER", True),
        token_max_age_minutes=_env_int("TOKEN_MAX_AGE_MINUTES", 24 * 60, minimum=1),
        token_sweep_interval_minutes=_env_int("TOKEN_SWEEP_INTERVAL_MINUTES", 10, minimum=1),
        admin_token=os.getenv("LEADERBOARD_ADMIN_TOKEN", ""),
    )


def clamp_read_limit(raw) -> int:
    """排行榜读取条数：无法解析时取默认值，再夹到 [1, MAX_READ_LIMIT]"""
    # 与前端约定一致：只取开头的整数部分，"3.7" -> 3，"5abc" -> 5
    match = _LEADING_INT.match(str(raw)) if raw is not None else None
    value = int(match.group(0)) if match else 0
    if value == 0:
        value = DEFAULT_READ_LIMIT
    return min(max(value, 1), MAX_READ_LIMIT)
