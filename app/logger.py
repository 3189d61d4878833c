"""
日志模块 - 排行榜服务统一日志管理
"""
import logging
import os
from collections import deque
from pathlib import Path
from logging.handlers import TimedRotatingFileHandler

# 日志目录（可通过 LOG_DIR 覆盖，便于容器挂载）
LOG_DIR = Path(os.getenv("LOG_DIR") or Path(__file__).parent.parent / "logs")
LOG_DIR.mkdir(parents=True, exist_ok=True)

LOG_FILE = LOG_DIR / "leaderboard.log"

LOG_FORMAT = "%(asctime)s | %(levelname)-5s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "7"))

logger = logging.getLogger("leaderboard")
logger.setLevel(logging.INFO)
logger.propagate = False

# 避免重复添加 handler（例如 --reload 场景）
if not logger.handlers:
    file_handler = TimedRotatingFileHandler(
        LOG_FILE,
        when="midnight",
        interval=1,
        backupCount=max(1, LOG_BACKUP_COUNT),
        encoding="utf-8",
        utc=False
    )
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)


def read_logs(lines: int = 200) -> list:
    """读取最近的日志行（最新的在前）"""
    if not LOG_FILE.exists():
        return []
    with open(LOG_FILE, "r", encoding="utf-8", errors="replace") as f:
        tail = deque(f, maxlen=max(1, int(lines)))
    return list(reversed(tail))
