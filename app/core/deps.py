from app.core.scheduler_runtime import get_token_guard_singleton
from app.core.settings import LeaderboardConfig, load_config
from app.core.token_guard import TokenGuard
from app.database import Database


def get_config() -> LeaderboardConfig:
    # 每次请求重新读取环境变量，测试中可用 monkeypatch 切换
    return load_config()


def get_db():
    # 连接按操作开闭，依赖本身无需清理
    yield Database(load_config().db_path)


def get_token_guard() -> TokenGuard:
    return get_token_guard_singleton(TokenGuard)
