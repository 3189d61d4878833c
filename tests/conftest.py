import pytest
from fastapi.testclient import TestClient

from app.core.deps import get_token_guard
from app.core.token_guard import TokenGuard
from app.database import Database
from app.main import app


class FakeClock:
    """毫秒时钟，测试中手动推进"""

    def __init__(self, now_ms: int = 1_700_000_000_000):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int):
        self.now_ms += ms


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "leaderboard.db"
    monkeypatch.setenv("LEADERBOARD_DB_PATH", str(path))
    monkeypatch.setenv("ENABLE_TOKEN_REAPER", "0")
    monkeypatch.delenv("LEADERBOARD_MAX_SLOTS", raising=False)
    monkeypatch.delenv("LEADERBOARD_ADMIN_TOKEN", raising=False)
    return str(path)


@pytest.fixture
def db(db_path):
    return Database(db_path)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def token_guard(clock):
    return TokenGuard(clock=clock)


@pytest.fixture
def client(db_path, token_guard):
    app.dependency_overrides[get_token_guard] = lambda: token_guard
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.pop(get_token_guard, None)
