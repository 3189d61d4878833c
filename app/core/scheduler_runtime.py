import os
import threading
from typing import Callable, TypeVar


T = TypeVar("T")

_token_guard_instance = None
_singleton_lock = threading.Lock()


def resolve_worker_count() -> int:
    raw = os.getenv("WEB_CONCURRENCY") or os.getenv("UVICORN_WORKERS") or "1"
    try:
        count = int(raw)
    except (TypeError, ValueError):
        count = 1
    return max(1, count)


def should_start_token_reaper(config) -> tuple[bool, str]:
    if not config.enable_token_reaper:
        return False, "disabled"
    return True, "ok"


def get_token_guard_singleton(factory: Callable[[], T]) -> T:
    """进程级唯一的 TokenGuard；密钥与未兑换集合随进程存亡"""
    global _token_guard_instance
    if _token_guard_instance is None:
        with _singleton_lock:
            if _token_guard_instance is None:
                _token_guard_instance = factory()
    return _token_guard_instance
