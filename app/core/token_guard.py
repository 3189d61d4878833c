"""
会话令牌守卫 - 一次性、带最短时长门槛的提交凭证

令牌格式: ``session_id:issued_at_ms:signature``
signature = HMAC-SHA256(进程级随机密钥, "session_id:issued_at_ms")

令牌只证明"发放后至少过去了 MIN_SESSION_MS"，不代表用户身份。
未兑换的 session_id 保存在进程内存中，进程重启后全部失效。
"""
import hashlib
import hmac
import secrets
import threading
import time
from typing import Callable, Optional

from app.core.errors import BadSignature, MalformedToken, TooFast, UnknownOrReplayedToken
from app.core.settings import MIN_SESSION_MS


def _now_ms() -> int:
    return int(time.time() * 1000)


class TokenGuard:
    """发放与核销会话令牌；未兑换集合不对外暴露"""

    def __init__(
        self,
        secret: Optional[bytes] = None,
        clock: Callable[[], int] = _now_ms,
        min_session_ms: int = MIN_SESSION_MS,
    ):
        self._secret = secret or secrets.token_bytes(32)
        self._clock = clock
        self.min_session_ms = int(min_session_ms)
        self._lock = threading.Lock()
        # session_id -> issued_at_ms
        self._outstanding: dict[str, int] = {}

    def _sign(self, session_id: str, issued_at_ms: str) -> str:
        return hmac.new(
            self._secret,
            f"{session_id}:{issued_at_ms}".encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def issue(self) -> str:
        session_id = secrets.token_hex(16)
        issued_at_ms = int(self._clock())
        signature = self._sign(session_id, str(issued_at_ms))
        with self._lock:
            self._outstanding[session_id] = issued_at_ms
        return f"{session_id}:{issued_at_ms}:{signature}"

    def validate(self, token) -> None:
        """
        校验并核销令牌，失败时抛出对应的 TokenError 子类。

        核销（从未兑换集合移除）与成功判定在同一把锁内完成，
        同一令牌的并发校验只会有一个成功。
        """
        parts = token.split(":") if isinstance(token, str) else []
        if len(parts) != 3:
            raise MalformedToken(f"expected 3 fields, got {len(parts)}")
        session_id, issued_raw, signature = parts

        expected = self._sign(session_id, issued_raw)
        # 逐字节常量时间比较，不能短路
        if not hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8")):
            raise BadSignature("signature mismatch")

        try:
            issued_at_ms = int(issued_raw)
        except ValueError:
            raise MalformedToken("issued_at is not an integer")

        with self._lock:
            if session_id not in self._outstanding:
                raise UnknownOrReplayedToken("session not outstanding")
            elapsed = int(self._clock()) - issued_at_ms
            if elapsed < self.min_session_ms:
                raise TooFast(f"session lasted {elapsed}ms < {self.min_session_ms}ms")
            del self._outstanding[session_id]

    def outstanding_count(self) -> int:
        with self._lock:
            return len(self._outstanding)

    def sweep_expired(self, max_age_ms: int) -> int:
        """丢弃发放时间早于 max_age_ms 的未兑换令牌，返回清理数量"""
        cutoff = int(self._clock()) - int(max_age_ms)
        with self._lock:
            stale = [sid for sid, issued in self._outstanding.items() if issued < cutoff]
            for sid in stale:
                del self._outstanding[sid]
        return len(stale)
