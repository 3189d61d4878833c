"""
排行榜服务异常体系

每个异常带两条信息：message 仅用于日志，user_message 可以直接返回给调用方。
category 决定接口层映射到哪一类 HTTP 状态。
"""

AUTH = "auth"
VALIDATION = "validation"
CONFLICT = "conflict"
UNEXPECTED = "unexpected"


class LeaderboardError(Exception):
    category = UNEXPECTED

    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message


class TokenError(LeaderboardError):
    """会话令牌校验失败；对外统一为同一条提示，避免被当作探测口"""
    category = AUTH
    kind = "token_error"
    public_message = "Invalid or expired session token"

    def __init__(self, message: str):
        super().__init__(message, self.public_message)


class MalformedToken(TokenError):
    kind = "malformed"


class BadSignature(TokenError):
    kind = "bad_signature"


class UnknownOrReplayedToken(TokenError):
    kind = "unknown_or_replayed"


class TooFast(TokenError):
    kind = "too_fast"


class InputError(LeaderboardError):
    category = VALIDATION


class NameRequired(InputError):
    def __init__(self):
        super().__init__("name empty after trimming", "Name is required")


class InvalidScore(InputError):
    def __init__(self, raw):
        super().__init__(
            f"invalid score of type {type(raw).__name__}",
            "Score must be a non-negative integer",
        )


class BelowCutoff(LeaderboardError):
    category = CONFLICT

    def __init__(self, score: int, cutoff: int):
        super().__init__(
            f"score {score} does not exceed cutoff {cutoff}",
            "Score too low to make the leaderboard",
        )
        self.score = score
        self.cutoff = cutoff


class StorageFailure(LeaderboardError):
    category = UNEXPECTED

    def __init__(self, operation: str, details: str = None):
        super().__init__(
            f"storage error during {operation}: {details}",
            "Internal server error",
        )
        self.operation = operation
