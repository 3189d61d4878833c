from .leaderboard_repository import LeaderboardRepository, LeaderboardTransaction

__all__ = [
    "LeaderboardRepository",
    "LeaderboardTransaction",
]
