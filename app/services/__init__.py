from .admission_service import AdmissionService
from .leaderboard_service import LeaderboardService

__all__ = [
    "AdmissionService",
    "LeaderboardService",
]
