"""
Leaderboard snapshots.
"""

from timeout.services.leaderboard.leaderboard_service import (
    LeaderboardService,
    LeaderboardType,
    LeaderboardCategory,
    generate_timeframe,
)

__all__ = ["LeaderboardService", "LeaderboardType", "LeaderboardCategory", "generate_timeframe"]
