"""
Rewards: points ledger and study streaks.
"""

from timeout.services.rewards.points_service import PointsService, PointsCategory, RewardPolicy
from timeout.services.rewards.streak_service import StreakService, next_streak

__all__ = ["PointsService", "PointsCategory", "RewardPolicy", "StreakService", "next_streak"]
