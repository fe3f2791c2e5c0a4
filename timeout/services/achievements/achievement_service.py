"""
User achievements, unearned badges and summary stats.
"""

import logging
from typing import List, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase

from timeout.database import ACHIEVEMENTS, COMMUNITY_BADGES, STUDY_STREAKS, USERS

logger = logging.getLogger(__name__)


class AchievementService:
    """Read-only view over achievements, badges and user totals."""

    MAX_ACHIEVEMENTS = 50
    MAX_AVAILABLE_BADGES = 20

    def __init__(self, db: AsyncIOMotorDatabase):
        self._achievements = db[ACHIEVEMENTS]
        self._badges = db[COMMUNITY_BADGES]
        self._streaks = db[STUDY_STREAKS]
        self._users = db[USERS]

    async def get_user_achievements(self, user_id: str) -> Dict[str, Any]:
        """
        Achievements the user unlocked, badges still available, and stats.

        Args:
            user_id: Auth uid

        Returns:
            dict with achievements, availableBadges, stats
        """
        cursor = self._achievements.find({"userId": user_id})
        cursor = cursor.sort("unlockedAt", -1)
        cursor = cursor.limit(self.MAX_ACHIEVEMENTS)
        achievements = await cursor.to_list(length=self.MAX_ACHIEVEMENTS)

        earned = {a["badgeId"] for a in achievements if a.get("badgeId")}
        available = await self._available_badges(earned)
        stats = await self.get_user_stats(user_id, achievements_count=len(achievements))

        return {
            "achievements": achievements,
            "availableBadges": available,
            "stats": stats,
        }

    async def get_user_stats(self, user_id: str, achievements_count: int = 0) -> Dict[str, Any]:
        user = await self._users.find_one({"_id": user_id}, {"totalPoints": 1}) or {}
        streak = await self._streaks.find_one({"_id": user_id}) or {}

        return {
            "totalPoints": user.get("totalPoints", 0),
            "studyStreak": streak.get("currentStreak", 0),
            "longestStreak": streak.get("longestStreak", 0),
            "totalStudyDays": streak.get("totalStudyDays", 0),
            "achievementsCount": achievements_count,
        }

    async def _available_badges(self, earned_ids: set) -> List[Dict[str, Any]]:
        cursor = self._badges.find({"_id": {"$nin": list(earned_ids)}})
        cursor = cursor.limit(self.MAX_AVAILABLE_BADGES)
        return await cursor.to_list(length=self.MAX_AVAILABLE_BADGES)
