"""
Study streak tracking.

One document per user in studyStreaks, keyed by the user id. Days are
calendar dates (YYYY-MM-DD) in the configured streak timezone.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

import pytz
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from timeout.database import STUDY_STREAKS, version_filter

logger = logging.getLogger(__name__)


def _parse_day(value: Optional[str]) -> Optional[date]:
    try:
        return date.fromisoformat(value) if value else None
    except ValueError:
        return None


def next_streak(
    record: Optional[Dict[str, Any]],
    today: date,
    user_id: str,
    weekly_goal: int = 5,
) -> Optional[Dict[str, Any]]:
    """
    Fields to write for a check-in on `today`, or None if nothing changes.

    - no record: start a streak of 1
    - last study day is today: no-op
    - last study day is yesterday: extend the streak
    - anything else (gap, or a date in the future): restart at 1
    """
    today_str = today.isoformat()

    if record is None:
        return {
            "userId": user_id,
            "currentStreak": 1,
            "longestStreak": 1,
            "lastStudyDate": today_str,
            "streakStartDate": today_str,
            "totalStudyDays": 1,
            "weeklyGoal": weekly_goal,
            "weeklyProgress": 1,
            "monthlyMinutes": 0,
        }

    last_study_date = record.get("lastStudyDate")
    if last_study_date == today_str:
        return None

    yesterday_str = (today - timedelta(days=1)).isoformat()
    if last_study_date == yesterday_str:
        current_streak = record.get("currentStreak", 0) + 1
        streak_start = record.get("streakStartDate") or today_str
    else:
        current_streak = 1
        streak_start = today_str

    last_day = _parse_day(last_study_date)
    same_week = (
        last_day is not None
        and last_day.isocalendar()[:2] == today.isocalendar()[:2]
    )
    weekly_progress = record.get("weeklyProgress", 0) + 1 if same_week else 1

    return {
        "currentStreak": current_streak,
        "longestStreak": max(record.get("longestStreak", 0), current_streak),
        "lastStudyDate": today_str,
        "streakStartDate": streak_start,
        "totalStudyDays": record.get("totalStudyDays", 0) + 1,
        "weeklyProgress": weekly_progress,
    }


class StreakService:
    """
    Upserts the per-user StudyStreak document.

    The update depends on the previous value, so writes are guarded by the
    document version and retried if another check-in by the same user got
    there first.
    """

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        timezone_name: str = "UTC",
        weekly_goal: int = 5,
        max_retries: int = 5,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize StreakService.

        Args:
            db: MongoDB database connection
            timezone_name: pytz zone that defines a calendar day
            weekly_goal: Weekly goal for new streak records
            max_retries: Attempts before giving up on a contended write
            clock: Returns the current aware datetime (injectable for tests)
        """
        self._streaks = db[STUDY_STREAKS]
        self._tz = pytz.timezone(timezone_name)
        self._weekly_goal = weekly_goal
        self._max_retries = max_retries
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def today(self) -> date:
        """Current calendar day in the streak timezone."""
        return self._clock().astimezone(self._tz).date()

    async def update_study_streak(self, user_id: str) -> Dict[str, Any]:
        """
        Count today as a study day for the user.

        Args:
            user_id: Auth uid

        Returns:
            The streak after the update

        Raises:
            RuntimeError: Write kept losing to concurrent updates
        """
        today = self.today()

        for attempt in range(1, self._max_retries + 1):
            record = await self._streaks.find_one({"_id": user_id})
            changes = next_streak(record, today, user_id, self._weekly_goal)

            if changes is None:
                logger.debug(f"User {user_id} already studied on {today.isoformat()}")
                return self._format(record, user_id)

            now = self._clock()

            if record is None:
                document = {"_id": user_id, **changes, "version": 0, "updatedAt": now}
                try:
                    await self._streaks.insert_one(document)
                except DuplicateKeyError:
                    logger.debug(f"Streak for {user_id} created concurrently (attempt {attempt})")
                    continue
                logger.info(f"Started study streak for user {user_id}")
                return self._format(document, user_id)

            result = await self._streaks.update_one(
                {"_id": user_id, **version_filter(record)},
                {"$set": {**changes, "updatedAt": now}, "$inc": {"version": 1}},
            )
            if result.modified_count:
                updated = {**record, **changes, "updatedAt": now}
                logger.info(
                    f"Streak for user {user_id} is now {updated['currentStreak']} "
                    f"(longest {updated['longestStreak']})"
                )
                return self._format(updated, user_id)

            logger.debug(f"Streak write for {user_id} lost a race (attempt {attempt})")

        raise RuntimeError(f"Could not update study streak for user {user_id}")

    async def get_streak(self, user_id: str) -> Dict[str, Any]:
        """Current streak for a user (zeros when the user never studied)."""
        record = await self._streaks.find_one({"_id": user_id})
        return self._format(record, user_id)

    def _format(self, record: Optional[Dict[str, Any]], user_id: str) -> Dict[str, Any]:
        record = record or {}
        updated_at = record.get("updatedAt")
        return {
            "userId": user_id,
            "currentStreak": record.get("currentStreak", 0),
            "longestStreak": record.get("longestStreak", 0),
            "lastStudyDate": record.get("lastStudyDate"),
            "streakStartDate": record.get("streakStartDate"),
            "totalStudyDays": record.get("totalStudyDays", 0),
            "weeklyGoal": record.get("weeklyGoal", self._weekly_goal),
            "weeklyProgress": record.get("weeklyProgress", 0),
            "monthlyMinutes": record.get("monthlyMinutes", 0),
            "updatedAt": updated_at.isoformat() if updated_at else None,
        }
