"""
Leaderboard cache.

Snapshots are stored in the leaderboards collection under
"{type}_{category}_{timeframe}" and regenerated once they are older than
the staleness window. Ranking reads current totals; it is a minimal
ranking, not a per-period aggregation.
"""

import logging
from datetime import datetime, timezone, timedelta
from enum import Enum
from typing import Optional, List, Dict, Any, Callable

from motor.motor_asyncio import AsyncIOMotorDatabase

from common.utils.exceptions import InvalidArgumentException
from timeout.database import LEADERBOARDS, STUDY_STREAKS, USERS

logger = logging.getLogger(__name__)


class LeaderboardType(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    ALL_TIME = "all_time"


class LeaderboardCategory(str, Enum):
    STUDY_TIME = "study_time"
    STREAK = "streak"
    ROOMS_JOINED = "rooms_joined"
    VERIFICATIONS = "verifications"
    POINTS = "points"


# category -> (collection, score field)
_SCORE_SOURCES = {
    LeaderboardCategory.POINTS: (USERS, "totalPoints"),
    LeaderboardCategory.VERIFICATIONS: (USERS, "pointsHistory.verification_approved"),
    LeaderboardCategory.ROOMS_JOINED: (USERS, "roomsJoined"),
    LeaderboardCategory.STREAK: (STUDY_STREAKS, "currentStreak"),
    LeaderboardCategory.STUDY_TIME: (STUDY_STREAKS, "monthlyMinutes"),
}


def generate_timeframe(kind: LeaderboardType, now: datetime) -> str:
    """
    Timeframe key for a leaderboard type.

    weekly -> ISO year and week ("2026-W42"), monthly -> "2026-10",
    all_time -> "all_time".
    """
    if kind is LeaderboardType.WEEKLY:
        iso_year, iso_week, _ = now.isocalendar()
        return f"{iso_year}-W{iso_week:02d}"
    if kind is LeaderboardType.MONTHLY:
        return f"{now.year}-{now.month:02d}"
    return "all_time"


def _get_path(document: Dict[str, Any], path: str) -> Any:
    value: Any = document
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


class LeaderboardService:
    """Serves cached leaderboards, regenerating stale ones."""

    MAX_LIMIT = 100

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        ttl_minutes: int = 60,
        max_entries: int = 100,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize LeaderboardService.

        Args:
            db: MongoDB database connection
            ttl_minutes: Snapshot staleness window
            max_entries: Entries materialized per snapshot
            clock: Returns the current aware datetime (injectable for tests)
        """
        self._db = db
        self._leaderboards = db[LEADERBOARDS]
        self._users = db[USERS]
        self._ttl = timedelta(minutes=ttl_minutes)
        self._max_entries = max_entries
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def get_leaderboard(
        self,
        board_type: str,
        category: str,
        limit: int = 50,
    ) -> Dict[str, Any]:
        """
        Get a leaderboard, truncated to `limit` entries.

        Args:
            board_type: "weekly", "monthly" or "all_time"
            category: One of LeaderboardCategory
            limit: 1..100

        Returns:
            Leaderboard snapshot dict

        Raises:
            InvalidArgumentException: Unknown type/category or bad limit
        """
        kind, cat = self._parse(board_type, category)
        if not 1 <= limit <= self.MAX_LIMIT:
            raise InvalidArgumentException(
                message=f"Limit must be between 1 and {self.MAX_LIMIT}",
                code="INVALID_LIMIT",
            )

        now = self._clock()
        timeframe = generate_timeframe(kind, now)
        leaderboard_id = f"{kind.value}_{cat.value}_{timeframe}"

        snapshot = await self._leaderboards.find_one({"_id": leaderboard_id})
        if snapshot and self.is_current(snapshot, now):
            logger.debug(f"Serving cached leaderboard {leaderboard_id}")
        else:
            snapshot = await self._regenerate(leaderboard_id, kind, cat, timeframe, snapshot, now)

        return {**snapshot, "entries": snapshot.get("entries", [])[:limit]}

    def is_current(self, snapshot: Dict[str, Any], now: Optional[datetime] = None) -> bool:
        """True while the snapshot is younger than the staleness window."""
        last_updated = snapshot.get("lastUpdated")
        if last_updated is None:
            return False
        if last_updated.tzinfo is None:
            last_updated = last_updated.replace(tzinfo=timezone.utc)
        return (now or self._clock()) - last_updated < self._ttl

    async def _regenerate(
        self,
        leaderboard_id: str,
        kind: LeaderboardType,
        category: LeaderboardCategory,
        timeframe: str,
        previous: Optional[Dict[str, Any]],
        now: datetime,
    ) -> Dict[str, Any]:
        entries = await self._rank(category)

        previous_ranks = {
            e["userId"]: e["rank"] for e in (previous or {}).get("entries", [])
        }
        for entry in entries:
            old_rank = previous_ranks.get(entry["userId"])
            entry["change"] = old_rank - entry["rank"] if old_rank else 0

        snapshot = {
            "_id": leaderboard_id,
            "type": kind.value,
            "category": category.value,
            "timeframe": timeframe,
            "entries": entries,
            "lastUpdated": now,
        }
        await self._leaderboards.replace_one({"_id": leaderboard_id}, snapshot, upsert=True)

        logger.info(f"Regenerated leaderboard {leaderboard_id} with {len(entries)} entries")
        return snapshot

    async def _rank(self, category: LeaderboardCategory) -> List[Dict[str, Any]]:
        collection_name, field = _SCORE_SOURCES[category]
        collection = self._db[collection_name]

        cursor = collection.find({field: {"$gt": 0}}, {field: 1, "displayName": 1})
        cursor = cursor.sort(field, -1)
        cursor = cursor.limit(self._max_entries)
        documents = await cursor.to_list(length=self._max_entries)

        names = await self._display_names(
            [str(d["_id"]) for d in documents] if collection_name != USERS else []
        )

        entries = []
        for position, doc in enumerate(documents, start=1):
            user_id = str(doc["_id"])
            entries.append({
                "userId": user_id,
                "userName": doc.get("displayName") or names.get(user_id) or "Anonymous",
                "score": _get_path(doc, field) or 0,
                "rank": position,
                "change": 0,
            })
        return entries

    async def _display_names(self, user_ids: List[str]) -> Dict[str, str]:
        if not user_ids:
            return {}
        cursor = self._users.find({"_id": {"$in": user_ids}}, {"displayName": 1})
        users = await cursor.to_list(length=len(user_ids))
        return {str(u["_id"]): u.get("displayName") for u in users if u.get("displayName")}

    @staticmethod
    def _parse(board_type: str, category: str):
        try:
            kind = LeaderboardType(board_type)
            cat = LeaderboardCategory(category)
        except ValueError:
            raise InvalidArgumentException(
                message="Type and category are required and must be valid",
                code="INVALID_LEADERBOARD",
                details={
                    "types": [t.value for t in LeaderboardType],
                    "categories": [c.value for c in LeaderboardCategory],
                },
            )
        return kind, cat
