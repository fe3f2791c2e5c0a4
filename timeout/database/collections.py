"""
TimeOut collection names, id helpers and index setup.
"""

import logging
from typing import Any, Dict, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────
# Collection names
# ─────────────────────────────────────────────────────────────────

USERS = "users"
ROOMS = "rooms"
CHECK_INS = "studyCheckIns"
VERIFICATION_REQUESTS = "verificationRequests"
STUDY_STREAKS = "studyStreaks"
LEADERBOARDS = "leaderboards"
ACHIEVEMENTS = "achievements"
COMMUNITY_BADGES = "communityBadges"
STUDY_GROUPS = "studyGroups"
AUDIT_LOGS = "auditLogs"


# ─────────────────────────────────────────────────────────────────
# Id helpers
# ─────────────────────────────────────────────────────────────────

def parse_object_id(value: Any) -> Optional[ObjectId]:
    """Return an ObjectId for a valid 24-hex string (or ObjectId), else None."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def doc_id_filter(value: str) -> Dict[str, Any]:
    """
    Build an _id filter for documents created outside this service.

    Rooms and users may be keyed by ObjectId or by an opaque string
    (e.g. a Firebase uid), so both forms are matched.
    """
    oid = parse_object_id(value)
    if oid is None:
        return {"_id": value}
    return {"_id": {"$in": [oid, str(value)]}}


def version_filter(doc: Dict[str, Any]) -> Dict[str, Any]:
    """
    Filter matching a document only at the version it was read at.

    Documents written before versioning was introduced have no field
    and are matched by its absence.
    """
    if "version" in doc:
        return {"version": doc["version"]}
    return {"version": {"$exists": False}}


# ─────────────────────────────────────────────────────────────────
# Indexes
# ─────────────────────────────────────────────────────────────────

async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """
    Create the indexes the community services rely on.

    Idempotent; called once at startup.
    """
    await db[CHECK_INS].create_index([("userId", ASCENDING), ("timestamp", DESCENDING)])

    # At most one pending verification request per check-in
    await db[VERIFICATION_REQUESTS].create_index(
        [("checkInId", ASCENDING)],
        name="one_pending_per_checkin",
        unique=True,
        partialFilterExpression={"status": "pending"},
    )
    await db[VERIFICATION_REQUESTS].create_index(
        [("status", ASCENDING), ("expiresAt", ASCENDING)]
    )
    await db[VERIFICATION_REQUESTS].create_index(
        [("roomId", ASCENDING), ("status", ASCENDING), ("requestedAt", DESCENDING)]
    )

    await db[ACHIEVEMENTS].create_index([("userId", ASCENDING), ("unlockedAt", DESCENDING)])
    await db[USERS].create_index([("totalPoints", DESCENDING)])
    await db[STUDY_STREAKS].create_index([("currentStreak", DESCENDING)])

    logger.info("Community indexes ensured")
