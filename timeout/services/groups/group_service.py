"""
Study group creation.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase

from common.utils.exceptions import InvalidArgumentException
from timeout.database import STUDY_GROUPS, USERS

logger = logging.getLogger(__name__)


DEFAULT_GROUP_SETTINGS: Dict[str, Any] = {
    "allowPhotoCheckIns": True,
    "verificationRequired": False,
    "minimumSessionTime": 25,  # minutes
    "focusMode": "moderate",
    "allowedBreakTime": 5,  # minutes per hour
}


class StudyGroupService:
    """Creates study groups owned by the caller."""

    DEFAULT_MAX_MEMBERS = 20
    MIN_MEMBERS = 2
    MAX_MEMBERS = 100

    def __init__(self, db: AsyncIOMotorDatabase):
        self._groups = db[STUDY_GROUPS]
        self._users = db[USERS]

    async def create_group(
        self,
        user_id: str,
        name: str,
        description: str,
        max_members: Optional[int] = None,
        is_private: bool = False,
        tags: Optional[List[str]] = None,
        settings: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Create a group with the caller as its owner.

        Raises:
            InvalidArgumentException: Missing name/description or bad size
        """
        name = (name or "").strip()
        description = (description or "").strip()
        if not name or not description:
            raise InvalidArgumentException(
                message="Name and description are required",
                code="MISSING_FIELDS",
            )

        max_members = max_members or self.DEFAULT_MAX_MEMBERS
        if not self.MIN_MEMBERS <= max_members <= self.MAX_MEMBERS:
            raise InvalidArgumentException(
                message=f"maxMembers must be between {self.MIN_MEMBERS} and {self.MAX_MEMBERS}",
                code="INVALID_MAX_MEMBERS",
            )

        owner = await self._users.find_one({"_id": user_id}, {"displayName": 1, "photoURL": 1}) or {}
        now = datetime.now(timezone.utc)

        group = {
            "name": name,
            "description": description,
            "createdBy": user_id,
            "members": [{
                "userId": user_id,
                "userName": owner.get("displayName") or "Group Creator",
                "userAvatar": owner.get("photoURL"),
                "role": "owner",
                "joinedAt": now,
                "lastActive": now,
                "studyStreak": 0,
                "contributionScore": 0,
            }],
            "maxMembers": max_members,
            "isPrivate": is_private,
            "tags": tags or [],
            "settings": {
                "requireApproval": is_private,
                **DEFAULT_GROUP_SETTINGS,
                **(settings or {}),
            },
            "stats": {
                "totalStudyTime": 0,
                "averageSessionLength": 0,
                "totalSessions": 0,
                "activeMembers": 1,
                "checkInsToday": 0,
                "weeklyGoal": 0,
                "weeklyProgress": 0,
            },
            "createdAt": now,
            "updatedAt": now,
        }

        result = await self._groups.insert_one(group)
        group["_id"] = result.inserted_id

        logger.info(f"Study group {result.inserted_id} created by user {user_id}")
        return group
