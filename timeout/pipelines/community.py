"""
Leaderboard, achievements and study group pipeline functions.
"""

import logging
from typing import Optional, List, Dict, Any

from timeout.pipelines.errors import internal_errors
from timeout.pipelines.formatting import format_leaderboard, to_json_safe
from timeout.services.achievements.achievement_service import AchievementService
from timeout.services.audit.audit_logger import AuditLogger
from timeout.services.groups.group_service import StudyGroupService
from timeout.services.leaderboard.leaderboard_service import LeaderboardService

logger = logging.getLogger(__name__)


async def get_leaderboard_pipeline(
    leaderboard_service: LeaderboardService,
    board_type: str,
    category: str,
    limit: int,
) -> Dict[str, Any]:
    """Cached leaderboard truncated to limit."""
    async with internal_errors("get leaderboard"):
        snapshot = await leaderboard_service.get_leaderboard(board_type, category, limit)
    return format_leaderboard(snapshot)


async def get_achievements_pipeline(
    achievement_service: AchievementService,
    user_id: str,
) -> Dict[str, Any]:
    """Caller's achievements, available badges and stats."""
    async with internal_errors("get user achievements"):
        result = await achievement_service.get_user_achievements(user_id)
    return to_json_safe(result)


async def create_group_pipeline(
    group_service: StudyGroupService,
    audit_logger: AuditLogger,
    user_id: str,
    name: str,
    description: str,
    max_members: Optional[int] = None,
    is_private: bool = False,
    tags: Optional[List[str]] = None,
    settings: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Create a study group owned by the caller."""
    async with internal_errors("create study group"):
        group = await group_service.create_group(
            user_id=user_id,
            name=name,
            description=description,
            max_members=max_members,
            is_private=is_private,
            tags=tags,
            settings=settings,
        )

    group_id = str(group["_id"])
    await audit_logger.record(
        action="group.create",
        user_id=user_id,
        resource_type="studyGroup",
        resource_id=group_id,
    )

    return {"groupId": group_id, "group": to_json_safe(group)}
