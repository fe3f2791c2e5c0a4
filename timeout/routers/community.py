"""
FastAPI router for leaderboards, achievements and study groups.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from timeout.config import Settings
from timeout.dependencies import (
    require_auth,
    get_leaderboard_service,
    get_achievement_service,
    get_group_service,
    get_audit_logger,
    get_settings,
)
from timeout.services.achievements.achievement_service import AchievementService
from timeout.services.audit.audit_logger import AuditLogger
from timeout.services.groups.group_service import StudyGroupService
from timeout.services.leaderboard.leaderboard_service import LeaderboardService
from timeout.schemas.groups import CreateStudyGroupRequest
from timeout.pipelines import community as pipelines
from common.utils import success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/community", tags=["community"])


@router.get("/leaderboards")
async def get_leaderboard(
    user_id: Annotated[str, Depends(require_auth)],
    leaderboard_service: Annotated[LeaderboardService, Depends(get_leaderboard_service)],
    settings: Annotated[Settings, Depends(get_settings)],
    type: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    limit: Optional[int] = Query(None),
):
    """
    Get a leaderboard.

    Snapshots are regenerated when stale; rank changes are relative to the
    previous snapshot of the same board.
    """
    result = await pipelines.get_leaderboard_pipeline(
        leaderboard_service=leaderboard_service,
        board_type=type,
        category=category,
        limit=limit if limit is not None else settings.LEADERBOARD_DEFAULT_LIMIT,
    )
    return success_response({"leaderboard": result})


@router.get("/achievements")
async def get_achievements(
    user_id: Annotated[str, Depends(require_auth)],
    achievement_service: Annotated[AchievementService, Depends(get_achievement_service)],
):
    """Get the caller's earned achievements and badges."""
    result = await pipelines.get_achievements_pipeline(achievement_service, user_id)
    return success_response(result)


@router.post("/groups", status_code=201)
async def create_group(
    body: CreateStudyGroupRequest,
    user_id: Annotated[str, Depends(require_auth)],
    group_service: Annotated[StudyGroupService, Depends(get_group_service)],
    audit_logger: Annotated[AuditLogger, Depends(get_audit_logger)],
):
    """Create a study group owned by the caller."""
    result = await pipelines.create_group_pipeline(
        group_service=group_service,
        audit_logger=audit_logger,
        user_id=user_id,
        name=body.name,
        description=body.description,
        max_members=body.maxMembers,
        is_private=body.isPrivate,
        tags=body.tags,
        settings=body.settings.model_dump(exclude_none=True) if body.settings else None,
    )
    return success_response(result, message="Study group created")
