"""
FastAPI router for study check-in endpoints.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from timeout.dependencies import (
    require_auth,
    get_checkin_service,
    get_streak_service,
    get_points_service,
    get_audit_logger,
    get_reward_policy,
)
from timeout.services.audit.audit_logger import AuditLogger
from timeout.services.checkin.checkin_service import CheckInService
from timeout.services.rewards.points_service import PointsService, RewardPolicy
from timeout.services.rewards.streak_service import StreakService
from timeout.schemas.checkin import CreateCheckInRequest
from timeout.pipelines import checkin as pipelines
from common.utils import success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/community", tags=["checkins"])


@router.post("/checkins", status_code=201)
async def create_checkin(
    body: CreateCheckInRequest,
    user_id: Annotated[str, Depends(require_auth)],
    checkin_service: Annotated[CheckInService, Depends(get_checkin_service)],
    streak_service: Annotated[StreakService, Depends(get_streak_service)],
    points_service: Annotated[PointsService, Depends(get_points_service)],
    audit_logger: Annotated[AuditLogger, Depends(get_audit_logger)],
    policy: Annotated[RewardPolicy, Depends(get_reward_policy)],
):
    """
    Create a study check-in in a room the caller participates in.

    Also advances the caller's study streak and awards check-in points.
    """
    result = await pipelines.create_checkin_pipeline(
        checkin_service=checkin_service,
        streak_service=streak_service,
        points_service=points_service,
        audit_logger=audit_logger,
        policy=policy,
        user_id=user_id,
        room_id=body.roomId,
        checkin_type=body.checkInType.value,
        study_progress=body.studyProgress.model_dump() if body.studyProgress else None,
        location=body.location.model_dump() if body.location else None,
    )

    return success_response(result, message="Check-in created")


@router.get("/checkins/{checkin_id}")
async def get_checkin(
    checkin_id: str,
    user_id: Annotated[str, Depends(require_auth)],
    checkin_service: Annotated[CheckInService, Depends(get_checkin_service)],
):
    """Get one check-in."""
    checkin = await pipelines.get_checkin_pipeline(checkin_service, checkin_id)
    return success_response({"checkIn": checkin})


@router.get("/streak")
async def get_streak(
    user_id: Annotated[str, Depends(require_auth)],
    streak_service: Annotated[StreakService, Depends(get_streak_service)],
):
    """Get the caller's study streak and weekly progress."""
    streak = await pipelines.get_streak_pipeline(streak_service, user_id)
    return success_response({"streak": streak})
