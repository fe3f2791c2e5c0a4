"""
Check-in pipeline functions.
"""

from typing import Optional, Dict, Any

from common.utils.exceptions import NotFoundException
from timeout.pipelines.errors import internal_errors, best_effort
from timeout.pipelines.formatting import format_checkin
from timeout.services.audit.audit_logger import AuditLogger
from timeout.services.checkin.checkin_service import CheckInService
from timeout.services.rewards.points_service import PointsService, PointsCategory, RewardPolicy
from timeout.services.rewards.streak_service import StreakService


async def create_checkin_pipeline(
    checkin_service: CheckInService,
    streak_service: StreakService,
    points_service: PointsService,
    audit_logger: AuditLogger,
    policy: RewardPolicy,
    user_id: str,
    room_id: str,
    checkin_type: str,
    study_progress: Optional[Dict[str, Any]] = None,
    location: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Orchestrates the check-in flow.

    1. Persist the check-in (validates room membership)
    2. Update the study streak (best-effort)
    3. Award the check-in bonus (best-effort)

    Returns:
        dict with checkInId, checkIn, and the streak (None if the
        streak update failed)
    """
    async with internal_errors("create study check-in"):
        checkin = await checkin_service.create_checkin(
            user_id=user_id,
            room_id=room_id,
            checkin_type=checkin_type,
            study_progress=study_progress,
            location=location,
        )

    checkin_id = str(checkin["_id"])

    streak = await best_effort(
        f"Streak update after check-in {checkin_id}",
        streak_service.update_study_streak(user_id),
    )

    await best_effort(
        f"Check-in points for {checkin_id}",
        points_service.award_points(user_id, PointsCategory.CHECK_IN, policy.checkin_points),
    )

    await audit_logger.record(
        action="checkin.create",
        user_id=user_id,
        resource_type="checkIn",
        resource_id=checkin_id,
        details={"roomId": room_id, "checkInType": checkin["checkInType"]},
    )

    return {
        "checkInId": checkin_id,
        "checkIn": format_checkin(checkin),
        "streak": streak,
    }


async def get_checkin_pipeline(
    checkin_service: CheckInService,
    checkin_id: str,
) -> Dict[str, Any]:
    """
    Get one check-in.

    Raises:
        NotFoundException: Check-in doesn't exist
    """
    async with internal_errors("get check-in"):
        checkin = await checkin_service.get_checkin(checkin_id)

    if not checkin:
        raise NotFoundException(message="Check-in not found", code="CHECKIN_NOT_FOUND")
    return format_checkin(checkin)


async def get_streak_pipeline(
    streak_service: StreakService,
    user_id: str,
) -> Dict[str, Any]:
    """Get the caller's study streak."""
    async with internal_errors("get study streak"):
        return await streak_service.get_streak(user_id)
