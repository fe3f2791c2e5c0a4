"""
Photo verification pipeline functions.

The vote pipeline applies the outcome's side effects only when its own
write ended the request, so they run once per request.
"""

import logging
from typing import Optional, Dict, Any

from common.utils.exceptions import NotFoundException
from timeout.pipelines.errors import internal_errors, best_effort
from timeout.pipelines.formatting import format_verification
from timeout.services.audit.audit_logger import AuditLogger
from timeout.services.checkin.checkin_service import CheckInService
from timeout.services.rewards.points_service import PointsService, PointsCategory, RewardPolicy
from timeout.services.verification.state import VerificationStatus, approving_voters
from timeout.services.verification.verification_service import VerificationService

logger = logging.getLogger(__name__)


async def submit_verification_pipeline(
    verification_service: VerificationService,
    audit_logger: AuditLogger,
    user_id: str,
    checkin_id: str,
    photo_url: str,
) -> Dict[str, Any]:
    """
    Open a verification request for the caller's check-in.

    Returns:
        dict with verificationId and verification
    """
    async with internal_errors("submit photo verification"):
        request = await verification_service.submit_verification(
            user_id=user_id,
            checkin_id=checkin_id,
            photo_url=photo_url,
        )

    verification_id = str(request["_id"])
    await audit_logger.record(
        action="verification.submit",
        user_id=user_id,
        resource_type="verificationRequest",
        resource_id=verification_id,
        details={"checkInId": request["checkInId"]},
    )

    return {
        "verificationId": verification_id,
        "verification": format_verification(request),
    }


async def cast_vote_pipeline(
    verification_service: VerificationService,
    checkin_service: CheckInService,
    points_service: PointsService,
    audit_logger: AuditLogger,
    policy: RewardPolicy,
    voter_id: str,
    verification_id: str,
    vote: str,
    reason: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Orchestrates a peer vote.

    1. Record the vote and evaluate the quorum (atomic, retried on conflict)
    2. If this vote approved the request: verify the check-in and award
       the submitter (best-effort)
    3. Award the voter for participating (best-effort)

    Returns:
        dict with the resulting status and the verification
    """
    async with internal_errors("vote on verification"):
        outcome = await verification_service.cast_vote(
            voter_id=voter_id,
            verification_id=verification_id,
            vote=vote,
            reason=reason,
        )

    request = outcome["verification"]
    status = VerificationStatus(outcome["status"])

    if outcome["transitioned"]:
        await _apply_outcome(checkin_service, points_service, audit_logger, policy, request, status)

    await best_effort(
        f"Vote points for {voter_id}",
        points_service.award_points(voter_id, PointsCategory.VERIFICATION_VOTE, policy.vote_points),
    )

    await audit_logger.record(
        action="verification.vote",
        user_id=voter_id,
        resource_type="verificationRequest",
        resource_id=verification_id,
        details={"vote": vote, "status": status.value},
    )

    return {
        "status": status.value,
        "verification": format_verification(request),
    }


async def _apply_outcome(
    checkin_service: CheckInService,
    points_service: PointsService,
    audit_logger: AuditLogger,
    policy: RewardPolicy,
    request: Dict[str, Any],
    status: VerificationStatus,
) -> None:
    verification_id = str(request["_id"])

    if status is VerificationStatus.APPROVED:
        await best_effort(
            f"Marking check-in {request['checkInId']} verified",
            checkin_service.mark_verified(request["checkInId"], approving_voters(request["votes"])),
        )
        await best_effort(
            f"Approval points for {request['userId']}",
            points_service.award_points(
                request["userId"],
                PointsCategory.VERIFICATION_APPROVED,
                policy.approved_points,
            ),
        )

    logger.info(f"Verification {verification_id} resolved as {status.value}")
    await audit_logger.record(
        action=f"verification.{status.value}",
        user_id=request["userId"],
        resource_type="verificationRequest",
        resource_id=verification_id,
        details={"checkInId": request["checkInId"], "votes": len(request["votes"])},
    )


async def get_verification_pipeline(
    verification_service: VerificationService,
    verification_id: str,
) -> Dict[str, Any]:
    """
    Get one verification request.

    Raises:
        NotFoundException: Request doesn't exist
    """
    async with internal_errors("get verification"):
        request = await verification_service.get_verification(verification_id)

    if not request:
        raise NotFoundException(
            message="Verification request not found",
            code="VERIFICATION_NOT_FOUND",
        )
    return format_verification(request)


async def list_votable_pipeline(
    verification_service: VerificationService,
    voter_id: str,
    room_id: Optional[str] = None,
    limit: int = 20,
) -> Dict[str, Any]:
    """Pending requests the caller can still vote on."""
    async with internal_errors("list pending verifications"):
        requests = await verification_service.list_votable(
            voter_id=voter_id,
            room_id=room_id,
            limit=limit,
        )

    return {
        "verifications": [format_verification(r) for r in requests],
        "count": len(requests),
    }
