"""
FastAPI router for peer photo verification endpoints.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from timeout.dependencies import (
    require_auth,
    get_verification_service,
    get_checkin_service,
    get_points_service,
    get_audit_logger,
    get_reward_policy,
)
from timeout.services.audit.audit_logger import AuditLogger
from timeout.services.checkin.checkin_service import CheckInService
from timeout.services.rewards.points_service import PointsService, RewardPolicy
from timeout.services.verification.verification_service import VerificationService
from timeout.schemas.verification import SubmitVerificationRequest, CastVoteRequest
from timeout.pipelines import verification as pipelines
from common.utils import success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/community/verifications", tags=["verifications"])


@router.post("", status_code=201)
async def submit_verification(
    body: SubmitVerificationRequest,
    user_id: Annotated[str, Depends(require_auth)],
    verification_service: Annotated[VerificationService, Depends(get_verification_service)],
    audit_logger: Annotated[AuditLogger, Depends(get_audit_logger)],
):
    """
    Submit a photo of one of the caller's check-ins for peer verification.

    The request stays pending until enough peers approve or reject it.
    """
    result = await pipelines.submit_verification_pipeline(
        verification_service=verification_service,
        audit_logger=audit_logger,
        user_id=user_id,
        checkin_id=body.checkInId,
        photo_url=body.photoUrl,
    )

    return success_response(result, message="Verification request submitted")


@router.get("/pending")
async def list_pending_verifications(
    user_id: Annotated[str, Depends(require_auth)],
    verification_service: Annotated[VerificationService, Depends(get_verification_service)],
    roomId: Optional[str] = Query(None, max_length=128),
    limit: int = Query(20, ge=1, le=100),
):
    """List pending requests the caller can still vote on."""
    result = await pipelines.list_votable_pipeline(
        verification_service=verification_service,
        voter_id=user_id,
        room_id=roomId,
        limit=limit,
    )
    return success_response(result)


@router.get("/{verification_id}")
async def get_verification(
    verification_id: str,
    user_id: Annotated[str, Depends(require_auth)],
    verification_service: Annotated[VerificationService, Depends(get_verification_service)],
):
    """Get one verification request with its votes."""
    verification = await pipelines.get_verification_pipeline(verification_service, verification_id)
    return success_response({"verification": verification})


@router.post("/{verification_id}/votes")
async def cast_vote(
    verification_id: str,
    body: CastVoteRequest,
    user_id: Annotated[str, Depends(require_auth)],
    verification_service: Annotated[VerificationService, Depends(get_verification_service)],
    checkin_service: Annotated[CheckInService, Depends(get_checkin_service)],
    points_service: Annotated[PointsService, Depends(get_points_service)],
    audit_logger: Annotated[AuditLogger, Depends(get_audit_logger)],
    policy: Annotated[RewardPolicy, Depends(get_reward_policy)],
):
    """
    Vote on another user's verification request.

    Returns the request status after this vote.
    """
    result = await pipelines.cast_vote_pipeline(
        verification_service=verification_service,
        checkin_service=checkin_service,
        points_service=points_service,
        audit_logger=audit_logger,
        policy=policy,
        voter_id=user_id,
        verification_id=verification_id,
        vote=body.vote.value,
        reason=body.reason,
    )

    return success_response(result, message="Vote recorded")
