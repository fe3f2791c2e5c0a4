"""
Verification request lifecycle.

A photo check-in's owner opens a request; peers vote until the approve or
reject count reaches the quorum fixed on the request. Votes are written
with a compare-and-swap on the request's version so two concurrent votes
can never drop each other.
"""

import logging
from datetime import datetime, timezone, timedelta
from typing import Optional, List, Dict, Any, Callable

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from common.utils.exceptions import (
    InvalidArgumentException,
    NotFoundException,
    PermissionDeniedException,
    FailedPreconditionException,
)
from timeout.database import VERIFICATION_REQUESTS, parse_object_id, version_filter
from timeout.services.checkin.checkin_service import CheckInService
from timeout.services.verification.state import (
    VoteChoice,
    VerificationStatus,
    evaluate_quorum,
    transition,
)

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class VerificationService:
    """
    Owns the verificationRequests collection.

    Side effects of an outcome (check-in flip, points) are left to the
    caller; cast_vote reports whether this call performed the transition.
    """

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        checkin_service: CheckInService,
        required_votes: int = 3,
        ttl_hours: int = 24,
        max_retries: int = 5,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize VerificationService.

        Args:
            db: MongoDB database connection
            checkin_service: For reading and updating the underlying check-in
            required_votes: Quorum fixed on every new request
            ttl_hours: Lifetime of a request before it expires
            max_retries: Compare-and-swap attempts per vote
            clock: Returns the current aware datetime (injectable for tests)
        """
        if required_votes < 1:
            raise ValueError("required_votes must be at least 1")

        self._requests = db[VERIFICATION_REQUESTS]
        self._checkin_service = checkin_service
        self._required_votes = required_votes
        self._ttl = timedelta(hours=ttl_hours)
        self._max_retries = max_retries
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # ─────────────────────────────────────────────────────────────────
    # Submission
    # ─────────────────────────────────────────────────────────────────

    async def submit_verification(
        self,
        user_id: str,
        checkin_id: str,
        photo_url: str,
    ) -> Dict[str, Any]:
        """
        Open a verification request for the caller's own check-in.

        Args:
            user_id: Auth uid of the caller
            checkin_id: Check-in to verify
            photo_url: Uploaded photo

        Returns:
            The new request document

        Raises:
            InvalidArgumentException: Missing check-in id or photo URL
            NotFoundException: Check-in doesn't exist
            PermissionDeniedException: Check-in belongs to someone else
            FailedPreconditionException: Already verified, or a request is pending
        """
        if not checkin_id or not photo_url:
            raise InvalidArgumentException(
                message="Check-in ID and photo URL are required",
                code="MISSING_FIELDS",
            )

        checkin = await self._checkin_service.get_checkin(checkin_id)
        if not checkin:
            raise NotFoundException(message="Check-in not found", code="CHECKIN_NOT_FOUND")

        if checkin["userId"] != user_id:
            raise PermissionDeniedException(
                message="Cannot verify another user's check-in",
                code="NOT_CHECKIN_OWNER",
            )

        if checkin.get("isVerified"):
            raise FailedPreconditionException(
                message="Check-in is already verified",
                code="CHECKIN_ALREADY_VERIFIED",
            )

        checkin_key = str(checkin["_id"])
        now = self._clock()

        existing = await self._requests.find_one(
            {"checkInId": checkin_key, "status": VerificationStatus.PENDING.value}
        )
        if existing:
            if not self.is_expired(existing, now):
                raise FailedPreconditionException(
                    message="A verification for this check-in is already pending",
                    code="VERIFICATION_ALREADY_PENDING",
                    details={"verificationId": str(existing["_id"])},
                )
            await self._expire(existing, now)

        request: Dict[str, Any] = {
            "checkInId": checkin_key,
            "userId": user_id,
            "roomId": checkin.get("roomId"),
            "photoUrl": photo_url,
            "requestedAt": now,
            "votes": [],
            "status": VerificationStatus.PENDING.value,
            "requiredVotes": self._required_votes,
            "expiresAt": now + self._ttl,
            "version": 0,
            "createdAt": now,
            "updatedAt": now,
        }

        try:
            result = await self._requests.insert_one(request)
        except DuplicateKeyError:
            raise FailedPreconditionException(
                message="A verification for this check-in is already pending",
                code="VERIFICATION_ALREADY_PENDING",
            )
        request["_id"] = result.inserted_id

        try:
            await self._checkin_service.attach_photo(checkin_key, photo_url)
        except Exception as e:
            # The request document already carries photoUrl
            logger.warning(f"Attaching photo to check-in {checkin_key} failed: {e}")

        logger.info(
            f"Verification {result.inserted_id} opened for check-in {checkin_key} "
            f"by user {user_id}"
        )
        return request

    # ─────────────────────────────────────────────────────────────────
    # Voting
    # ─────────────────────────────────────────────────────────────────

    async def cast_vote(
        self,
        voter_id: str,
        verification_id: str,
        vote: str,
        reason: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Record a peer vote and re-evaluate the quorum.

        Args:
            voter_id: Auth uid of the caller
            verification_id: Request to vote on
            vote: "approve" or "reject"
            reason: Optional free-text reason

        Returns:
            dict with the updated request, its status, and `transitioned`
            (True only for the call whose write ended the request)

        Raises:
            InvalidArgumentException: Missing id or unknown vote value
            NotFoundException: Request doesn't exist
            PermissionDeniedException: Voting on your own request
            FailedPreconditionException: Not pending, expired, already voted,
                or the request stayed contended for every attempt
        """
        if not verification_id or not vote:
            raise InvalidArgumentException(
                message="Verification ID and vote are required",
                code="MISSING_FIELDS",
            )

        try:
            choice = VoteChoice(vote)
        except ValueError:
            raise InvalidArgumentException(
                message=f"Vote must be one of: {', '.join(v.value for v in VoteChoice)}",
                code="INVALID_VOTE",
            )

        request_oid = parse_object_id(verification_id)

        for attempt in range(1, self._max_retries + 1):
            request = await self._requests.find_one({"_id": request_oid}) if request_oid else None
            if not request:
                raise NotFoundException(
                    message="Verification request not found",
                    code="VERIFICATION_NOT_FOUND",
                )

            now = self._clock()
            self._check_can_vote(request, voter_id, now)

            new_vote: Dict[str, Any] = {
                "voterId": voter_id,
                "vote": choice.value,
                "timestamp": now,
            }
            if reason:
                new_vote["reason"] = reason

            votes = [*request.get("votes", []), new_vote]
            current = VerificationStatus(request["status"])
            outcome = evaluate_quorum(votes, request["requiredVotes"])
            if outcome is not current:
                outcome = transition(current, outcome)

            result = await self._requests.update_one(
                {
                    "_id": request_oid,
                    "status": VerificationStatus.PENDING.value,
                    **version_filter(request),
                },
                {
                    "$set": {"votes": votes, "status": outcome.value, "updatedAt": now},
                    "$inc": {"version": 1},
                },
            )

            if result.modified_count:
                updated = {
                    **request,
                    "votes": votes,
                    "status": outcome.value,
                    "updatedAt": now,
                    "version": request.get("version", 0) + 1,
                }
                logger.info(
                    f"User {voter_id} voted {choice.value} on verification {verification_id} "
                    f"({len(votes)} votes, status {outcome.value})"
                )
                return {
                    "verification": updated,
                    "status": outcome.value,
                    "transitioned": outcome is not current,
                }

            logger.debug(
                f"Vote on verification {verification_id} lost a race (attempt {attempt})"
            )

        logger.warning(
            f"Vote by {voter_id} on verification {verification_id} gave up after "
            f"{self._max_retries} attempts"
        )
        raise FailedPreconditionException(
            message="Verification is receiving many votes right now, please retry",
            code="VERIFICATION_CONTENDED",
        )

    def _check_can_vote(self, request: Dict[str, Any], voter_id: str, now: datetime) -> None:
        if request["userId"] == voter_id:
            raise PermissionDeniedException(
                message="Cannot vote on your own verification",
                code="SELF_VOTE",
            )

        if VerificationStatus(request["status"]).is_terminal:
            raise FailedPreconditionException(
                message="Verification is no longer pending",
                code="VERIFICATION_NOT_PENDING",
            )

        if self.is_expired(request, now):
            raise FailedPreconditionException(
                message="Verification has expired",
                code="VERIFICATION_EXPIRED",
            )

        if any(v["voterId"] == voter_id for v in request.get("votes", [])):
            raise FailedPreconditionException(
                message="You have already voted on this verification",
                code="ALREADY_VOTED",
            )

    # ─────────────────────────────────────────────────────────────────
    # Reads
    # ─────────────────────────────────────────────────────────────────

    async def get_verification(self, verification_id: str) -> Optional[Dict[str, Any]]:
        """Get a request by id (None if missing or malformed id)."""
        oid = parse_object_id(verification_id)
        if oid is None:
            return None
        return await self._requests.find_one({"_id": oid})

    async def list_votable(
        self,
        voter_id: str,
        room_id: Optional[str] = None,
        limit: int = 20,
    ) -> List[Dict[str, Any]]:
        """
        Pending, unexpired requests the voter may still vote on.

        Excludes the voter's own requests and ones they already voted on.
        Oldest first, so requests closest to expiry get votes first.
        """
        query: Dict[str, Any] = {
            "status": VerificationStatus.PENDING.value,
            "expiresAt": {"$gt": self._clock()},
            "userId": {"$ne": voter_id},
            "votes.voterId": {"$ne": voter_id},
        }
        if room_id:
            query["roomId"] = room_id

        cursor = self._requests.find(query)
        cursor = cursor.sort("requestedAt", 1)
        cursor = cursor.limit(limit)

        return await cursor.to_list(length=limit)

    # ─────────────────────────────────────────────────────────────────
    # Expiry
    # ─────────────────────────────────────────────────────────────────

    def is_expired(self, request: Dict[str, Any], now: Optional[datetime] = None) -> bool:
        expires_at = request.get("expiresAt")
        if expires_at is None:
            return False
        return _as_utc(expires_at) <= (now or self._clock())

    async def expire_overdue(self) -> int:
        """
        Move every pending request past its expiry to `expired`.

        Each document is only changed if it is still pending, so a vote that
        lands first wins.

        Returns:
            Number of requests expired
        """
        now = self._clock()
        status = transition(VerificationStatus.PENDING, VerificationStatus.EXPIRED)

        result = await self._requests.update_many(
            {
                "status": VerificationStatus.PENDING.value,
                "expiresAt": {"$lte": now},
            },
            {
                "$set": {"status": status.value, "expiredAt": now, "updatedAt": now},
                "$inc": {"version": 1},
            },
        )

        if result.modified_count:
            logger.info(f"Expired {result.modified_count} overdue verification requests")
        return result.modified_count

    async def _expire(self, request: Dict[str, Any], now: datetime) -> bool:
        status = transition(VerificationStatus(request["status"]), VerificationStatus.EXPIRED)
        result = await self._requests.update_one(
            {
                "_id": request["_id"],
                "status": VerificationStatus.PENDING.value,
                **version_filter(request),
            },
            {
                "$set": {"status": status.value, "expiredAt": now, "updatedAt": now},
                "$inc": {"version": 1},
            },
        )
        if result.modified_count:
            logger.info(f"Verification {request['_id']} expired")
        return bool(result.modified_count)
