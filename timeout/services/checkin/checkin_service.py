"""
Study check-in storage.

Creates check-ins for room participants and applies the two mutations
other steps are allowed to make: attaching a photo and marking the
check-in verified.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase

from common.utils.exceptions import (
    InvalidArgumentException,
    NotFoundException,
    PermissionDeniedException,
)
from timeout.database import CHECK_INS, ROOMS, doc_id_filter, parse_object_id
from timeout.services.checkin.checkin_type import CheckInType

logger = logging.getLogger(__name__)


class CheckInService:
    """
    Handles check-in storage and retrieval.
    """

    # Client-reported accuracy is not trusted
    DEFAULT_LOCATION_ACCURACY = 100

    def __init__(self, db: AsyncIOMotorDatabase):
        """
        Initialize CheckInService.

        Args:
            db: MongoDB database connection
        """
        self._checkins = db[CHECK_INS]
        self._rooms = db[ROOMS]

    async def create_checkin(
        self,
        user_id: str,
        room_id: str,
        checkin_type: str,
        study_progress: Optional[Dict[str, Any]] = None,
        location: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Create a check-in for a room participant.

        Non-photo check-ins are self-attested and stored verified; photo
        check-ins start unverified until peers approve them.

        Args:
            user_id: Auth uid of the caller
            room_id: Room the caller is studying in
            checkin_type: "photo", "verification" or "progress_update"
            study_progress: Optional {tasksCompleted, currentTask, notes}
            location: Optional {latitude, longitude}

        Returns:
            Saved check-in document

        Raises:
            InvalidArgumentException: Missing room id or unknown type
            NotFoundException: Room doesn't exist
            PermissionDeniedException: Caller isn't a room participant
        """
        if not room_id or not checkin_type:
            raise InvalidArgumentException(
                message="Room ID and check-in type are required",
                code="MISSING_FIELDS",
            )

        try:
            kind = CheckInType(checkin_type)
        except ValueError:
            raise InvalidArgumentException(
                message=f"Unknown check-in type: {checkin_type}",
                code="INVALID_CHECKIN_TYPE",
            )

        room = await self._rooms.find_one(doc_id_filter(room_id), {"participants": 1})
        if not room:
            raise NotFoundException(message="Study room not found", code="ROOM_NOT_FOUND")

        if not self._is_participant(room, user_id):
            raise PermissionDeniedException(
                message="Must be a participant in the room to check in",
                code="NOT_ROOM_PARTICIPANT",
            )

        now = datetime.now(timezone.utc)
        checkin: Dict[str, Any] = {
            "userId": user_id,
            "roomId": room_id,
            "timestamp": now,
            "checkInType": kind.value,
            "isVerified": kind.auto_verified,
            "createdAt": now,
            "updatedAt": now,
        }
        if study_progress:
            checkin["studyProgress"] = study_progress
        if location:
            checkin["location"] = {**location, "accuracy": self.DEFAULT_LOCATION_ACCURACY}

        result = await self._checkins.insert_one(checkin)
        checkin["_id"] = result.inserted_id

        logger.info(
            f"Check-in {result.inserted_id} ({kind.value}) created for user {user_id} "
            f"in room {room_id}"
        )
        return checkin

    async def get_checkin(self, checkin_id: str) -> Optional[Dict[str, Any]]:
        """
        Get a check-in by id.

        Returns:
            Check-in document, or None if missing or the id is malformed
        """
        oid = parse_object_id(checkin_id)
        if oid is None:
            return None
        return await self._checkins.find_one({"_id": oid})

    async def attach_photo(self, checkin_id: str, photo_url: str) -> None:
        """Record the photo submitted for verification on the check-in."""
        await self._checkins.update_one(
            {"_id": parse_object_id(checkin_id)},
            {"$set": {"photoUrl": photo_url, "updatedAt": datetime.now(timezone.utc)}},
        )
        logger.debug(f"Photo attached to check-in {checkin_id}")

    async def mark_verified(self, checkin_id: str, verified_by: List[str]) -> None:
        """
        Flip a check-in to verified.

        Args:
            checkin_id: Check-in id
            verified_by: Voter ids that approved it
        """
        await self._checkins.update_one(
            {"_id": parse_object_id(checkin_id)},
            {
                "$set": {
                    "isVerified": True,
                    "verifiedBy": list(verified_by),
                    "updatedAt": datetime.now(timezone.utc),
                }
            },
        )
        logger.info(f"Check-in {checkin_id} verified by {len(verified_by)} peers")

    @staticmethod
    def _is_participant(room: Dict[str, Any], user_id: str) -> bool:
        participants = room.get("participants") or {}
        if isinstance(participants, dict):
            member = participants.get(user_id)
            return member is not None and member is not False
        return user_id in participants
