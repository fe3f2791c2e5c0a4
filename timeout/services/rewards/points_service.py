"""
Points ledger.

The running total and the per-category breakdown live on the user
document and are only ever changed with $inc.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Union

from motor.motor_asyncio import AsyncIOMotorDatabase

from timeout.database import USERS

logger = logging.getLogger(__name__)

_CATEGORY_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")


class PointsCategory(str, Enum):
    CHECK_IN = "check_in"
    VERIFICATION_VOTE = "verification_vote"
    VERIFICATION_APPROVED = "verification_approved"


@dataclass(frozen=True)
class RewardPolicy:
    """Points granted per action."""

    checkin_points: int = 10
    vote_points: int = 5
    approved_points: int = 25


class PointsService:
    """Awards points with atomic increments."""

    def __init__(self, db: AsyncIOMotorDatabase):
        """
        Initialize PointsService.

        Args:
            db: MongoDB database connection
        """
        self._users = db[USERS]

    async def award_points(
        self,
        user_id: str,
        category: Union[PointsCategory, str],
        amount: int,
    ) -> None:
        """
        Add points to a user's total and to the category subtotal.

        A single update with $inc on both fields, so concurrent awards to
        the same user never overwrite each other. The user document is
        created if the identity provider hasn't synced it yet.

        Args:
            user_id: Auth uid (users are keyed by uid)
            category: Action category, e.g. "check_in"
            amount: Positive number of points

        Raises:
            ValueError: Bad category name or non-positive amount
        """
        category = category.value if isinstance(category, PointsCategory) else category
        if not _CATEGORY_PATTERN.match(category):
            raise ValueError(f"Invalid points category: {category!r}")
        if not isinstance(amount, int) or amount <= 0:
            raise ValueError(f"Points amount must be a positive integer, got {amount!r}")

        now = datetime.now(timezone.utc)
        await self._users.update_one(
            {"_id": user_id},
            {
                "$inc": {
                    "totalPoints": amount,
                    f"pointsHistory.{category}": amount,
                },
                "$set": {"updatedAt": now},
                "$setOnInsert": {"createdAt": now},
            },
            upsert=True,
        )

        logger.info(f"Awarded {amount} points to user {user_id} for {category}")
