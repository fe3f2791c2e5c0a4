"""
Check-in kinds.
"""

from enum import Enum


class CheckInType(str, Enum):
    PHOTO = "photo"
    VERIFICATION = "verification"
    PROGRESS_UPDATE = "progress_update"

    @property
    def auto_verified(self) -> bool:
        """Only photo check-ins wait for peer verification."""
        return self is not CheckInType.PHOTO
