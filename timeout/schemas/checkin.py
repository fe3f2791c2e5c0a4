"""
Pydantic models for check-in requests.
"""

from typing import Optional
from pydantic import BaseModel, Field

from timeout.services.checkin.checkin_type import CheckInType


class StudyProgressInput(BaseModel):
    """What the user is working on."""
    tasksCompleted: int = Field(..., ge=0, le=1000)
    currentTask: str = Field(..., max_length=200)
    notes: Optional[str] = Field(None, max_length=500)


class LocationInput(BaseModel):
    """Approximate location of the check-in."""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class CreateCheckInRequest(BaseModel):
    """Request body for creating a study check-in."""
    roomId: str = Field(..., min_length=1, max_length=128)
    checkInType: CheckInType
    studyProgress: Optional[StudyProgressInput] = None
    location: Optional[LocationInput] = None
