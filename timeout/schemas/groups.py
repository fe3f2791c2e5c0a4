"""
Pydantic models for study group requests.
"""

from typing import Optional, List, Literal
from pydantic import BaseModel, Field


class GroupSettingsInput(BaseModel):
    """Overrides for the default group settings."""
    requireApproval: Optional[bool] = None
    allowPhotoCheckIns: Optional[bool] = None
    verificationRequired: Optional[bool] = None
    minimumSessionTime: Optional[int] = Field(None, ge=5, le=480)
    focusMode: Optional[Literal["strict", "moderate", "flexible"]] = None
    allowedBreakTime: Optional[int] = Field(None, ge=0, le=60)


class CreateStudyGroupRequest(BaseModel):
    """Request body for creating a study group."""
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=1000)
    maxMembers: Optional[int] = Field(None, ge=2, le=100)
    isPrivate: bool = False
    tags: List[str] = Field(default_factory=list, max_length=10)
    settings: Optional[GroupSettingsInput] = None
