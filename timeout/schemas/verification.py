"""
Pydantic models for photo verification requests.
"""

from typing import Optional
from pydantic import BaseModel, Field

from timeout.services.verification.state import VoteChoice


class SubmitVerificationRequest(BaseModel):
    """Request body for submitting a check-in photo for peer verification."""
    checkInId: str = Field(..., min_length=1, max_length=64)
    photoUrl: str = Field(..., min_length=1, max_length=2048, pattern=r"^(https?|gs)://")


class CastVoteRequest(BaseModel):
    """Request body for voting on a verification."""
    vote: VoteChoice
    reason: Optional[str] = Field(None, max_length=500)
