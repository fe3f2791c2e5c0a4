"""
Peer photo verification.
"""

from timeout.services.verification.state import (
    VoteChoice,
    VerificationStatus,
    InvalidTransition,
    transition,
    evaluate_quorum,
)
from timeout.services.verification.verification_service import VerificationService

__all__ = [
    "VoteChoice",
    "VerificationStatus",
    "InvalidTransition",
    "transition",
    "evaluate_quorum",
    "VerificationService",
]
