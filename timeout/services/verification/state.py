"""
Verification request state machine.

Pure functions and enums: no database access. The service layer asks this
module what a vote list implies and whether a status change is allowed,
and only then writes.
"""

from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Mapping


class VoteChoice(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


class VerificationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self is not VerificationStatus.PENDING


ALLOWED_TRANSITIONS: Dict[VerificationStatus, FrozenSet[VerificationStatus]] = {
    VerificationStatus.PENDING: frozenset({
        VerificationStatus.APPROVED,
        VerificationStatus.REJECTED,
        VerificationStatus.EXPIRED,
    }),
    VerificationStatus.APPROVED: frozenset(),
    VerificationStatus.REJECTED: frozenset(),
    VerificationStatus.EXPIRED: frozenset(),
}


class InvalidTransition(ValueError):
    """Raised when a status change is not in the transition table."""

    def __init__(self, current: VerificationStatus, target: VerificationStatus):
        super().__init__(f"Cannot move verification from {current.value} to {target.value}")
        self.current = current
        self.target = target


def can_transition(current: VerificationStatus, target: VerificationStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def transition(current: VerificationStatus, target: VerificationStatus) -> VerificationStatus:
    """
    Validate a status change and return the new status.

    Raises:
        InvalidTransition: if the table does not allow current -> target
    """
    if not can_transition(current, target):
        raise InvalidTransition(current, target)
    return target


def count_votes(votes: Iterable[Mapping]) -> Dict[VoteChoice, int]:
    counts = {VoteChoice.APPROVE: 0, VoteChoice.REJECT: 0}
    for vote in votes:
        counts[VoteChoice(vote["vote"])] += 1
    return counts


def evaluate_quorum(votes: Iterable[Mapping], required_votes: int) -> VerificationStatus:
    """
    Status implied by a vote list.

    Approval is checked before rejection, so approval wins if both
    thresholds are reached in the same evaluation.
    """
    counts = count_votes(votes)
    if counts[VoteChoice.APPROVE] >= required_votes:
        return VerificationStatus.APPROVED
    if counts[VoteChoice.REJECT] >= required_votes:
        return VerificationStatus.REJECTED
    return VerificationStatus.PENDING


def approving_voters(votes: Iterable[Mapping]) -> List[str]:
    """Voter ids of approve votes, in casting order."""
    return [v["voterId"] for v in votes if v["vote"] == VoteChoice.APPROVE.value]
