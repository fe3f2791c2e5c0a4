"""Unit tests for the verification state machine (pure functions)."""

import pytest

from timeout.services.checkin.checkin_type import CheckInType
from timeout.services.verification.state import (
    VerificationStatus,
    InvalidTransition,
    can_transition,
    transition,
    count_votes,
    evaluate_quorum,
    approving_voters,
    VoteChoice,
)


def votes(*choices):
    return [{"voterId": f"voter-{i}", "vote": c} for i, c in enumerate(choices)]


# ─────────────────────────────────────────────────────────────────
# Transitions
# ─────────────────────────────────────────────────────────────────


class TestTransitions:
    @pytest.mark.parametrize("target", [
        VerificationStatus.APPROVED,
        VerificationStatus.REJECTED,
        VerificationStatus.EXPIRED,
    ])
    def test_pending_can_end(self, target):
        assert can_transition(VerificationStatus.PENDING, target)
        assert transition(VerificationStatus.PENDING, target) is target

    @pytest.mark.parametrize("current", [
        VerificationStatus.APPROVED,
        VerificationStatus.REJECTED,
        VerificationStatus.EXPIRED,
    ])
    def test_terminal_states_never_move(self, current):
        for target in VerificationStatus:
            assert not can_transition(current, target)

        with pytest.raises(InvalidTransition):
            transition(current, VerificationStatus.PENDING)

    def test_approved_to_rejected_rejected(self):
        with pytest.raises(InvalidTransition) as exc_info:
            transition(VerificationStatus.APPROVED, VerificationStatus.REJECTED)

        assert exc_info.value.current is VerificationStatus.APPROVED
        assert exc_info.value.target is VerificationStatus.REJECTED

    def test_only_pending_is_not_terminal(self):
        assert not VerificationStatus.PENDING.is_terminal
        assert all(
            s.is_terminal for s in VerificationStatus if s is not VerificationStatus.PENDING
        )


# ─────────────────────────────────────────────────────────────────
# Quorum
# ─────────────────────────────────────────────────────────────────


class TestEvaluateQuorum:
    def test_no_votes_is_pending(self):
        assert evaluate_quorum([], 3) is VerificationStatus.PENDING

    def test_below_quorum_is_pending(self):
        assert evaluate_quorum(votes("approve", "approve", "reject"), 3) is VerificationStatus.PENDING

    def test_approve_quorum(self):
        result = evaluate_quorum(votes("approve", "reject", "approve", "approve"), 3)
        assert result is VerificationStatus.APPROVED

    def test_reject_quorum(self):
        result = evaluate_quorum(votes("reject", "approve", "reject", "approve", "reject"), 3)
        assert result is VerificationStatus.REJECTED

    def test_approval_checked_first(self):
        result = evaluate_quorum(votes("approve", "reject", "approve", "reject"), 2)
        assert result is VerificationStatus.APPROVED

    def test_quorum_of_one(self):
        assert evaluate_quorum(votes("reject"), 1) is VerificationStatus.REJECTED

    def test_count_votes(self):
        counts = count_votes(votes("approve", "reject", "approve"))
        assert counts == {VoteChoice.APPROVE: 2, VoteChoice.REJECT: 1}

    def test_approving_voters_in_order(self):
        assert approving_voters(votes("approve", "reject", "approve")) == ["voter-0", "voter-2"]


class TestCheckInType:
    def test_only_photo_waits_for_peers(self):
        assert not CheckInType.PHOTO.auto_verified
        assert CheckInType.VERIFICATION.auto_verified
        assert CheckInType.PROGRESS_UPDATE.auto_verified
