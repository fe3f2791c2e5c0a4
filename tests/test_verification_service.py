"""Unit tests for VerificationService (submission, voting, expiry)."""

import pytest
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from common.utils.exceptions import (
    InvalidArgumentException,
    NotFoundException,
    PermissionDeniedException,
    FailedPreconditionException,
)
from timeout.services.verification.verification_service import VerificationService

from conftest import NOW, make_cursor, update_result, vote


PHOTO_URL = "https://cdn.example.com/desk.jpg"


# ─────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────


@pytest.fixture
def checkin_service():
    service = AsyncMock()
    service.get_checkin = AsyncMock(return_value=None)
    return service


@pytest.fixture
def requests(mock_db):
    return mock_db["verificationRequests"]


@pytest.fixture
def service(mock_db, checkin_service, clock):
    return VerificationService(
        mock_db,
        checkin_service=checkin_service,
        required_votes=3,
        ttl_hours=24,
        max_retries=3,
        clock=clock,
    )


def test_quorum_must_be_positive(mock_db, checkin_service):
    with pytest.raises(ValueError):
        VerificationService(mock_db, checkin_service=checkin_service, required_votes=0)


# ─────────────────────────────────────────────────────────────────
# submit_verification
# ─────────────────────────────────────────────────────────────────


class TestSubmitVerification:
    @pytest.mark.asyncio
    async def test_opens_pending_request(self, service, checkin_service, requests, sample_checkin):
        checkin_service.get_checkin.return_value = sample_checkin
        requests.find_one.return_value = None
        new_id = ObjectId()
        requests.insert_one.return_value = MagicMock(inserted_id=new_id)

        request = await service.submit_verification("alice", str(sample_checkin["_id"]), PHOTO_URL)

        assert request["_id"] == new_id
        assert request["status"] == "pending"
        assert request["votes"] == []
        assert request["requiredVotes"] == 3
        assert request["version"] == 0
        assert request["roomId"] == "room-1"
        assert request["expiresAt"] == NOW + timedelta(hours=24)
        checkin_service.attach_photo.assert_awaited_once_with(str(sample_checkin["_id"]), PHOTO_URL)

    @pytest.mark.asyncio
    async def test_missing_fields(self, service):
        with pytest.raises(InvalidArgumentException) as exc_info:
            await service.submit_verification("alice", "", PHOTO_URL)
        assert exc_info.value.code == "MISSING_FIELDS"

    @pytest.mark.asyncio
    async def test_unknown_checkin(self, service):
        with pytest.raises(NotFoundException) as exc_info:
            await service.submit_verification("alice", str(ObjectId()), PHOTO_URL)
        assert exc_info.value.code == "CHECKIN_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_other_users_checkin(self, service, checkin_service, sample_checkin):
        checkin_service.get_checkin.return_value = sample_checkin

        with pytest.raises(PermissionDeniedException) as exc_info:
            await service.submit_verification("mallory", str(sample_checkin["_id"]), PHOTO_URL)
        assert exc_info.value.code == "NOT_CHECKIN_OWNER"

    @pytest.mark.asyncio
    async def test_already_verified(self, service, checkin_service, requests, sample_checkin):
        checkin_service.get_checkin.return_value = {**sample_checkin, "isVerified": True}

        with pytest.raises(FailedPreconditionException) as exc_info:
            await service.submit_verification("alice", str(sample_checkin["_id"]), PHOTO_URL)

        assert exc_info.value.code == "CHECKIN_ALREADY_VERIFIED"
        requests.insert_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rejects_second_pending_request(
        self, service, checkin_service, requests, sample_checkin, pending_request
    ):
        checkin_service.get_checkin.return_value = sample_checkin
        requests.find_one.return_value = pending_request

        with pytest.raises(FailedPreconditionException) as exc_info:
            await service.submit_verification("alice", str(sample_checkin["_id"]), PHOTO_URL)

        assert exc_info.value.code == "VERIFICATION_ALREADY_PENDING"
        assert exc_info.value.details == {"verificationId": str(pending_request["_id"])}
        requests.insert_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_overdue_request_is_expired_then_replaced(
        self, service, checkin_service, requests, sample_checkin, pending_request
    ):
        overdue = {**pending_request, "expiresAt": NOW - timedelta(minutes=1)}
        checkin_service.get_checkin.return_value = sample_checkin
        requests.find_one.return_value = overdue
        requests.update_one.return_value = update_result(1)
        requests.insert_one.return_value = MagicMock(inserted_id=ObjectId())

        request = await service.submit_verification("alice", str(sample_checkin["_id"]), PHOTO_URL)

        assert request["status"] == "pending"
        filter_, update = requests.update_one.call_args[0]
        assert filter_["_id"] == overdue["_id"]
        assert filter_["status"] == "pending"
        assert update["$set"]["status"] == "expired"
        requests.insert_one.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_concurrent_submit_hits_unique_index(
        self, service, checkin_service, requests, sample_checkin
    ):
        checkin_service.get_checkin.return_value = sample_checkin
        requests.find_one.return_value = None
        requests.insert_one.side_effect = DuplicateKeyError("one_pending_per_checkin")

        with pytest.raises(FailedPreconditionException) as exc_info:
            await service.submit_verification("alice", str(sample_checkin["_id"]), PHOTO_URL)

        assert exc_info.value.code == "VERIFICATION_ALREADY_PENDING"
        checkin_service.attach_photo.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_photo_attach_failure_keeps_request_open(
        self, service, checkin_service, requests, sample_checkin
    ):
        checkin_service.get_checkin.return_value = sample_checkin
        checkin_service.attach_photo.side_effect = RuntimeError("check-in write timed out")
        requests.find_one.return_value = None
        new_id = ObjectId()
        requests.insert_one.return_value = MagicMock(inserted_id=new_id)

        request = await service.submit_verification("alice", str(sample_checkin["_id"]), PHOTO_URL)

        assert request["_id"] == new_id
        assert request["status"] == "pending"
        assert request["photoUrl"] == PHOTO_URL
        requests.insert_one.assert_awaited_once()
        checkin_service.attach_photo.assert_awaited_once()


# ─────────────────────────────────────────────────────────────────
# cast_vote
# ─────────────────────────────────────────────────────────────────


class TestCastVote:
    @pytest.mark.asyncio
    async def test_first_vote_stays_pending(self, service, requests, pending_request):
        requests.find_one.return_value = pending_request
        requests.update_one.return_value = update_result(1)

        outcome = await service.cast_vote("bob", str(pending_request["_id"]), "approve")

        assert outcome["status"] == "pending"
        assert outcome["transitioned"] is False
        assert outcome["verification"]["version"] == 1
        assert [v["voterId"] for v in outcome["verification"]["votes"]] == ["bob"]

        filter_, update = requests.update_one.call_args[0]
        assert filter_ == {"_id": pending_request["_id"], "status": "pending", "version": 0}
        assert update["$inc"] == {"version": 1}
        assert update["$set"]["status"] == "pending"

    @pytest.mark.asyncio
    async def test_reason_is_stored(self, service, requests, pending_request):
        requests.find_one.return_value = pending_request
        requests.update_one.return_value = update_result(1)

        outcome = await service.cast_vote("bob", str(pending_request["_id"]), "reject", "Blurry")

        assert outcome["verification"]["votes"][0]["reason"] == "Blurry"

    @pytest.mark.asyncio
    async def test_third_approval_transitions(self, service, requests, pending_request):
        request = {**pending_request, "votes": [vote("bob"), vote("carol")], "version": 2}
        requests.find_one.return_value = request
        requests.update_one.return_value = update_result(1)

        outcome = await service.cast_vote("dave", str(request["_id"]), "approve")

        assert outcome["status"] == "approved"
        assert outcome["transitioned"] is True
        assert requests.update_one.call_args[0][1]["$set"]["status"] == "approved"

    @pytest.mark.asyncio
    async def test_mixed_votes_reach_approval(self, service, requests, pending_request):
        request = {
            **pending_request,
            "votes": [vote("bob"), vote("carol", "reject"), vote("dave")],
            "version": 3,
        }
        requests.find_one.return_value = request
        requests.update_one.return_value = update_result(1)

        outcome = await service.cast_vote("erin", str(request["_id"]), "approve")

        assert outcome["status"] == "approved"
        assert len(outcome["verification"]["votes"]) == 4

    @pytest.mark.asyncio
    async def test_third_rejection_transitions(self, service, requests, pending_request):
        request = {
            **pending_request,
            "votes": [vote("bob", "reject"), vote("carol", "reject"), vote("dave")],
            "version": 3,
        }
        requests.find_one.return_value = request
        requests.update_one.return_value = update_result(1)

        outcome = await service.cast_vote("erin", str(request["_id"]), "reject")

        assert outcome["status"] == "rejected"
        assert outcome["transitioned"] is True

    @pytest.mark.asyncio
    async def test_self_vote(self, service, requests, pending_request):
        requests.find_one.return_value = pending_request

        with pytest.raises(PermissionDeniedException) as exc_info:
            await service.cast_vote("alice", str(pending_request["_id"]), "approve")

        assert exc_info.value.code == "SELF_VOTE"
        requests.update_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_duplicate_vote(self, service, requests, pending_request):
        requests.find_one.return_value = {**pending_request, "votes": [vote("bob")], "version": 1}

        with pytest.raises(FailedPreconditionException) as exc_info:
            await service.cast_vote("bob", str(pending_request["_id"]), "reject")

        assert exc_info.value.code == "ALREADY_VOTED"

    @pytest.mark.asyncio
    async def test_vote_on_resolved_request(self, service, requests, pending_request):
        requests.find_one.return_value = {**pending_request, "status": "approved"}

        with pytest.raises(FailedPreconditionException) as exc_info:
            await service.cast_vote("bob", str(pending_request["_id"]), "approve")

        assert exc_info.value.code == "VERIFICATION_NOT_PENDING"

    @pytest.mark.asyncio
    async def test_vote_after_expiry(self, service, requests, pending_request):
        requests.find_one.return_value = {**pending_request, "expiresAt": NOW - timedelta(seconds=1)}

        with pytest.raises(FailedPreconditionException) as exc_info:
            await service.cast_vote("bob", str(pending_request["_id"]), "approve")

        assert exc_info.value.code == "VERIFICATION_EXPIRED"
        requests.update_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_vote_value(self, service, pending_request):
        with pytest.raises(InvalidArgumentException) as exc_info:
            await service.cast_vote("bob", str(pending_request["_id"]), "maybe")
        assert exc_info.value.code == "INVALID_VOTE"

    @pytest.mark.asyncio
    async def test_malformed_id_is_not_found(self, service, requests):
        with pytest.raises(NotFoundException) as exc_info:
            await service.cast_vote("bob", "not-an-id", "approve")

        assert exc_info.value.code == "VERIFICATION_NOT_FOUND"
        requests.find_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_request(self, service, requests):
        requests.find_one.return_value = None

        with pytest.raises(NotFoundException):
            await service.cast_vote("bob", str(ObjectId()), "approve")

    @pytest.mark.asyncio
    async def test_lost_race_rereads_and_keeps_both_votes(self, service, requests, pending_request):
        fresh = {**pending_request, "votes": [], "version": 0}
        after_carol = {**pending_request, "votes": [vote("carol")], "version": 1}
        requests.find_one.side_effect = [fresh, after_carol]
        requests.update_one.side_effect = [update_result(0), update_result(1)]

        outcome = await service.cast_vote("bob", str(pending_request["_id"]), "approve")

        assert [v["voterId"] for v in outcome["verification"]["votes"]] == ["carol", "bob"]
        assert outcome["verification"]["version"] == 2
        second_filter = requests.update_one.call_args_list[1][0][0]
        assert second_filter["version"] == 1

    @pytest.mark.asyncio
    async def test_lost_race_to_duplicate_voter(self, service, requests, pending_request):
        requests.find_one.side_effect = [
            pending_request,
            {**pending_request, "votes": [vote("bob")], "version": 1},
        ]
        requests.update_one.return_value = update_result(0)

        with pytest.raises(FailedPreconditionException) as exc_info:
            await service.cast_vote("bob", str(pending_request["_id"]), "approve")

        assert exc_info.value.code == "ALREADY_VOTED"

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, service, requests, pending_request):
        requests.find_one.return_value = pending_request
        requests.update_one.return_value = update_result(0)

        with pytest.raises(FailedPreconditionException) as exc_info:
            await service.cast_vote("bob", str(pending_request["_id"]), "approve")

        assert exc_info.value.code == "VERIFICATION_CONTENDED"
        assert requests.update_one.await_count == 3

    @pytest.mark.asyncio
    async def test_legacy_request_without_version(self, service, requests, pending_request):
        legacy = {k: v for k, v in pending_request.items() if k != "version"}
        requests.find_one.return_value = legacy
        requests.update_one.return_value = update_result(1)

        outcome = await service.cast_vote("bob", str(legacy["_id"]), "approve")

        filter_ = requests.update_one.call_args[0][0]
        assert filter_["version"] == {"$exists": False}
        assert outcome["verification"]["version"] == 1


# ─────────────────────────────────────────────────────────────────
# Reads and expiry
# ─────────────────────────────────────────────────────────────────


class TestReadsAndExpiry:
    @pytest.mark.asyncio
    async def test_get_verification_malformed_id(self, service, requests):
        assert await service.get_verification("xyz") is None
        requests.find_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_list_votable_excludes_own_and_voted(self, service, requests, pending_request):
        cursor = make_cursor([pending_request])
        requests.find.return_value = cursor

        result = await service.list_votable("bob", room_id="room-1", limit=10)

        assert result == [pending_request]
        query = requests.find.call_args[0][0]
        assert query["status"] == "pending"
        assert query["expiresAt"] == {"$gt": NOW}
        assert query["userId"] == {"$ne": "bob"}
        assert query["votes.voterId"] == {"$ne": "bob"}
        assert query["roomId"] == "room-1"
        cursor.sort.assert_called_once_with("requestedAt", 1)
        cursor.limit.assert_called_once_with(10)

    def test_is_expired(self, service, pending_request):
        assert not service.is_expired(pending_request)
        assert service.is_expired({**pending_request, "expiresAt": NOW})
        assert not service.is_expired({**pending_request, "expiresAt": None})

    def test_naive_expiry_treated_as_utc(self, service, pending_request):
        naive = (NOW - timedelta(hours=1)).replace(tzinfo=None)
        assert service.is_expired({**pending_request, "expiresAt": naive})

    @pytest.mark.asyncio
    async def test_expire_overdue(self, service, requests):
        requests.update_many.return_value = update_result(4)

        count = await service.expire_overdue()

        assert count == 4
        filter_, update = requests.update_many.call_args[0]
        assert filter_ == {"status": "pending", "expiresAt": {"$lte": NOW}}
        assert update["$set"]["status"] == "expired"
        assert update["$inc"] == {"version": 1}
