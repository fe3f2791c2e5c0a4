"""Shared test fixtures for TimeOut backend tests."""

import pytest
from collections import defaultdict
from datetime import datetime, timezone, timedelta
from unittest.mock import AsyncMock, MagicMock
from bson import ObjectId


# Wednesday of ISO week 42
NOW = datetime(2026, 10, 14, 12, 0, tzinfo=timezone.utc)


def make_collection():
    collection = AsyncMock()
    # Motor's find() returns a cursor synchronously (not a coroutine),
    # so use MagicMock for it. Async methods like find_one, insert_one,
    # update_one etc. stay as AsyncMock.
    collection.find = MagicMock()
    return collection


def make_cursor(documents):
    """Cursor mock supporting .sort().limit().to_list()."""
    cursor = MagicMock()
    cursor.sort = MagicMock(return_value=cursor)
    cursor.limit = MagicMock(return_value=cursor)
    cursor.to_list = AsyncMock(return_value=list(documents))
    return cursor


def update_result(modified_count=1):
    return MagicMock(modified_count=modified_count, matched_count=modified_count)


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def mock_collection():
    return make_collection()


@pytest.fixture
def mock_db():
    """Database mock handing out one collection mock per name."""
    collections = defaultdict(make_collection)
    db = MagicMock()
    db.__getitem__ = MagicMock(side_effect=lambda name: collections[name])
    db.collections = collections
    return db


@pytest.fixture
def sample_checkin():
    return {
        "_id": ObjectId(),
        "userId": "alice",
        "roomId": "room-1",
        "timestamp": NOW - timedelta(minutes=5),
        "checkInType": "photo",
        "isVerified": False,
        "createdAt": NOW - timedelta(minutes=5),
        "updatedAt": NOW - timedelta(minutes=5),
    }


@pytest.fixture
def pending_request(sample_checkin):
    """A fresh pending verification request owned by alice."""
    return {
        "_id": ObjectId(),
        "checkInId": str(sample_checkin["_id"]),
        "userId": "alice",
        "roomId": "room-1",
        "photoUrl": "https://cdn.example.com/desk.jpg",
        "requestedAt": NOW - timedelta(hours=1),
        "votes": [],
        "status": "pending",
        "requiredVotes": 3,
        "expiresAt": NOW + timedelta(hours=23),
        "version": 0,
    }


def vote(voter_id, choice="approve"):
    return {"voterId": voter_id, "vote": choice, "timestamp": NOW - timedelta(minutes=30)}
