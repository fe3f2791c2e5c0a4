"""Tests for id helpers and index setup."""

import pytest
from bson import ObjectId

from timeout.database import doc_id_filter, ensure_indexes, parse_object_id, version_filter


class TestIdHelpers:
    def test_parse_object_id(self):
        oid = ObjectId()
        assert parse_object_id(str(oid)) == oid
        assert parse_object_id(oid) is oid
        assert parse_object_id("firebase-uid-123") is None
        assert parse_object_id(None) is None

    def test_doc_id_filter_matches_both_forms(self):
        oid = ObjectId()
        assert doc_id_filter(str(oid)) == {"_id": {"$in": [oid, str(oid)]}}
        assert doc_id_filter("room-1") == {"_id": "room-1"}

    def test_version_filter(self):
        assert version_filter({"version": 4}) == {"version": 4}
        assert version_filter({}) == {"version": {"$exists": False}}


@pytest.mark.asyncio
async def test_one_pending_request_per_checkin_index(mock_db):
    await ensure_indexes(mock_db)

    calls = mock_db["verificationRequests"].create_index.call_args_list
    unique = [c for c in calls if c.kwargs.get("name") == "one_pending_per_checkin"]
    assert len(unique) == 1
    assert unique[0].kwargs["unique"] is True
    assert unique[0].kwargs["partialFilterExpression"] == {"status": "pending"}
