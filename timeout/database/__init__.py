"""
TimeOut database helpers.

Collection names and id helpers shared by the services.
"""

from timeout.database.collections import (
    USERS,
    ROOMS,
    CHECK_INS,
    VERIFICATION_REQUESTS,
    STUDY_STREAKS,
    LEADERBOARDS,
    ACHIEVEMENTS,
    COMMUNITY_BADGES,
    STUDY_GROUPS,
    AUDIT_LOGS,
    parse_object_id,
    doc_id_filter,
    version_filter,
    ensure_indexes,
)

__all__ = [
    "USERS",
    "ROOMS",
    "CHECK_INS",
    "VERIFICATION_REQUESTS",
    "STUDY_STREAKS",
    "LEADERBOARDS",
    "ACHIEVEMENTS",
    "COMMUNITY_BADGES",
    "STUDY_GROUPS",
    "AUDIT_LOGS",
    "parse_object_id",
    "doc_id_filter",
    "version_filter",
    "ensure_indexes",
]
