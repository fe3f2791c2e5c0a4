"""
Document -> API dict conversion.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from bson import ObjectId


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def to_json_safe(value: Any) -> Any:
    """Recursively convert ObjectIds and datetimes in a document."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {
            ("id" if key == "_id" else key): to_json_safe(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [to_json_safe(item) for item in value]
    return value


def format_checkin(checkin: Dict[str, Any]) -> Dict[str, Any]:
    """Format check-in document for API response."""
    return {
        "id": str(checkin["_id"]),
        "userId": checkin["userId"],
        "roomId": checkin["roomId"],
        "timestamp": _iso(checkin.get("timestamp")),
        "checkInType": checkin["checkInType"],
        "photoUrl": checkin.get("photoUrl"),
        "isVerified": checkin.get("isVerified", False),
        "verifiedBy": checkin.get("verifiedBy"),
        "studyProgress": checkin.get("studyProgress"),
        "location": checkin.get("location"),
    }


def format_vote(vote: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "voterId": vote["voterId"],
        "vote": vote["vote"],
        "reason": vote.get("reason"),
        "timestamp": _iso(vote.get("timestamp")),
    }


def format_verification(request: Dict[str, Any]) -> Dict[str, Any]:
    """Format verification request document for API response."""
    return {
        "id": str(request["_id"]),
        "checkInId": request["checkInId"],
        "userId": request["userId"],
        "roomId": request.get("roomId"),
        "photoUrl": request["photoUrl"],
        "requestedAt": _iso(request.get("requestedAt")),
        "votes": [format_vote(v) for v in request.get("votes", [])],
        "status": request["status"],
        "requiredVotes": request["requiredVotes"],
        "expiresAt": _iso(request.get("expiresAt")),
    }


def format_leaderboard(snapshot: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": snapshot["_id"],
        "type": snapshot["type"],
        "category": snapshot["category"],
        "timeframe": snapshot["timeframe"],
        "entries": snapshot.get("entries", []),
        "lastUpdated": _iso(snapshot.get("lastUpdated")),
    }
