"""
Buffered audit trail.

Built once at startup and handed to the pipelines; the application
lifespan calls shutdown() so buffered events are written before the
database connection closes.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase

from timeout.database import AUDIT_LOGS

logger = logging.getLogger(__name__)


class AuditLogger:
    """
    Collects audit events in memory and writes them with insert_many.

    Writing is best-effort: a failed flush is logged and the batch dropped,
    never raised into the request.
    """

    def __init__(self, db: AsyncIOMotorDatabase, buffer_size: int = 50):
        """
        Initialize AuditLogger.

        Args:
            db: MongoDB database connection
            buffer_size: Buffered events that trigger an automatic flush
        """
        self._collection = db[AUDIT_LOGS]
        self._buffer_size = max(1, buffer_size)
        self._buffer: List[Dict[str, Any]] = []
        self._lock = asyncio.Lock()
        self._closed = False

    @property
    def pending(self) -> int:
        return len(self._buffer)

    @property
    def is_closed(self) -> bool:
        return self._closed

    async def record(
        self,
        action: str,
        user_id: Optional[str],
        resource_type: str,
        resource_id: Optional[str] = None,
        outcome: str = "success",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Queue one audit event.

        Args:
            action: What happened, e.g. "verification.vote"
            user_id: Acting user
            resource_type: e.g. "checkIn", "verificationRequest"
            resource_id: Affected document id
            outcome: "success" or "failure"
            details: Extra structured data
        """
        if self._closed:
            logger.warning(f"Audit event {action} dropped: audit logger is shut down")
            return

        self._buffer.append({
            "action": action,
            "userId": user_id,
            "resourceType": resource_type,
            "resourceId": resource_id,
            "outcome": outcome,
            "details": details or {},
            "timestamp": datetime.now(timezone.utc),
        })

        if len(self._buffer) >= self._buffer_size:
            await self.flush()

    async def flush(self) -> int:
        """
        Write buffered events.

        Returns:
            Number of events written (0 on failure)
        """
        async with self._lock:
            if not self._buffer:
                return 0
            batch, self._buffer = self._buffer, []

            try:
                await self._collection.insert_many(batch, ordered=False)
            except Exception as e:
                logger.warning(f"Failed to write {len(batch)} audit events: {e}")
                return 0

            logger.debug(f"Flushed {len(batch)} audit events")
            return len(batch)

    async def shutdown(self) -> None:
        """Flush what's left and stop accepting events."""
        if self._closed:
            return
        self._closed = True
        written = await self.flush()
        logger.info(f"Audit logger shut down ({written} events flushed)")
