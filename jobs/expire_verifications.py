"""
Verification expiry background job.

Moves pending photo verification requests that have passed their expiry
time to `expired`, so they stop collecting votes and the check-in can be
submitted again. This job should be run every few minutes via CRON.

Usage:
    Run via CRON:
        */10 * * * * cd /path/to/project && python -m jobs.expire_verifications

    Or run directly:
        python -m jobs.expire_verifications
"""

import asyncio
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from motor.motor_asyncio import AsyncIOMotorDatabase

from common.database import MongoDB
from timeout.config import Settings
from timeout.services.audit.audit_logger import AuditLogger
from timeout.services.checkin.checkin_service import CheckInService
from timeout.services.verification.verification_service import VerificationService

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


class ExpireVerificationsJob:
    """
    Expires overdue verification requests.

    Actions performed:
    1. Sets status `expired` on every pending request whose expiresAt has passed
    2. Writes one audit entry with the number of requests expired
    """

    def __init__(self, db: AsyncIOMotorDatabase, settings: Settings):
        self._verification_service = VerificationService(
            db=db,
            checkin_service=CheckInService(db=db),
            required_votes=settings.VERIFICATION_REQUIRED_VOTES,
            ttl_hours=settings.VERIFICATION_TTL_HOURS,
            max_retries=settings.VOTE_MAX_RETRIES,
        )
        self._audit_logger = AuditLogger(db=db, buffer_size=settings.AUDIT_BUFFER_SIZE)

    async def run(self) -> Dict[str, Any]:
        """
        Execute the expiry sweep.

        Returns:
            Dict with job results including counts and any errors
        """
        logger.info("Starting verification expiry job")
        start_time = datetime.now(timezone.utc)

        results = {
            "startTime": start_time.isoformat(),
            "requestsExpired": 0,
            "errors": [],
        }

        try:
            results["requestsExpired"] = await self._verification_service.expire_overdue()
        except Exception as e:
            logger.error(f"Expiry sweep failed: {e}", exc_info=True)
            results["errors"].append(str(e))

        await self._audit_logger.record(
            action="verification.expire_sweep",
            user_id=None,
            resource_type="verificationRequest",
            outcome="failure" if results["errors"] else "success",
            details={"performedBy": "SYSTEM_JOB", "requestsExpired": results["requestsExpired"]},
        )
        await self._audit_logger.shutdown()

        end_time = datetime.now(timezone.utc)
        results["endTime"] = end_time.isoformat()
        results["durationSeconds"] = (end_time - start_time).total_seconds()

        logger.info(
            f"Verification expiry job completed: "
            f"{results['requestsExpired']} requests expired, "
            f"{len(results['errors'])} errors"
        )

        return results


async def main():
    """Main entry point for the verification expiry job."""
    settings = Settings()
    mongodb = MongoDB()

    await mongodb.connect(
        uri=settings.MONGODB_URI,
        database_name=settings.MONGODB_DATABASE,
    )

    try:
        job = ExpireVerificationsJob(db=mongodb.db, settings=settings)
        results = await job.run()

        print("\n=== Verification Expiry Job Results ===")
        print(f"Start Time: {results['startTime']}")
        print(f"End Time: {results['endTime']}")
        print(f"Duration: {results['durationSeconds']:.2f} seconds")
        print(f"Requests Expired: {results['requestsExpired']}")

        if results["errors"]:
            print(f"\nErrors ({len(results['errors'])}):")
            for error in results["errors"]:
                print(f"  - {error}")

        exit_code = 1 if results["errors"] else 0
    finally:
        await mongodb.disconnect()

    sys.exit(exit_code)


if __name__ == "__main__":
    asyncio.run(main())
