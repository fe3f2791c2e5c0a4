"""
FastAPI dependencies for TimeOut.

Services are built once by the application lifespan into a
ServiceContainer stored on app.state; route handlers receive them through
Depends. Nothing here is a module-level singleton.
"""

import logging
from dataclasses import dataclass
from typing import Annotated, Optional

from fastapi import Depends, Request
from motor.motor_asyncio import AsyncIOMotorDatabase

from common.auth import AuthProvider, FirebaseAuth, JWTAuth, create_auth_dependency
from timeout.config import Settings
from timeout.services.achievements.achievement_service import AchievementService
from timeout.services.audit.audit_logger import AuditLogger
from timeout.services.checkin.checkin_service import CheckInService
from timeout.services.groups.group_service import StudyGroupService
from timeout.services.leaderboard.leaderboard_service import LeaderboardService
from timeout.services.rewards.points_service import PointsService, RewardPolicy
from timeout.services.rewards.streak_service import StreakService
from timeout.services.verification.verification_service import VerificationService

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Every service the routers need, wired to one database."""

    settings: Settings
    auth_provider: AuthProvider
    reward_policy: RewardPolicy
    checkin_service: CheckInService
    verification_service: VerificationService
    points_service: PointsService
    streak_service: StreakService
    leaderboard_service: LeaderboardService
    achievement_service: AchievementService
    group_service: StudyGroupService
    audit_logger: AuditLogger

    async def shutdown(self) -> None:
        """Release resources held by services (flushes the audit buffer)."""
        await self.audit_logger.shutdown()


# ─────────────────────────────────────────────────────────────────
# Construction
# ─────────────────────────────────────────────────────────────────

def build_auth_provider(settings: Settings) -> AuthProvider:
    """Create the configured auth provider."""
    if settings.AUTH_PROVIDER == "jwt":
        logger.info("Using JWT authentication")
        return JWTAuth(
            secret=settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
        )

    logger.info("Using Firebase authentication")
    return FirebaseAuth(
        credentials_path=settings.FIREBASE_CREDENTIALS_PATH,
        project_id=settings.FIREBASE_PROJECT_ID,
    )


def build_services(
    db: AsyncIOMotorDatabase,
    settings: Settings,
    auth_provider: Optional[AuthProvider] = None,
) -> ServiceContainer:
    """
    Initialize all services with a database connection.

    Called once at application startup.

    Args:
        db: MongoDB database connection
        settings: Application settings
        auth_provider: Override the configured provider (tests)
    """
    checkin_service = CheckInService(db=db)

    container = ServiceContainer(
        settings=settings,
        auth_provider=auth_provider or build_auth_provider(settings),
        reward_policy=RewardPolicy(
            checkin_points=settings.CHECKIN_POINTS,
            vote_points=settings.VOTE_POINTS,
            approved_points=settings.VERIFICATION_APPROVED_POINTS,
        ),
        checkin_service=checkin_service,
        verification_service=VerificationService(
            db=db,
            checkin_service=checkin_service,
            required_votes=settings.VERIFICATION_REQUIRED_VOTES,
            ttl_hours=settings.VERIFICATION_TTL_HOURS,
            max_retries=settings.VOTE_MAX_RETRIES,
        ),
        points_service=PointsService(db=db),
        streak_service=StreakService(
            db=db,
            timezone_name=settings.STREAK_TIMEZONE,
            weekly_goal=settings.DEFAULT_WEEKLY_GOAL,
        ),
        leaderboard_service=LeaderboardService(
            db=db,
            ttl_minutes=settings.LEADERBOARD_TTL_MINUTES,
            max_entries=settings.LEADERBOARD_MAX_ENTRIES,
        ),
        achievement_service=AchievementService(db=db),
        group_service=StudyGroupService(db=db),
        audit_logger=AuditLogger(db=db, buffer_size=settings.AUDIT_BUFFER_SIZE),
    )

    logger.info("All services initialized")
    return container


# ─────────────────────────────────────────────────────────────────
# Getters
# ─────────────────────────────────────────────────────────────────

def get_services(request: Request) -> ServiceContainer:
    """Get the service container built at startup."""
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise RuntimeError("Services not initialized. Call build_services() at startup.")
    return services


Services = Annotated[ServiceContainer, Depends(get_services)]


def get_checkin_service(services: Services) -> CheckInService:
    return services.checkin_service


def get_verification_service(services: Services) -> VerificationService:
    return services.verification_service


def get_points_service(services: Services) -> PointsService:
    return services.points_service


def get_streak_service(services: Services) -> StreakService:
    return services.streak_service


def get_leaderboard_service(services: Services) -> LeaderboardService:
    return services.leaderboard_service


def get_achievement_service(services: Services) -> AchievementService:
    return services.achievement_service


def get_group_service(services: Services) -> StudyGroupService:
    return services.group_service


def get_audit_logger(services: Services) -> AuditLogger:
    return services.audit_logger


def get_reward_policy(services: Services) -> RewardPolicy:
    return services.reward_policy


def get_settings(services: Services) -> Settings:
    return services.settings


# Resolves the caller's user id from the bearer token
require_auth = create_auth_dependency(lambda request: get_services(request).auth_provider)
