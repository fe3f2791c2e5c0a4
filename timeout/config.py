"""
TimeOut application settings.

Extends the base settings with community policy values.
"""

from common.config import BaseAppSettings


class Settings(BaseAppSettings):
    """TimeOut-specific settings."""

    # ==========================================================================
    # Photo Verification
    # ==========================================================================
    VERIFICATION_REQUIRED_VOTES: int = 3
    VERIFICATION_TTL_HOURS: int = 24
    VOTE_MAX_RETRIES: int = 5

    # ==========================================================================
    # Points
    # ==========================================================================
    CHECKIN_POINTS: int = 10
    VOTE_POINTS: int = 5
    VERIFICATION_APPROVED_POINTS: int = 25

    # ==========================================================================
    # Streaks
    # ==========================================================================
    # Calendar days are counted in this zone (pytz name)
    STREAK_TIMEZONE: str = "UTC"
    DEFAULT_WEEKLY_GOAL: int = 5

    # ==========================================================================
    # Leaderboards
    # ==========================================================================
    LEADERBOARD_TTL_MINUTES: int = 60
    LEADERBOARD_MAX_ENTRIES: int = 100
    LEADERBOARD_DEFAULT_LIMIT: int = 50

    # ==========================================================================
    # Audit
    # ==========================================================================
    AUDIT_BUFFER_SIZE: int = 50


# Global settings instance
settings = Settings()
