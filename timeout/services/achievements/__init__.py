from timeout.services.achievements.achievement_service import AchievementService

__all__ = ["AchievementService"]
