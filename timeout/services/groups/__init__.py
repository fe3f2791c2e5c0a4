from timeout.services.groups.group_service import StudyGroupService

__all__ = ["StudyGroupService"]
