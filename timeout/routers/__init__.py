"""
TimeOut API Routers.

All routers are imported here for easy access.
"""

from timeout.routers.checkins import router as checkins_router
from timeout.routers.verifications import router as verifications_router
from timeout.routers.community import router as community_router

__all__ = [
    "checkins_router",
    "verifications_router",
    "community_router",
]
