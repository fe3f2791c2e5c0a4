"""
Study check-ins.
"""

from timeout.services.checkin.checkin_type import CheckInType
from timeout.services.checkin.checkin_service import CheckInService

__all__ = ["CheckInType", "CheckInService"]
