"""Database models for CampusConnect."""

from campusconnect.db.models.clearance import ClearanceRequest, ClearanceStep, ClearanceHistory
from campusconnect.db.models.notification import Notification, NotificationType

__all__ = [
    "ClearanceRequest",
    "ClearanceStep",
    "ClearanceHistory",
    "Notification",
    "NotificationType",
]
