"""Services for CampusConnect."""

from campusconnect.services.notifications import NotificationService

__all__ = [
    "NotificationService",
]
