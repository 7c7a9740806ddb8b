"""In-app notification service.

Handles:
- Writing notifications for a user (fire-and-forget from other services)
- Clearance step decision notifications for students
- Listing, unread counts, read markers and deletion
"""

import logging
from typing import Optional, List
from uuid import UUID

from sqlalchemy.orm import Session
from sqlalchemy import and_

from campusconnect.core.config import get_settings
from campusconnect.db.models.notification import Notification, NotificationType

logger = logging.getLogger(__name__)

CLEARANCE_LINK = "/clearance"


class NotificationService:
    """
    Service for storing and reading in-app notifications.
    """

    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()

    def send_notification(
        self,
        user_id: str,
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
        link: Optional[str] = None,
    ) -> Optional[Notification]:
        """
        Queue a notification for a user.

        The row is written in the caller's transaction. Returns None when
        notifications are disabled.
        """
        if not self.settings.notifications_enabled:
            logger.debug("Notifications disabled, dropping '%s' for %s", title, user_id)
            return None

        notification = Notification(
            user_id=user_id,
            title=title,
            message=message,
            type=NotificationType(type).value,
            link=link,
        )
        self.db.add(notification)
        self.db.flush()

        logger.info("Notification '%s' queued for %s", title, user_id)
        return notification

    def notify_step_decided(
        self,
        student_id: str,
        step_title: str,
        approved: bool,
        approver_name: str,
        comments: Optional[str] = None,
    ) -> Optional[Notification]:
        """Tell a student one of their clearance steps was approved or rejected."""
        if approved:
            title = "Clearance Step Approved"
            message = f"Your {step_title} clearance has been approved by {approver_name}."
            type = NotificationType.SUCCESS
        else:
            title = "Clearance Step Rejected"
            message = f"Your {step_title} clearance has been rejected by {approver_name}."
            if comments:
                message += f" Reason: {comments}"
            type = NotificationType.ERROR

        return self.send_notification(
            user_id=student_id,
            title=title,
            message=message,
            type=type,
            link=CLEARANCE_LINK,
        )

    def get_notifications(self, user_id: str) -> List[Notification]:
        """Notifications for a user, newest first."""
        return (
            self.db.query(Notification)
            .filter(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
            .all()
        )

    def get_unread_count(self, user_id: str) -> int:
        return self.db.query(Notification).filter(
            and_(
                Notification.user_id == user_id,
                Notification.is_read == False,  # noqa: E712
            )
        ).count()

    def mark_as_read(self, user_id: str, notification_id: UUID) -> bool:
        """Mark one notification read. False if it doesn't exist or isn't the user's."""
        notification = self._get_owned(user_id, notification_id)
        if not notification:
            return False

        notification.is_read = True
        self.db.flush()
        return True

    def mark_all_as_read(self, user_id: str) -> bool:
        """Mark every unread notification read. True if anything changed."""
        changed = self.db.query(Notification).filter(
            and_(
                Notification.user_id == user_id,
                Notification.is_read == False,  # noqa: E712
            )
        ).update({Notification.is_read: True}, synchronize_session="fetch")
        self.db.flush()
        return changed > 0

    def delete_notification(self, user_id: str, notification_id: UUID) -> bool:
        notification = self._get_owned(user_id, notification_id)
        if not notification:
            return False

        self.db.delete(notification)
        self.db.flush()
        return True

    def _get_owned(self, user_id: str, notification_id: UUID) -> Optional[Notification]:
        return self.db.query(Notification).filter(
            and_(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
        ).first()
