"""Tests for the in-app notification service."""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest

from campusconnect.core.config import get_settings
from campusconnect.db.models import Notification, NotificationType
from campusconnect.services.notifications import NotificationService
from tests.factories import create_notification


@pytest.fixture
def service(db_session):
    return NotificationService(db_session)


class TestSendNotification:
    """Tests for writing notifications."""

    def test_send(self, service, db_session):
        notification = service.send_notification(
            "S1", "Welcome", "Your account is ready", type=NotificationType.SUCCESS, link="/profile",
        )

        assert notification.id is not None
        stored = db_session.get(Notification, notification.id)
        assert stored.type == "success"
        assert stored.link == "/profile"
        assert stored.is_read is False

    def test_accepts_plain_string_type(self, service):
        notification = service.send_notification("S1", "Heads up", "Fees due", type="warning")
        assert notification.type == "warning"

    def test_disabled_drops_notification(self, service, db_session, monkeypatch):
        monkeypatch.setattr(get_settings(), "notifications_enabled", False)

        assert service.send_notification("S1", "Ignored", "Nobody sees this") is None
        assert db_session.query(Notification).count() == 0

    def test_step_approved_message(self, service):
        notification = service.notify_step_decided("S1", "Finance", approved=True, approver_name="Admin One")

        assert notification.title == "Clearance Step Approved"
        assert notification.message == "Your Finance clearance has been approved by Admin One."
        assert notification.type == "success"
        assert notification.link == "/clearance"

    def test_step_rejected_message(self, service):
        notification = service.notify_step_decided(
            "S1", "Library", approved=False, approver_name="Dr. Rao", comments="Fine unpaid",
        )

        assert notification.title == "Clearance Step Rejected"
        assert notification.message.endswith("Reason: Fine unpaid")
        assert notification.type == "error"


class TestReadingNotifications:
    """Tests for listing and read markers."""

    def test_newest_first_and_scoped_to_user(self, service, db_session):
        now = datetime.utcnow()
        old = create_notification(db_session, user_id="S1", created_at=now - timedelta(hours=2))
        new = create_notification(db_session, user_id="S1", created_at=now)
        create_notification(db_session, user_id="S2")

        assert [n.id for n in service.get_notifications("S1")] == [new.id, old.id]

    def test_unread_count(self, service, db_session):
        create_notification(db_session, user_id="S1")
        create_notification(db_session, user_id="S1", is_read=True)
        create_notification(db_session, user_id="S2")

        assert service.get_unread_count("S1") == 1

    def test_mark_as_read(self, service, db_session):
        notification = create_notification(db_session, user_id="S1")

        assert service.mark_as_read("S1", notification.id)
        assert service.get_unread_count("S1") == 0

    def test_mark_as_read_other_users_notification(self, service, db_session):
        notification = create_notification(db_session, user_id="S2")

        assert not service.mark_as_read("S1", notification.id)
        assert service.get_unread_count("S2") == 1

    def test_mark_as_read_unknown(self, service):
        assert not service.mark_as_read("S1", uuid4())

    def test_mark_all_as_read(self, service, db_session):
        create_notification(db_session, user_id="S1")
        create_notification(db_session, user_id="S1")
        create_notification(db_session, user_id="S2")

        assert service.mark_all_as_read("S1")
        assert service.get_unread_count("S1") == 0
        assert service.get_unread_count("S2") == 1

    def test_mark_all_as_read_nothing_to_change(self, service, db_session):
        create_notification(db_session, user_id="S1", is_read=True)

        assert not service.mark_all_as_read("S1")

    def test_delete(self, service, db_session):
        notification = create_notification(db_session, user_id="S1")

        assert service.delete_notification("S1", notification.id)
        assert service.get_notifications("S1") == []

    def test_delete_other_users_notification(self, service, db_session):
        notification = create_notification(db_session, user_id="S2")

        assert not service.delete_notification("S1", notification.id)
        assert len(service.get_notifications("S2")) == 1
