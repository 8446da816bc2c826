import pytest

from requisitions.notification.events import NotificationCreated, NotificationDelivered, NotificationRead
from requisitions.notification.notification import Notification, RecipientRole
from requisitions.order.errors import ForbiddenTransitionError


def _notification(**overrides):
    defaults = {
        "user_id": "requester-1",
        "notification_type": "approve",
        "title": "Order approved",
        "message": "Your stock request OR123456 was approved.",
        "order_id": "order-1",
        "recipient_role": RecipientRole.REQUESTER.value,
    }
    defaults.update(overrides)
    return Notification.create(**defaults)


class TestNotificationCreation:
    def test_created_unread(self):
        n = _notification()

        assert n.is_read is False
        assert n.read_at is None
        assert n.is_email is False
        assert n.is_messaging is False
        assert n.created_at is not None
        assert isinstance(n._events[0], NotificationCreated)


class TestDeliveryOutcome:
    def test_successful_channels(self):
        n = _notification()
        n.record_delivery(
            {"success": True, "message_id": "email-1", "error": None},
            {"success": True, "message_id": "msg-1", "error": None},
        )

        assert n.is_email is True
        assert n.is_messaging is True
        assert n.email_error is None
        assert isinstance(n._events[-1], NotificationDelivered)

    def test_failures_are_recorded(self):
        n = _notification()
        n.record_delivery(
            {"success": False, "message_id": None, "error": "SMTP timeout"},
            {"success": False, "message_id": None, "error": None},
        )

        assert n.is_email is False
        assert n.email_error == "SMTP timeout"
        assert n.messaging_error == "Delivery failed"

    def test_unattempted_channel_left_alone(self):
        n = _notification()
        n.record_delivery(email_result={"success": True, "message_id": "email-1", "error": None})

        assert n.is_email is True
        assert n.is_messaging is False
        assert n.messaging_error is None

    def test_long_errors_are_truncated(self):
        n = _notification()
        n.record_delivery(email_result={"success": False, "error": "x" * 2000})
        assert len(n.email_error) == 500


class TestMarkRead:
    def test_owner_marks_read(self):
        n = _notification()
        n.mark_read("requester-1")

        assert n.is_read is True
        assert n.read_at is not None
        assert isinstance(n._events[-1], NotificationRead)

    def test_second_read_is_a_no_op(self):
        n = _notification()
        n.mark_read("requester-1")
        first_read_at = n.read_at
        events = len(n._events)

        n.mark_read("requester-1")

        assert n.read_at == first_read_at
        assert len(n._events) == events

    def test_only_owner(self):
        n = _notification()
        with pytest.raises(ForbiddenTransitionError):
            n.mark_read("someone-else")
        assert n.is_read is False
