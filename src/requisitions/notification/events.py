"""Notification domain events."""

from protean.fields import Boolean, DateTime, Identifier, String

from requisitions.domain import requisitions


@requisitions.event(part_of="Notification")
class NotificationCreated:
    __version__ = 1

    notification_id = Identifier(required=True)
    user_id = Identifier(required=True)
    order_id = Identifier()
    notification_type = String(required=True, max_length=50)
    recipient_role = String(max_length=20)
    created_at = DateTime(required=True)


@requisitions.event(part_of="Notification")
class NotificationDelivered:
    """Outcome of the external channel attempts for one notification."""

    __version__ = 1

    notification_id = Identifier(required=True)
    user_id = Identifier(required=True)
    is_email = Boolean(required=True)
    is_messaging = Boolean(required=True)
    email_error = String(max_length=500)
    messaging_error = String(max_length=500)
    delivered_at = DateTime(required=True)


@requisitions.event(part_of="Notification")
class NotificationRead:
    __version__ = 1

    notification_id = Identifier(required=True)
    user_id = Identifier(required=True)
    read_at = DateTime(required=True)
