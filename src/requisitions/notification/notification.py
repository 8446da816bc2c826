"""Notification aggregate: one in-app record per recipient per transition.

The in-app record is always written. External delivery by email and
messaging is attempted afterwards and its outcome recorded on the same
record; a failed channel never removes or blocks the in-app copy.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import Boolean, DateTime, Identifier, String, Text

from requisitions.domain import requisitions
from requisitions.notification.events import (
    NotificationCreated,
    NotificationDelivered,
    NotificationRead,
)
from requisitions.order.errors import ForbiddenTransitionError


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class RecipientRole(Enum):
    REQUESTER = "REQUESTER"
    MANAGER = "MANAGER"
    PACKAGER = "PACKAGER"
    DISPATCHER = "DISPATCHER"


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@requisitions.aggregate
class Notification:
    user_id: Identifier(required=True)
    order_id: Identifier()
    recipient_role: String(choices=RecipientRole)

    # Tag matching the transition that produced it, e.g. "approve"
    notification_type: String(required=True, max_length=50)
    title: String(required=True, max_length=255)
    message: Text(required=True)

    is_read: Boolean(default=False)
    read_at: DateTime()

    # External delivery outcome
    is_email: Boolean(default=False)
    is_messaging: Boolean(default=False)
    email_error: String(max_length=500)
    messaging_error: String(max_length=500)

    created_at: DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, user_id, notification_type, title, message, order_id=None, recipient_role=None):
        now = datetime.now(UTC)
        notification = cls(
            user_id=user_id,
            order_id=order_id,
            recipient_role=recipient_role,
            notification_type=notification_type,
            title=title,
            message=message,
            is_read=False,
            created_at=now,
        )

        notification.raise_(
            NotificationCreated(
                notification_id=str(notification.id),
                user_id=str(user_id),
                order_id=str(order_id) if order_id else None,
                notification_type=notification_type,
                recipient_role=recipient_role,
                created_at=now,
            )
        )
        return notification

    # -------------------------------------------------------------------
    # Delivery and reading
    # -------------------------------------------------------------------
    def record_delivery(self, email_result=None, messaging_result=None):
        """Store channel results. ``None`` means the channel was not attempted."""
        if email_result is not None:
            self.is_email = bool(email_result.get("success"))
            self.email_error = None if self.is_email else _truncate(email_result.get("error"))
        if messaging_result is not None:
            self.is_messaging = bool(messaging_result.get("success"))
            self.messaging_error = None if self.is_messaging else _truncate(messaging_result.get("error"))

        self.raise_(
            NotificationDelivered(
                notification_id=str(self.id),
                user_id=str(self.user_id),
                is_email=self.is_email,
                is_messaging=self.is_messaging,
                email_error=self.email_error,
                messaging_error=self.messaging_error,
                delivered_at=datetime.now(UTC),
            )
        )

    def mark_read(self, user_id):
        """Only the recipient may read a notification; re-reading is a no-op."""
        if str(user_id) != str(self.user_id):
            raise ForbiddenTransitionError("Notifications can only be marked read by their recipient")
        if self.is_read:
            return

        now = datetime.now(UTC)
        self.is_read = True
        self.read_at = now

        self.raise_(NotificationRead(notification_id=str(self.id), user_id=str(self.user_id), read_at=now))


def _truncate(error) -> str:
    return (str(error or "").strip() or "Delivery failed")[:500]
