"""In-app inbox: listing a user's notifications and marking them read."""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from requisitions.domain import requisitions
from requisitions.notification.notification import Notification


@requisitions.command(part_of="Notification")
class MarkNotificationRead:
    notification_id = Identifier(required=True)
    user_id = Identifier(required=True)


@requisitions.command_handler(part_of=Notification)
class InboxHandler:
    @handle(MarkNotificationRead)
    def mark_read(self, command):
        repo = current_domain.repository_for(Notification)
        notification = repo.get(command.notification_id)
        notification.mark_read(command.user_id)
        repo.add(notification)


def list_notifications(user_id, unread_only: bool = False, order_id=None) -> list[Notification]:
    """A user's notifications, newest first."""
    filters = {"user_id": str(user_id)}
    if unread_only:
        filters["is_read"] = False
    if order_id:
        filters["order_id"] = str(order_id)

    notifications = (
        current_domain.repository_for(Notification)._dao.query.filter(**filters).limit(None).all().items
    )
    return sorted(notifications, key=lambda n: (n.created_at, str(n.id)), reverse=True)
