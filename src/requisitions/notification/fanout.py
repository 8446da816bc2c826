"""Notification fan-out: order events to in-app, email and messaging.

Runs after the order change is committed. For each committed edge the
routing table names the recipient roles; every resolved recipient gets one
in-app Notification and then an email and a text message where their
directory entry allows. A failing channel is recorded on the notification
and logged; it never affects the order, other channels or other recipients.
"""

import json

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from requisitions.channel import get_channels
from requisitions.domain import requisitions
from requisitions.notification.notification import Notification
from requisitions.notification.recipients import Recipient, resolve_recipients
from requisitions.order.events import (
    ItemIssueAnswered,
    ItemIssueReported,
    OrderPlaced,
    OrderTransitioned,
)
from requisitions.order.order import Order
from requisitions.templates import get_template, recipients_for
from requisitions.templates.renderer import render

logger = structlog.get_logger(__name__)


def _order_context(order: Order, **extra) -> dict:
    tracking = order.tracking
    context = {
        "order_id": str(order.id),
        "order_number": order.order_number,
        "status": order.status,
        "substage": order.substage,
        "actor_role": None,
        "total_items": order.total_items,
        "total_value": order.total_value,
        "remarks": order.arranging_remarks if order.arranging_remarks else order.remarks,
        "manager_reply": order.manager_reply,
        "tracking_id": tracking.tracking_id if tracking else None,
        "tracking_link": tracking.tracking_link if tracking else None,
        "expected_delivery_at": order.expected_delivery_at.isoformat() if order.expected_delivery_at else None,
        "item_count": 0,
    }
    context.update(extra)
    return context


def _attempt(channel: str, send, recipient: Recipient, **kwargs) -> dict:
    """Call a channel, converting anything it raises into a failed result."""
    try:
        result = send(**kwargs)
    except Exception as exc:  # Channel failures never propagate
        result = {"success": False, "message_id": None, "error": str(exc) or exc.__class__.__name__}

    if not result.get("success"):
        logger.warning(
            "Notification channel failed",
            channel=channel,
            user_id=recipient.user_id,
            error=result.get("error"),
        )
    return result


def _deliver(recipient: Recipient, order: Order, edge: str, context: dict, channels, repo) -> str:
    _, record = get_template(edge, recipient.role)
    rendered = render(record, context)

    notification = Notification.create(
        user_id=recipient.user_id,
        notification_type=edge,
        title=rendered["title"],
        message=rendered["message"],
        order_id=str(order.id),
        recipient_role=recipient.role.value,
    )

    email_result = None
    if recipient.email:
        email_result = _attempt(
            "email",
            channels.email.send,
            recipient,
            to=recipient.email,
            subject=rendered["subject"],
            html=rendered["html"],
            text=rendered["text"],
        )
    messaging_result = None
    if recipient.phone:
        messaging_result = _attempt(
            "messaging",
            channels.messaging.send,
            recipient,
            to=recipient.phone,
            text=rendered["text"],
        )
    if email_result is not None or messaging_result is not None:
        notification.record_delivery(email_result, messaging_result)

    repo.add(notification)
    return str(notification.id)


def notify(order: Order, edge: str, **extra) -> list[str]:
    """Fan a committed edge out to every recipient. Returns notification ids.

    Nothing raised here reaches the caller: the order change is already
    committed, so lookup and per-recipient failures are logged and skipped.
    """
    roles = recipients_for(edge)
    if not roles:
        return []

    try:
        recipients = resolve_recipients(order, roles)
    except Exception:
        logger.exception("Notification recipients could not be resolved", order_id=str(order.id), edge=edge)
        return []

    channels = get_channels()
    repo = current_domain.repository_for(Notification)
    context = _order_context(order, **extra)
    notification_ids = []

    for recipient in recipients:
        try:
            notification_ids.append(_deliver(recipient, order, edge, context, channels, repo))
        except Exception:
            logger.exception(
                "Notification could not be delivered",
                order_id=str(order.id),
                edge=edge,
                user_id=recipient.user_id,
            )

    logger.info(
        "Notifications fanned out",
        order_id=str(order.id),
        edge=edge,
        recipients=len(notification_ids),
    )
    return notification_ids


@requisitions.event_handler(part_of=Notification, stream_category="requisitions::order")
class OrderEventsHandler:
    """Reacts to Order events to notify the people involved."""

    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        order = current_domain.repository_for(Order).get(event.order_id)
        notify(order, "placed")

    @handle(OrderTransitioned)
    def on_order_transitioned(self, event: OrderTransitioned) -> None:
        order = current_domain.repository_for(Order).get(event.order_id)
        notify(order, event.transition, actor_role=event.actor_role)

    @handle(ItemIssueReported)
    def on_item_issue_reported(self, event: ItemIssueReported) -> None:
        order = current_domain.repository_for(Order).get(event.order_id)
        notify(order, "item_issue_reported", item_count=len(json.loads(event.item_ids)))

    @handle(ItemIssueAnswered)
    def on_item_issue_answered(self, event: ItemIssueAnswered) -> None:
        order = current_domain.repository_for(Order).get(event.order_id)
        notify(order, "item_issue_answered", actor_role=event.actor_role)
