"""Posting to the issue ledger: command, handler and shared append helper."""

import structlog
from protean import handle
from protean.exceptions import InvalidStateError, ValidationError
from protean.fields import Identifier, Integer, List, String, Text
from protean.utils.globals import current_domain

from requisitions.domain import requisitions
from requisitions.issue.message import IssueMessage, MessagePhase, SenderRole
from requisitions.order.lifecycle import OrderStatus, Role, parse_role
from requisitions.order.order import MESSAGING_STATUSES, Order

logger = structlog.get_logger(__name__)


def sender_role_for(order: Order, actor_id, actor_role) -> SenderRole:
    """Classify the sender relative to the order."""
    role = parse_role(actor_role)
    if role == Role.BRANCH_USER and str(actor_id) == str(order.requester_id):
        return SenderRole.REQUESTER
    if role in (Role.MANAGER, Role.ADMIN):
        return SenderRole.MANAGER
    return SenderRole.OTHER


def append_message(
    order: Order,
    sender_id,
    sender_role: SenderRole,
    message: str,
    item_id=None,
    proposed_qty=None,
    media=None,
    phase: MessagePhase = MessagePhase.NEGOTIATION,
) -> IssueMessage:
    entry = IssueMessage.post(
        order_id=str(order.id),
        sender_id=sender_id,
        sender_role=sender_role,
        message=message,
        item_id=item_id,
        proposed_qty=proposed_qty,
        media=media,
        phase=phase,
    )
    current_domain.repository_for(IssueMessage).add(entry)

    logger.info(
        "Issue message posted",
        order_id=str(order.id),
        item_id=str(item_id) if item_id else None,
        sender_role=sender_role.value,
        phase=phase.value,
    )
    return entry


@requisitions.command(part_of="IssueMessage")
class PostIssueMessage:
    order_id = Identifier(required=True)
    item_id = Identifier()
    sender_id = Identifier(required=True)
    sender_role = String(required=True, max_length=50)
    message = Text(required=True)
    proposed_qty = Integer()
    media = List(content_type=String)


@requisitions.command_handler(part_of=IssueMessage)
class PostIssueMessageHandler:
    @handle(PostIssueMessage)
    def post_issue_message(self, command):
        order = current_domain.repository_for(Order).get(command.order_id)
        sender_role = sender_role_for(order, command.sender_id, command.sender_role)

        status = OrderStatus(order.status)
        if status not in MESSAGING_STATUSES:
            raise InvalidStateError(f"Messages cannot be posted on an order in {status.value}")

        item_id = None
        if command.item_id:
            item = order.find_item(command.item_id)
            if item is None:
                raise ValidationError({"item_id": [f"Unknown item: {command.item_id}"]})
            item_id = str(item.id)

        phase = MessagePhase.POST_DELIVERY if status == OrderStatus.RECEIVED else MessagePhase.NEGOTIATION
        entry = append_message(
            order,
            sender_id=command.sender_id,
            sender_role=sender_role,
            message=command.message,
            item_id=item_id,
            proposed_qty=command.proposed_qty,
            media=command.media,
            phase=phase,
        )
        return str(entry.id)
