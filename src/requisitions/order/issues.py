"""The negotiation loop: raising an issue and the manager's reply.

Each reason raised and each reply given is also appended to the order's
issue ledger within the same unit of work, so the thread and the status
never disagree.
"""

from protean import handle
from protean.fields import Identifier, Integer, List, String, Text
from protean.utils.globals import current_domain

from requisitions.domain import requisitions
from requisitions.issue.message import SenderRole
from requisitions.issue.posting import append_message
from requisitions.order.helpers import decode_json, load_order
from requisitions.order.order import Order


@requisitions.command(part_of="Order")
class RaiseIssue:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=50)
    reason = Text()  # A single free-text concern
    issues = Text()  # JSON: list of {item_id, reason}
    media = List(content_type=String)
    expected_version = Integer()


@requisitions.command(part_of="Order")
class ReplyToIssue:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=50)
    replies = Text(required=True)  # JSON: list of {item_id?, message, qty_approved?}
    expected_version = Integer()


@requisitions.command_handler(part_of=Order)
class NegotiationHandler:
    @handle(RaiseIssue)
    def raise_issue(self, command):
        order = load_order(command.order_id, command.expected_version)
        payload = decode_json(command.issues) if command.issues else (command.reason or "")
        issues = order.raise_issue(command.actor_id, command.actor_role, payload)
        current_domain.repository_for(Order).add(order)

        for issue in issues:
            append_message(
                order,
                sender_id=command.actor_id,
                sender_role=SenderRole.REQUESTER,
                message=issue["reason"],
                item_id=issue["item_id"],
                media=command.media,
            )
        return order.status

    @handle(ReplyToIssue)
    def reply_to_issue(self, command):
        order = load_order(command.order_id, command.expected_version)
        replies = order.reply(
            command.actor_id,
            command.actor_role,
            decode_json(command.replies, default=[]),
        )
        current_domain.repository_for(Order).add(order)

        for reply in replies:
            append_message(
                order,
                sender_id=command.actor_id,
                sender_role=SenderRole.MANAGER,
                message=reply["message"],
                item_id=reply["item_id"],
                proposed_qty=reply["qty_approved"],
            )
        return order.status
