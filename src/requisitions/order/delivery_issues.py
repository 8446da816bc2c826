"""Post-delivery item issues: report, answer and resolve.

After receipt the requester can flag discrepancies on individual items
without reopening the order. Each report opens that item's negotiation and
lands in the issue ledger in the POST_DELIVERY phase.
"""

from protean import handle
from protean.fields import Identifier, Integer, List, String, Text
from protean.utils.globals import current_domain

from requisitions.domain import requisitions
from requisitions.issue.message import MessagePhase, SenderRole
from requisitions.issue.posting import append_message
from requisitions.order.helpers import decode_json, load_order
from requisitions.order.order import Order


@requisitions.command(part_of="Order")
class ReportReceivedIssues:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=50)
    issues = Text(required=True)  # JSON: list of {item_id, reason}
    media = List(content_type=String)
    expected_version = Integer()


@requisitions.command(part_of="Order")
class AnswerItemIssue:
    order_id = Identifier(required=True)
    item_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=50)
    message = Text(required=True)
    proposed_qty = Integer()
    expected_version = Integer()


@requisitions.command(part_of="Order")
class ResolveItemIssue:
    order_id = Identifier(required=True)
    item_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=50)
    expected_version = Integer()


@requisitions.command_handler(part_of=Order)
class DeliveryIssueHandler:
    @handle(ReportReceivedIssues)
    def report_received_issues(self, command):
        order = load_order(command.order_id, command.expected_version)
        issues = order.report_received_issues(
            command.actor_id,
            command.actor_role,
            decode_json(command.issues, default=[]),
        )
        current_domain.repository_for(Order).add(order)

        for issue in issues:
            append_message(
                order,
                sender_id=command.actor_id,
                sender_role=SenderRole.REQUESTER,
                message=issue["reason"],
                item_id=issue["item_id"],
                media=command.media,
                phase=MessagePhase.POST_DELIVERY,
            )
        return [issue["item_id"] for issue in issues]

    @handle(AnswerItemIssue)
    def answer_item_issue(self, command):
        order = load_order(command.order_id, command.expected_version)
        order.answer_item_issue(command.actor_id, command.actor_role, command.item_id)
        current_domain.repository_for(Order).add(order)

        append_message(
            order,
            sender_id=command.actor_id,
            sender_role=SenderRole.MANAGER,
            message=command.message,
            item_id=str(order.find_item(command.item_id).id),
            proposed_qty=command.proposed_qty,
            phase=MessagePhase.POST_DELIVERY,
        )

    @handle(ResolveItemIssue)
    def resolve_item_issue(self, command):
        order = load_order(command.order_id, command.expected_version)
        order.resolve_item_issue(command.actor_id, command.actor_role, command.item_id)
        current_domain.repository_for(Order).add(order)
