"""Manager approval and requester confirmation: commands and handlers."""

from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from requisitions.domain import requisitions
from requisitions.order.helpers import decode_json, load_order
from requisitions.order.order import Order


@requisitions.command(part_of="Order")
class ApproveOrder:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=50)
    approvals = Text()  # JSON: list of {item_id | sku, qty_approved}
    expected_version = Integer()


@requisitions.command(part_of="Order")
class ConfirmOrder:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=50)
    expected_version = Integer()


@requisitions.command_handler(part_of=Order)
class ApprovalHandler:
    @handle(ApproveOrder)
    def approve_order(self, command):
        order = load_order(command.order_id, command.expected_version)
        order.approve(
            command.actor_id,
            command.actor_role,
            approvals=decode_json(command.approvals, default=[]),
        )
        current_domain.repository_for(Order).add(order)
        return order.status

    @handle(ConfirmOrder)
    def confirm_order(self, command):
        order = load_order(command.order_id, command.expected_version)
        order.confirm(command.actor_id, command.actor_role)
        current_domain.repository_for(Order).add(order)
        return order.status
