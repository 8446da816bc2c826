"""Order placement: command and handler."""

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from requisitions.domain import requisitions
from requisitions.order.helpers import decode_json
from requisitions.order.order import Order


@requisitions.command(part_of="Order")
class PlaceOrder:
    requester_id = Identifier(required=True)
    branch_id = Identifier(required=True)
    actor_role = String(max_length=50, default="BRANCH_USER")
    items = Text(required=True)  # JSON: list of {sku, name, quantity, unit_price}
    remarks = Text()


@requisitions.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        order = Order.place(
            requester_id=command.requester_id,
            branch_id=command.branch_id,
            items_data=decode_json(command.items, default=[]),
            actor_role=command.actor_role,
            remarks=command.remarks,
        )
        current_domain.repository_for(Order).add(order)
        return str(order.id)
