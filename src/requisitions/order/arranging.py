"""Arranging phase: substage updates and arranging remarks."""

from protean import handle
from protean.fields import Identifier, Integer, List, String, Text
from protean.utils.globals import current_domain

from requisitions.domain import requisitions
from requisitions.order.helpers import load_order, record_stage_media, stage_media_present
from requisitions.order.lifecycle import MediaStage
from requisitions.order.order import Order


@requisitions.command(part_of="Order")
class UpdateArrangingStage:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=50)
    arranging_stage = String(required=True, max_length=50)
    media = List(content_type=String)
    expected_version = Integer()


@requisitions.command(part_of="Order")
class UpdateArrangingRemarks:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=50)
    remarks = Text(required=True)
    expected_version = Integer()


@requisitions.command_handler(part_of=Order)
class ArrangingHandler:
    @handle(UpdateArrangingStage)
    def update_arranging_stage(self, command):
        order = load_order(command.order_id, command.expected_version)
        has_media = stage_media_present(order, MediaStage.ARRANGING, command.media)

        order.update_arranging_stage(
            command.actor_id,
            command.actor_role,
            command.arranging_stage,
            has_media=has_media,
        )
        record_stage_media(order, MediaStage.ARRANGING, command.media, command.actor_id)
        current_domain.repository_for(Order).add(order)
        return order.substage

    @handle(UpdateArrangingRemarks)
    def update_arranging_remarks(self, command):
        order = load_order(command.order_id, command.expected_version)
        order.update_arranging_remarks(command.actor_id, command.actor_role, command.remarks)
        current_domain.repository_for(Order).add(order)
