"""Packaging, dispatch, receipt and closure: commands and handlers.

``UpdateOrderStatus`` is the generic entry point for the packaging and
transit edges; the target status selects the edge. Receipt confirmation
also schedules the automatic close ``AUTO_CLOSE_WORKING_HOURS`` working
hours after the goods arrive.
"""

from datetime import UTC, datetime

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, List, String
from protean.utils.globals import current_domain

from requisitions.domain import requisitions
from requisitions.order.helpers import load_order, record_stage_media, stage_media_present
from requisitions.order.lifecycle import (
    EDGES,
    STATUS_UPDATE_EDGES,
    MediaStage,
    OrderStatus,
    Transition,
    assert_may_initiate_any,
)
from requisitions.order.order import Order
from requisitions.utils.working_hours import add_working_hours

logger = structlog.get_logger(__name__)


@requisitions.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=50)
    status = String(required=True, max_length=50)
    tracking_id = String(max_length=255)
    tracking_link = String(max_length=1000)
    expected_delivery_at = DateTime()
    media = List(content_type=String)
    expected_version = Integer()


@requisitions.command(part_of="Order")
class ConfirmReceipt:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=50)
    media = List(content_type=String)
    expected_version = Integer()


@requisitions.command(part_of="Order")
class CloseOrder:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=50)
    expected_version = Integer()


def _status_transition(status: str) -> Transition:
    try:
        transition = STATUS_UPDATE_EDGES.get(OrderStatus(status))
    except ValueError:
        transition = None
    if transition is None:
        allowed = ", ".join(s.value for s in STATUS_UPDATE_EDGES)
        raise ValidationError({"status": [f"Status must be one of: {allowed}"]})
    return transition


@requisitions.command_handler(part_of=Order)
class ProgressHandler:
    @handle(UpdateOrderStatus)
    def update_order_status(self, command):
        assert_may_initiate_any(STATUS_UPDATE_EDGES.values(), command.actor_role, "update the status of")
        transition = _status_transition(command.status)
        stage = EDGES[transition].media_stage

        order = load_order(command.order_id, command.expected_version)
        has_media = stage_media_present(order, stage, command.media)

        if transition == Transition.START_PACKAGING:
            order.start_packaging(command.actor_id, command.actor_role, has_media=has_media)
        elif transition == Transition.COMPLETE_PACKAGING:
            order.complete_packaging(command.actor_id, command.actor_role, has_media=has_media)
        else:
            order.dispatch(
                command.actor_id,
                command.actor_role,
                tracking_id=command.tracking_id,
                tracking_link=command.tracking_link,
                expected_delivery_at=command.expected_delivery_at,
                has_media=has_media,
            )

        record_stage_media(order, stage, command.media, command.actor_id)
        current_domain.repository_for(Order).add(order)
        return order.status

    @handle(ConfirmReceipt)
    def confirm_receipt(self, command):
        order = load_order(command.order_id, command.expected_version)
        has_media = stage_media_present(order, MediaStage.RECEIPT, command.media)

        received_at = datetime.now(UTC)
        custom = current_domain.config.get("custom", {})
        auto_close_at = add_working_hours(
            received_at,
            custom.get("AUTO_CLOSE_WORKING_HOURS", 56),
            start_hour=custom.get("BUSINESS_DAY_START_HOUR", 9),
            end_hour=custom.get("BUSINESS_DAY_END_HOUR", 17),
            timezone=custom.get("BUSINESS_TIMEZONE", "UTC"),
        )

        order.confirm_receipt(
            command.actor_id,
            command.actor_role,
            has_media=has_media,
            auto_close_at=auto_close_at,
            received_at=received_at,
        )
        record_stage_media(order, MediaStage.RECEIPT, command.media, command.actor_id)
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Order received",
            order_id=str(order.id),
            order_number=order.order_number,
            auto_close_at=auto_close_at.isoformat(),
        )
        return order.status

    @handle(CloseOrder)
    def close_order(self, command):
        order = load_order(command.order_id, command.expected_version)
        order.close(command.actor_id, command.actor_role)
        current_domain.repository_for(Order).add(order)
        return order.status
