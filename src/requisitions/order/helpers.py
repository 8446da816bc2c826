"""Shared helpers for order command handlers."""

import json

from protean.utils.globals import current_domain

from requisitions.order.errors import ConcurrencyConflictError
from requisitions.order.order import Order


def load_order(order_id, expected_version=None) -> Order:
    """Fetch an order, rejecting the request if the caller's view is stale.

    ``expected_version`` is the ``version`` the caller last read. When given
    and the stored order has moved on, the command is refused before any
    validation runs.
    """
    order = current_domain.repository_for(Order).get(order_id)
    if expected_version is not None and order._version != expected_version:
        raise ConcurrencyConflictError(
            f"Order {order.order_number} is at version {order._version}, expected {expected_version}"
        )
    return order


def decode_json(value, default=None):
    """Commands carry structured payloads as JSON text."""
    if value is None or value == "":
        return default
    return json.loads(value) if isinstance(value, str) else value


def stage_media_present(order: Order, stage, references=None) -> bool:
    """Media supplied with the request counts, as does media attached earlier."""
    from requisitions.media import get_media_catalog

    if any(r and r.strip() for r in references or []):
        return True
    return get_media_catalog().has_attachments_for_stage(str(order.id), stage)


def record_stage_media(order: Order, stage, references, uploaded_by) -> None:
    if any(r and r.strip() for r in references or []):
        order.attach_media(stage.value, references, uploaded_by)
