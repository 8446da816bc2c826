"""Builders for Order aggregates at any point of the lifecycle.

Orders are built in memory only. Actor ids are fixed: ``requester-1`` at
``branch-1``, ``manager-1``, ``packager-1`` and ``dispatcher-1``.
"""

from datetime import UTC, datetime, timedelta

import pytest

from requisitions.order.lifecycle import FulfillmentSubstage, OrderStatus
from requisitions.order.order import Order

ITEMS = [
    {"sku": "SKU-PAPER", "name": "Printer paper", "quantity": 10, "unit_price": 4.5},
    {"sku": "SKU-TONER", "name": "Toner", "quantity": 2, "unit_price": 60.0},
]

_S = OrderStatus
_SUB = FulfillmentSubstage

# Each step moves the order one edge further along the happy path.
_PATH = [
    ((_S.MANAGER_APPROVED, None), lambda o: o.approve("manager-1", "MANAGER")),
    ((_S.CONFIRMED, None), lambda o: o.confirm("requester-1", "BRANCH_USER")),
    ((_S.ARRANGING, _SUB.ARRANGING), lambda o: o.update_arranging_stage("manager-1", "MANAGER", "ARRANGING")),
    (
        (_S.ARRANGING, _SUB.ARRANGED),
        lambda o: o.update_arranging_stage("manager-1", "MANAGER", "ARRANGED", has_media=True),
    ),
    (
        (_S.ARRANGING, _SUB.SENT_FOR_PACKAGING),
        lambda o: o.update_arranging_stage("manager-1", "MANAGER", "SENT_FOR_PACKAGING", has_media=True),
    ),
    (
        (_S.UNDER_PACKAGING, _SUB.UNDER_PACKAGING),
        lambda o: o.start_packaging("packager-1", "PACKAGER", has_media=True),
    ),
    (
        (_S.PACKAGING_COMPLETED, _SUB.PACKAGING_COMPLETED),
        lambda o: o.complete_packaging("packager-1", "PACKAGER", has_media=True),
    ),
    (
        (_S.IN_TRANSIT, None),
        lambda o: o.dispatch(
            "dispatcher-1",
            "DISPATCHER",
            tracking_id="TRK-1",
            tracking_link="https://courier.example/track/TRK-1",
            expected_delivery_at=datetime.now(UTC) + timedelta(days=2),
            has_media=True,
        ),
    ),
    (
        (_S.RECEIVED, None),
        lambda o: o.confirm_receipt(
            "requester-1",
            "BRANCH_USER",
            has_media=True,
            auto_close_at=datetime.now(UTC) + timedelta(days=3),
        ),
    ),
    ((_S.CLOSED, None), lambda o: o.close("SYSTEM_AUTO", "SYSTEM")),
]


def place_order(items=None, remarks=None) -> Order:
    order = Order.place(
        requester_id="requester-1",
        branch_id="branch-1",
        items_data=items or ITEMS,
        remarks=remarks,
    )
    order._events.clear()
    return order


def build_order(status: OrderStatus, substage: FulfillmentSubstage | None = None) -> Order:
    """Place an order and walk it forward until it sits on (status, substage)."""
    order = place_order()
    if status == _S.ISSUE_RAISED:
        order.approve("manager-1", "MANAGER")
        order.raise_issue("requester-1", "BRANCH_USER", "Quantities look wrong")
        order._events.clear()
        return order

    target = (status, substage)
    current = (_S.REQUESTED, None)
    steps = iter(_PATH)
    while current != target:
        current, step = next(steps)
        step(order)
    order._events.clear()
    return order


# Every (status, substage) an order can rest on.
ALL_POSITIONS = [(_S.REQUESTED, None), (_S.ISSUE_RAISED, None)] + [position for position, _ in _PATH]


@pytest.fixture
def order_at():
    return build_order
