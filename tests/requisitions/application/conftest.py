"""Drives orders through the command handlers.

Actors: ``requester-1`` (branch user at ``branch-1``), ``manager-1``,
``packager-1`` and ``dispatcher-1``.
"""

import json
from datetime import UTC, datetime, timedelta

import pytest
from protean import current_domain

from requisitions.contact.management import RegisterStaffContact
from requisitions.order.approval import ApproveOrder, ConfirmOrder
from requisitions.order.arranging import UpdateArrangingStage
from requisitions.order.order import Order
from requisitions.order.placement import PlaceOrder
from requisitions.order.progress import CloseOrder, ConfirmReceipt, UpdateOrderStatus

ITEMS = [
    {"sku": "SKU-A", "name": "Printer paper", "quantity": 5, "unit_price": 4.5},
    {"sku": "SKU-B", "name": "Toner", "quantity": 2, "unit_price": 60.0},
    {"sku": "SKU-C", "name": "Staples", "quantity": 10, "unit_price": 1.0},
]


def _process(command):
    return current_domain.process(command, asynchronous=False)


class OrderWorkflow:
    def get(self, order_id) -> Order:
        return current_domain.repository_for(Order).get(order_id)

    def place(self, items=None, remarks=None) -> str:
        return _process(
            PlaceOrder(
                requester_id="requester-1",
                branch_id="branch-1",
                items=json.dumps(items or ITEMS),
                remarks=remarks,
            )
        )

    def register_staff(self):
        """Directory entries for every actor, all channels enabled."""
        for index, (user_id, role, branch_id) in enumerate(
            [
                ("requester-1", "BRANCH_USER", "branch-1"),
                ("manager-1", "MANAGER", "branch-1"),
                ("packager-1", "PACKAGER", None),
                ("dispatcher-1", "DISPATCHER", None),
            ],
            start=1,
        ):
            _process(
                RegisterStaffContact(
                    user_id=user_id,
                    role=role,
                    branch_id=branch_id,
                    email=f"{user_id}@example.com",
                    phone=f"+155500000{index:02d}",
                    messaging_enabled=True,
                )
            )

    def approve(self, order_id, approvals=None):
        return _process(
            ApproveOrder(
                order_id=order_id,
                actor_id="manager-1",
                actor_role="MANAGER",
                approvals=json.dumps(approvals or []),
            )
        )

    def confirm(self, order_id):
        return _process(ConfirmOrder(order_id=order_id, actor_id="requester-1", actor_role="BRANCH_USER"))

    def arrange(self, order_id, stage, media=None):
        return _process(
            UpdateArrangingStage(
                order_id=order_id,
                actor_id="manager-1",
                actor_role="MANAGER",
                arranging_stage=stage,
                media=media or [],
            )
        )

    def status(self, order_id, status, actor_id, actor_role, media=None, **kwargs):
        return _process(
            UpdateOrderStatus(
                order_id=order_id,
                actor_id=actor_id,
                actor_role=actor_role,
                status=status,
                media=media or [],
                **kwargs,
            )
        )

    def receive(self, order_id, media=None):
        return _process(
            ConfirmReceipt(
                order_id=order_id,
                actor_id="requester-1",
                actor_role="BRANCH_USER",
                media=media if media is not None else ["s3://media/receipt.jpg"],
            )
        )

    def close(self, order_id):
        return _process(CloseOrder(order_id=order_id, actor_id="manager-1", actor_role="MANAGER"))

    def advance(self, order_id, until: str, after: str | None = None):
        """Walk the happy path until the order reaches ``until`` (status or substage).

        ``after`` names the position the order already holds when it is past REQUESTED.
        """
        steps = [
            ("MANAGER_APPROVED", lambda: self.approve(order_id)),
            ("CONFIRMED", lambda: self.confirm(order_id)),
            ("ARRANGING", lambda: self.arrange(order_id, "ARRANGING")),
            ("ARRANGED", lambda: self.arrange(order_id, "ARRANGED", ["s3://media/arranged.jpg"])),
            ("SENT_FOR_PACKAGING", lambda: self.arrange(order_id, "SENT_FOR_PACKAGING")),
            (
                "UNDER_PACKAGING",
                lambda: self.status(order_id, "UNDER_PACKAGING", "packager-1", "PACKAGER", ["s3://media/packing.jpg"]),
            ),
            ("PACKAGING_COMPLETED", lambda: self.status(order_id, "PACKAGING_COMPLETED", "packager-1", "PACKAGER")),
            (
                "IN_TRANSIT",
                lambda: self.status(
                    order_id,
                    "IN_TRANSIT",
                    "dispatcher-1",
                    "DISPATCHER",
                    ["s3://media/van.jpg"],
                    tracking_id="TRK-1",
                    tracking_link="https://courier.example/TRK-1",
                    expected_delivery_at=datetime.now(UTC) + timedelta(days=2),
                ),
            ),
            ("RECEIVED", lambda: self.receive(order_id)),
            ("CLOSED", lambda: self.close(order_id)),
        ]
        if after is not None:
            names = [name for name, _ in steps]
            steps = steps[names.index(after) + 1 :]
        for name, step in steps:
            step()
            if name == until:
                return self.get(order_id)
        raise ValueError(f"Unknown position: {until}")


@pytest.fixture
def workflow():
    return OrderWorkflow()
