from datetime import UTC, datetime, timedelta

from protean.exceptions import InvalidStateError

from requisitions.notification.inbox import list_notifications
from requisitions.order import auto_close
from requisitions.order.auto_close import SYSTEM_ACTOR_ID, close_due_orders
from requisitions.order.lifecycle import OrderStatus
from requisitions.order.order import Order
from requisitions.utils.working_hours import add_working_hours


def _utc(value):
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)


class TestAutoCloseScheduling:
    def test_receipt_schedules_close_fifty_six_working_hours_later(self, workflow):
        order_id = workflow.place()
        order = workflow.advance(order_id, "RECEIVED")

        assert order.received_at is not None
        assert _utc(order.auto_close_at) == add_working_hours(_utc(order.received_at), 56)
        assert _utc(order.auto_close_at) > _utc(order.received_at) + timedelta(hours=56)


class TestCloseDueOrders:
    def test_closes_orders_past_their_deadline(self, workflow):
        order_id = workflow.place()
        order = workflow.advance(order_id, "RECEIVED")

        closed = close_due_orders(_utc(order.auto_close_at) + timedelta(minutes=1))

        assert closed == 1
        order = workflow.get(order_id)
        assert order.status == OrderStatus.CLOSED.value
        assert order.closed_at is not None
        assert order.auto_close_at is None

    def test_deadline_is_inclusive(self, workflow):
        order_id = workflow.place()
        order = workflow.advance(order_id, "RECEIVED")

        assert close_due_orders(_utc(order.auto_close_at)) == 1

    def test_leaves_orders_before_their_deadline(self, workflow):
        order_id = workflow.place()
        order = workflow.advance(order_id, "RECEIVED")

        assert close_due_orders(_utc(order.auto_close_at) - timedelta(minutes=1)) == 0
        assert workflow.get(order_id).status == OrderStatus.RECEIVED.value

    def test_ignores_orders_not_yet_received(self, workflow):
        in_transit_id = workflow.place()
        workflow.advance(in_transit_id, "IN_TRANSIT")
        requested_id = workflow.place()

        assert close_due_orders(datetime.now(UTC) + timedelta(days=60)) == 0
        assert workflow.get(in_transit_id).status == OrderStatus.IN_TRANSIT.value
        assert workflow.get(requested_id).status == OrderStatus.REQUESTED.value

    def test_closed_by_system_actor_and_requester_notified(self, workflow):
        order_id = workflow.place()
        workflow.advance(order_id, "RECEIVED")

        close_due_orders(datetime.now(UTC) + timedelta(days=30))

        assert any(n.notification_type == "close" for n in list_notifications("requester-1"))

    def test_running_twice_closes_once(self, workflow):
        order_id = workflow.place()
        workflow.advance(order_id, "RECEIVED")
        as_of = datetime.now(UTC) + timedelta(days=30)

        assert close_due_orders(as_of) == 1
        assert close_due_orders(as_of) == 0

    def test_failure_on_one_order_does_not_stop_the_run(self, workflow, monkeypatch):
        stuck_id = workflow.place()
        workflow.advance(stuck_id, "RECEIVED")
        healthy_id = workflow.place()
        workflow.advance(healthy_id, "RECEIVED")

        original_close = Order.close

        def close_unless_stuck(self, actor_id, actor_role):
            assert actor_id == SYSTEM_ACTOR_ID
            if str(self.id) == stuck_id:
                raise InvalidStateError("Order is locked")
            return original_close(self, actor_id, actor_role)

        monkeypatch.setattr(Order, "close", close_unless_stuck)

        assert close_due_orders(datetime.now(UTC) + timedelta(days=30)) == 1
        assert workflow.get(stuck_id).status == OrderStatus.RECEIVED.value
        assert workflow.get(healthy_id).status == OrderStatus.CLOSED.value

    def test_defaults_to_now(self, workflow):
        order_id = workflow.place()
        workflow.advance(order_id, "RECEIVED")

        assert close_due_orders() == 0

    def test_concurrent_close_is_skipped_and_others_still_close(self, workflow, monkeypatch):
        contested_id = workflow.place()
        workflow.advance(contested_id, "RECEIVED")
        healthy_id = workflow.place()
        workflow.advance(healthy_id, "RECEIVED")

        real_due_orders = auto_close.due_orders

        def due_then_closed_by_manager(as_of):
            due = real_due_orders(as_of)
            workflow.close(contested_id)
            return due

        monkeypatch.setattr(auto_close, "due_orders", due_then_closed_by_manager)

        assert close_due_orders(datetime.now(UTC) + timedelta(days=30)) == 1
        assert workflow.get(contested_id).status == OrderStatus.CLOSED.value
        assert workflow.get(healthy_id).status == OrderStatus.CLOSED.value
        closes = [n for n in list_notifications("requester-1") if n.notification_type == "close"]
        assert len(closes) == 2
