"""Post-delivery item issues: report, answer and resolve without reopening the order."""

import json

import pytest
from protean.exceptions import InvalidStateError, ValidationError

from requisitions.order.errors import ForbiddenTransitionError
from requisitions.order.events import ItemIssueAnswered, ItemIssueReported, ItemIssueResolved
from requisitions.order.lifecycle import OrderStatus
from requisitions.order.negotiation import NegotiationState


class TestReportReceivedIssues:
    def test_opens_item_threads_without_changing_status(self, order_at):
        order = order_at(OrderStatus.RECEIVED)
        paper = order.find_item("SKU-PAPER")

        issues = order.report_received_issues(
            "requester-1",
            "BRANCH_USER",
            [{"item_id": "SKU-PAPER", "reason": "Two reams damaged"}],
        )

        assert issues == [{"item_id": str(paper.id), "reason": "Two reams damaged"}]
        assert order.status == OrderStatus.RECEIVED.value
        assert paper.negotiation.awaits_manager

        event = order._events[-1]
        assert isinstance(event, ItemIssueReported)
        assert json.loads(event.item_ids) == [str(paper.id)]

    def test_only_the_requester(self, order_at):
        order = order_at(OrderStatus.RECEIVED)
        with pytest.raises(ForbiddenTransitionError):
            order.report_received_issues("manager-1", "MANAGER", [{"item_id": "SKU-PAPER", "reason": "x"}])
        with pytest.raises(ForbiddenTransitionError):
            order.report_received_issues("other-user", "BRANCH_USER", [{"item_id": "SKU-PAPER", "reason": "x"}])

    @pytest.mark.parametrize("status", [OrderStatus.IN_TRANSIT, OrderStatus.CLOSED])
    def test_only_on_received_orders(self, order_at, status):
        order = order_at(status)
        with pytest.raises(InvalidStateError):
            order.report_received_issues("requester-1", "BRANCH_USER", [{"item_id": "SKU-PAPER", "reason": "x"}])

    def test_every_issue_names_a_known_item(self, order_at):
        order = order_at(OrderStatus.RECEIVED)
        with pytest.raises(ValidationError) as exc:
            order.report_received_issues(
                "requester-1",
                "BRANCH_USER",
                [{"reason": "Something is off"}, {"item_id": "SKU-404", "reason": "Missing"}],
            )
        assert len(exc.value.messages["item_id"]) == 2


class TestAnswerAndResolve:
    def _reported(self, order_at):
        order = order_at(OrderStatus.RECEIVED)
        order.report_received_issues("requester-1", "BRANCH_USER", [{"item_id": "SKU-TONER", "reason": "Leaking"}])
        order._events.clear()
        return order

    def test_full_item_loop(self, order_at):
        order = self._reported(order_at)
        toner = order.find_item("SKU-TONER")

        order.answer_item_issue("manager-1", "MANAGER", str(toner.id))
        assert toner.negotiation.state == NegotiationState.AWAITING_REQUESTER.value
        assert isinstance(order._events[-1], ItemIssueAnswered)

        order.resolve_item_issue("requester-1", "BRANCH_USER", "SKU-TONER")
        assert toner.negotiation.state == NegotiationState.RESOLVED.value
        assert isinstance(order._events[-1], ItemIssueResolved)
        assert order.status == OrderStatus.RECEIVED.value

    def test_answer_requires_management(self, order_at):
        order = self._reported(order_at)
        with pytest.raises(ForbiddenTransitionError):
            order.answer_item_issue("dispatcher-1", "DISPATCHER", "SKU-TONER")

    def test_answer_without_open_issue(self, order_at):
        order = self._reported(order_at)
        with pytest.raises(InvalidStateError):
            order.answer_item_issue("manager-1", "MANAGER", "SKU-PAPER")

    def test_resolve_without_open_issue(self, order_at):
        order = order_at(OrderStatus.RECEIVED)
        with pytest.raises(InvalidStateError, match="no open issue"):
            order.resolve_item_issue("requester-1", "BRANCH_USER", "SKU-PAPER")

    def test_resolve_before_manager_answers(self, order_at):
        order = self._reported(order_at)
        with pytest.raises(InvalidStateError):
            order.resolve_item_issue("requester-1", "BRANCH_USER", "SKU-TONER")

    def test_unknown_item(self, order_at):
        order = self._reported(order_at)
        with pytest.raises(ValidationError):
            order.answer_item_issue("manager-1", "MANAGER", "SKU-404")
