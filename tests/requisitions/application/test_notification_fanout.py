"""Application tests for the notification fan-out and the in-app inbox.

Committing an edge creates one in-app notification per recipient and then
attempts email and messaging where the directory allows. Channel failures
are recorded and logged but never undo the transition.
"""

import json

import pytest
from protean import current_domain

from requisitions.contact.management import DeactivateStaffContact, RegisterStaffContact, UpdateContactChannels
from requisitions.notification import fanout
from requisitions.notification.inbox import MarkNotificationRead, list_notifications
from requisitions.notification.notification import Notification, RecipientRole
from requisitions.order.approval import ApproveOrder
from requisitions.order.errors import ForbiddenTransitionError
from requisitions.order.lifecycle import OrderStatus


def _register(user_id, role, branch_id=None, **kwargs):
    current_domain.process(
        RegisterStaffContact(user_id=user_id, role=role, branch_id=branch_id, **kwargs),
        asynchronous=False,
    )


def _for(user_id, notification_type):
    return [n for n in list_notifications(user_id) if n.notification_type == notification_type]


class TestInAppNotifications:
    def test_requester_is_notified_without_directory_entry(self, workflow, channels):
        order_id = workflow.place()

        [placed] = _for("requester-1", "placed")
        assert placed.order_id == order_id
        assert placed.recipient_role == RecipientRole.REQUESTER.value
        assert placed.title == "Order created"
        assert placed.is_email is False
        assert channels.email.sent_emails == []

    def test_one_notification_per_recipient_per_edge(self, workflow):
        workflow.register_staff()
        order_id = workflow.place()
        workflow.approve(order_id)

        assert len(_for("requester-1", "approve")) == 1
        assert len(_for("manager-1", "approve")) == 1
        assert _for("packager-1", "approve") == []

    def test_every_edge_of_the_happy_path_notifies_the_requester(self, workflow):
        order_id = workflow.place()
        workflow.advance(order_id, "CLOSED")

        types = {n.notification_type for n in list_notifications("requester-1")}
        assert types == {
            "placed",
            "approve",
            "confirm",
            "start_arranging",
            "mark_arranged",
            "send_for_packaging",
            "start_packaging",
            "complete_packaging",
            "dispatch",
            "confirm_receipt",
            "close",
        }

    def test_tracking_details_reach_the_requester(self, workflow, channels):
        workflow.register_staff()
        order_id = workflow.place()
        workflow.advance(order_id, "IN_TRANSIT")

        [dispatched] = _for("requester-1", "dispatch")
        assert "Tracking ID: TRK-1" in dispatched.message
        assert any("https://courier.example/TRK-1" in m["text"] for m in channels.messaging.sent_messages)


class TestExternalChannels:
    def test_email_and_messaging_sent_to_directory_addresses(self, workflow, channels):
        workflow.register_staff()
        order_id = workflow.place()

        [placed] = _for("manager-1", "placed")
        assert placed.is_email is True
        assert placed.is_messaging is True

        email = next(e for e in channels.email.sent_emails if e["to"] == "manager-1@example.com")
        order_number = workflow.get(order_id).order_number
        assert email["subject"] == f"Stock request {order_number} awaits approval"
        assert "<html>" in email["html"]

    def test_failed_email_is_recorded_and_transition_commits(self, workflow, channels):
        workflow.register_staff()
        order_id = workflow.place()
        channels.email.configure(should_succeed=False, failure_reason="Mailbox unavailable")

        assert workflow.approve(order_id) == OrderStatus.MANAGER_APPROVED.value

        assert workflow.get(order_id).status == OrderStatus.MANAGER_APPROVED.value
        [approved] = _for("requester-1", "approve")
        assert approved.is_email is False
        assert approved.email_error == "Mailbox unavailable"
        assert approved.is_messaging is True

    def test_raising_channel_does_not_block_others(self, workflow, channels, monkeypatch):
        workflow.register_staff()
        order_id = workflow.place()

        def explode(**kwargs):
            raise RuntimeError("Gateway exploded")

        monkeypatch.setattr(channels.messaging, "send", explode)
        workflow.approve(order_id)

        for user_id in ("requester-1", "manager-1"):
            [approved] = _for(user_id, "approve")
            assert approved.is_messaging is False
            assert approved.messaging_error == "Gateway exploded"
            assert approved.is_email is True

    def test_opted_out_channel_is_not_attempted(self, workflow, channels):
        workflow.register_staff()
        current_domain.process(
            UpdateContactChannels(user_id="requester-1", email_enabled=False, messaging_enabled=False),
            asynchronous=False,
        )
        workflow.place()

        [placed] = _for("requester-1", "placed")
        assert placed.is_email is False
        assert placed.email_error is None
        assert all(e["to"] != "requester-1@example.com" for e in channels.email.sent_emails)


class TestFanOutFailures:
    def test_recipient_lookup_failure_leaves_transition_committed(self, workflow, monkeypatch):
        workflow.register_staff()
        order_id = workflow.place()

        def unavailable(order, roles):
            raise RuntimeError("Directory unavailable")

        monkeypatch.setattr(fanout, "resolve_recipients", unavailable)

        assert workflow.approve(order_id) == OrderStatus.MANAGER_APPROVED.value
        assert workflow.get(order_id).status == OrderStatus.MANAGER_APPROVED.value
        assert _for("requester-1", "approve") == []

    def test_one_recipient_failing_does_not_skip_the_rest(self, workflow, monkeypatch):
        workflow.register_staff()
        order_id = workflow.place()
        real_get_template = fanout.get_template

        def broken_for_managers(edge, role):
            if role == RecipientRole.MANAGER:
                raise KeyError("template missing")
            return real_get_template(edge, role)

        monkeypatch.setattr(fanout, "get_template", broken_for_managers)

        assert workflow.approve(order_id) == OrderStatus.MANAGER_APPROVED.value
        assert _for("manager-1", "approve") == []
        [approved] = _for("requester-1", "approve")
        assert approved.is_email is True


class TestRecipientResolution:
    def test_unassigned_role_reaches_branch_and_organisation_staff(self, workflow):
        _register("manager-1", "MANAGER", "branch-1")
        _register("manager-hq", "MANAGER")
        _register("manager-2", "MANAGER", "branch-2")
        _register("manager-gone", "MANAGER", "branch-1")
        current_domain.process(DeactivateStaffContact(user_id="manager-gone"), asynchronous=False)

        workflow.place()

        assert len(_for("manager-1", "placed")) == 1
        assert len(_for("manager-hq", "placed")) == 1
        assert _for("manager-2", "placed") == []
        assert _for("manager-gone", "placed") == []

    def test_assigned_manager_only_after_approval(self, workflow):
        _register("manager-1", "MANAGER", "branch-1")
        _register("manager-hq", "MANAGER")
        order_id = workflow.place()

        current_domain.process(
            ApproveOrder(order_id=order_id, actor_id="manager-hq", actor_role="MANAGER", approvals=json.dumps([])),
            asynchronous=False,
        )

        assert len(_for("manager-hq", "approve")) == 1
        assert _for("manager-1", "approve") == []

    def test_packagers_hear_about_packaging_work(self, workflow):
        workflow.register_staff()
        order_id = workflow.place()
        workflow.advance(order_id, "SENT_FOR_PACKAGING")

        [assignment] = _for("packager-1", "send_for_packaging")
        assert assignment.title == "Packaging assignment"
        assert assignment.recipient_role == RecipientRole.PACKAGER.value

    def test_dispatchers_hear_when_packing_completes(self, workflow):
        workflow.register_staff()
        order_id = workflow.place()
        workflow.advance(order_id, "PACKAGING_COMPLETED")

        [task] = _for("dispatcher-1", "complete_packaging")
        assert task.title == "Ready for dispatch"


class TestInbox:
    def test_newest_first_and_unread_filter(self, workflow):
        order_id = workflow.place()
        workflow.approve(order_id)
        workflow.confirm(order_id)

        inbox = list_notifications("requester-1")
        assert [n.notification_type for n in inbox] == ["confirm", "approve", "placed"]

        current_domain.process(
            MarkNotificationRead(notification_id=str(inbox[0].id), user_id="requester-1"),
            asynchronous=False,
        )

        unread = list_notifications("requester-1", unread_only=True)
        assert [n.notification_type for n in unread] == ["approve", "placed"]
        read = current_domain.repository_for(Notification).get(str(inbox[0].id))
        assert read.is_read is True

    def test_filter_by_order(self, workflow):
        first_id = workflow.place()
        workflow.place()

        assert {str(n.order_id) for n in list_notifications("requester-1", order_id=first_id)} == {first_id}

    def test_only_owner_marks_read(self, workflow):
        workflow.place()
        [placed] = _for("requester-1", "placed")

        with pytest.raises(ForbiddenTransitionError):
            current_domain.process(
                MarkNotificationRead(notification_id=str(placed.id), user_id="manager-1"),
                asynchronous=False,
            )
