"""Notification routing table: (edge, recipient role) → template id.

One static table decides who hears about each edge of the order lifecycle
and which wording they get. Edges are the transition names plus the
non-transition facts ``placed``, ``item_issue_reported`` and
``item_issue_answered``.
"""

from requisitions.notification.notification import RecipientRole
from requisitions.templates.records import TEMPLATES, TemplateRecord

_R = RecipientRole

RECIPIENT_TABLE: dict[tuple[str, RecipientRole], str] = {
    ("placed", _R.REQUESTER): "order_created",
    ("placed", _R.MANAGER): "order_pending_approval",
    ("approve", _R.REQUESTER): "order_confirm_pending",
    ("approve", _R.MANAGER): "order_approved_manager",
    ("confirm", _R.REQUESTER): "order_confirmed_requester",
    ("confirm", _R.MANAGER): "order_confirmed_manager",
    ("raise_issue", _R.REQUESTER): "issue_submitted",
    ("raise_issue", _R.MANAGER): "issue_raised",
    ("reply", _R.REQUESTER): "manager_reply",
    ("start_arranging", _R.REQUESTER): "arranging_started",
    ("mark_arranged", _R.REQUESTER): "arranging_completed",
    ("send_for_packaging", _R.REQUESTER): "sent_for_packaging",
    ("send_for_packaging", _R.PACKAGER): "packaging_assignment",
    ("send_for_packaging", _R.MANAGER): "sent_for_packaging",
    ("start_packaging", _R.PACKAGER): "packaging_in_progress",
    ("start_packaging", _R.MANAGER): "packaging_in_progress",
    ("start_packaging", _R.REQUESTER): "packaging_in_progress",
    ("complete_packaging", _R.PACKAGER): "packaging_completed",
    ("complete_packaging", _R.MANAGER): "packaging_completed",
    ("complete_packaging", _R.DISPATCHER): "dispatch_task",
    ("complete_packaging", _R.REQUESTER): "packaging_completed",
    ("dispatch", _R.REQUESTER): "in_transit",
    ("dispatch", _R.MANAGER): "in_transit",
    ("dispatch", _R.DISPATCHER): "in_transit",
    ("confirm_receipt", _R.REQUESTER): "order_received",
    ("confirm_receipt", _R.MANAGER): "order_received",
    ("confirm_receipt", _R.DISPATCHER): "order_received",
    ("close", _R.REQUESTER): "order_closed",
    ("close", _R.MANAGER): "order_closed",
    ("item_issue_reported", _R.MANAGER): "item_issue_reported",
    ("item_issue_reported", _R.REQUESTER): "item_issue_submitted",
    ("item_issue_answered", _R.REQUESTER): "item_issue_answered",
}


def recipients_for(edge: str) -> list[RecipientRole]:
    """Recipient roles notified on an edge, in table order."""
    return [role for (e, role) in RECIPIENT_TABLE if e == edge]


def get_template(edge: str, role: RecipientRole) -> tuple[str, TemplateRecord]:
    """Look up the template id and record for an (edge, role) pair."""
    template_id = RECIPIENT_TABLE.get((edge, role))
    if template_id is None:
        raise ValueError(f"No template registered for {role.value} on {edge}")
    return template_id, TEMPLATES[template_id]
