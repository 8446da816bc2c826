"""Template records: the wording of every notification, keyed by template id.

Fields are Jinja2 snippets rendered against the notification context
(``order_number``, ``status``, ``actor_role``, ``total_items``,
``total_value``, ``remarks``, ``manager_reply``, ``tracking_id``,
``tracking_link``, ``expected_delivery_at``, ``item_count``).
"""

from typing import NamedTuple


class TemplateRecord(NamedTuple):
    title: str
    subject: str
    headline: str
    body_lines: tuple[str, ...] = ()


TEMPLATES: dict[str, TemplateRecord] = {
    # Placement
    "order_created": TemplateRecord(
        title="Order created",
        subject="Stock request {{ order_number }} submitted",
        headline="Your stock request {{ order_number }} has been submitted.",
        body_lines=("{{ total_items }} units requested.", "A manager will review it shortly."),
    ),
    "order_pending_approval": TemplateRecord(
        title="New stock request",
        subject="Stock request {{ order_number }} awaits approval",
        headline="Stock request {{ order_number }} needs your approval.",
        body_lines=("{{ total_items }} units requested.", "{% if remarks %}Remarks: {{ remarks }}{% endif %}"),
    ),
    # Approval and confirmation
    "order_confirm_pending": TemplateRecord(
        title="Order approved",
        subject="Stock request {{ order_number }} approved, please confirm",
        headline="Your stock request {{ order_number }} was approved.",
        body_lines=(
            "Please review the approved quantities and confirm the order or raise an issue.",
            "{% if manager_reply %}Manager reply: {{ manager_reply }}{% endif %}",
        ),
    ),
    "order_approved_manager": TemplateRecord(
        title="Order approved",
        subject="Stock request {{ order_number }} approved",
        headline="Stock request {{ order_number }} was approved and awaits the requester's confirmation.",
    ),
    "order_confirmed_requester": TemplateRecord(
        title="Order confirmed",
        subject="Stock request {{ order_number }} confirmed",
        headline="You confirmed stock request {{ order_number }}.",
        body_lines=("We will let you know once arranging starts.",),
    ),
    "order_confirmed_manager": TemplateRecord(
        title="Order confirmed",
        subject="Stock request {{ order_number }} confirmed by branch",
        headline="Stock request {{ order_number }} was confirmed and is ready to be arranged.",
    ),
    # Negotiation
    "issue_submitted": TemplateRecord(
        title="Issue submitted",
        subject="Issue submitted on {{ order_number }}",
        headline="Your issue on stock request {{ order_number }} was sent to the manager.",
        body_lines=("{{ remarks }}",),
    ),
    "issue_raised": TemplateRecord(
        title="Issue raised",
        subject="Issue raised on {{ order_number }}",
        headline="The branch raised an issue on stock request {{ order_number }}.",
        body_lines=("{{ remarks }}", "Please reply to continue."),
    ),
    "manager_reply": TemplateRecord(
        title="Manager replied",
        subject="Reply on {{ order_number }}",
        headline="The manager replied to your issue on stock request {{ order_number }}.",
        body_lines=("{{ manager_reply }}", "Please review and confirm the order."),
    ),
    # Arranging
    "arranging_started": TemplateRecord(
        title="Arranging started",
        subject="Stock request {{ order_number }} is being arranged",
        headline="Items for stock request {{ order_number }} are being arranged.",
    ),
    "arranging_completed": TemplateRecord(
        title="Items arranged",
        subject="Stock request {{ order_number }} arranged",
        headline="All items for stock request {{ order_number }} have been arranged.",
    ),
    "sent_for_packaging": TemplateRecord(
        title="Sent for packaging",
        subject="Stock request {{ order_number }} sent for packaging",
        headline="Stock request {{ order_number }} was sent for packaging.",
    ),
    "packaging_assignment": TemplateRecord(
        title="Packaging assignment",
        subject="Package stock request {{ order_number }}",
        headline="Stock request {{ order_number }} is ready for packaging.",
        body_lines=("{{ total_items }} units to pack.", "{% if remarks %}Arranging remarks: {{ remarks }}{% endif %}"),
    ),
    # Packaging
    "packaging_in_progress": TemplateRecord(
        title="Packaging in progress",
        subject="Stock request {{ order_number }} under packaging",
        headline="Packaging of stock request {{ order_number }} has started.",
    ),
    "packaging_completed": TemplateRecord(
        title="Packaging completed",
        subject="Stock request {{ order_number }} packed",
        headline="Packaging of stock request {{ order_number }} is complete.",
    ),
    "dispatch_task": TemplateRecord(
        title="Ready for dispatch",
        subject="Dispatch stock request {{ order_number }}",
        headline="Stock request {{ order_number }} is packed and ready for dispatch.",
        body_lines=("Please book the courier and record the tracking details.",),
    ),
    # Transit, receipt, closure
    "in_transit": TemplateRecord(
        title="Order dispatched",
        subject="Stock request {{ order_number }} is on its way",
        headline="Stock request {{ order_number }} has been dispatched.",
        body_lines=(
            "Tracking ID: {{ tracking_id }}",
            "Track it at {{ tracking_link }}",
            "{% if expected_delivery_at %}Expected delivery: {{ expected_delivery_at }}{% endif %}",
        ),
    ),
    "order_received": TemplateRecord(
        title="Order received",
        subject="Stock request {{ order_number }} received",
        headline="The branch confirmed receipt of stock request {{ order_number }}.",
        body_lines=("Report any problem with the delivered items before the order closes automatically.",),
    ),
    "order_closed": TemplateRecord(
        title="Order closed",
        subject="Stock request {{ order_number }} closed",
        headline="Stock request {{ order_number }} is now closed.",
    ),
    # Post-delivery item issues
    "item_issue_reported": TemplateRecord(
        title="Delivery issue reported",
        subject="Delivery issue on {{ order_number }}",
        headline="The branch reported a problem with {{ item_count }} item(s) of stock request {{ order_number }}.",
        body_lines=("Please reply on the item thread.",),
    ),
    "item_issue_submitted": TemplateRecord(
        title="Delivery issue submitted",
        subject="Delivery issue on {{ order_number }} submitted",
        headline="Your delivery issue on stock request {{ order_number }} was sent to the manager.",
    ),
    "item_issue_answered": TemplateRecord(
        title="Delivery issue answered",
        subject="Reply on delivery issue for {{ order_number }}",
        headline="The manager replied to your delivery issue on stock request {{ order_number }}.",
    ),
}
