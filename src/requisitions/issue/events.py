"""Issue ledger events."""

from protean.fields import DateTime, Identifier, Integer, String, Text

from requisitions.domain import requisitions


@requisitions.event(part_of="IssueMessage")
class IssueMessagePosted:
    """A message was appended to an order's issue thread."""

    __version__ = 1

    message_id = Identifier(required=True)
    order_id = Identifier(required=True)
    scope = String(required=True, max_length=10)
    item_id = Identifier()
    sender_id = Identifier(required=True)
    sender_role = String(required=True, max_length=20)
    phase = String(required=True, max_length=20)
    proposed_qty = Integer()
    message = Text(required=True)
    posted_at = DateTime(required=True)
