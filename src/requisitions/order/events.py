"""Order domain events: immutable facts about order lifecycle changes.

All events are past tense and versioned. ``OrderTransitioned`` is the single
fact emitted for every status/substage edge; it carries the previous and new
position so the notification fan-out can key on the edge alone.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from requisitions.domain import requisitions


@requisitions.event(part_of="Order")
class OrderPlaced:
    """A branch user placed a new stock request."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=20)
    requester_id = Identifier(required=True)
    branch_id = Identifier(required=True)
    items = Text(required=True)  # JSON list of item dicts
    total_items = Integer(required=True)
    total_value = Float(required=True)
    remarks = Text()
    requested_at = DateTime(required=True)


@requisitions.event(part_of="Order")
class OrderTransitioned:
    """An order moved along one edge of the lifecycle graph."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=20)
    transition = String(required=True, max_length=50)
    from_status = String(required=True, max_length=50)
    from_substage = String(max_length=50)
    to_status = String(required=True, max_length=50)
    to_substage = String(max_length=50)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=50)
    occurred_at = DateTime(required=True)


@requisitions.event(part_of="Order")
class StageMediaAttached:
    """Proof-of-stage media references were recorded on an order."""

    __version__ = 1

    order_id = Identifier(required=True)
    stage = String(required=True, max_length=50)
    references = Text(required=True)  # JSON list of references
    uploaded_by = Identifier(required=True)
    attached_at = DateTime(required=True)


@requisitions.event(part_of="Order")
class ArrangingRemarksUpdated:
    """Arranging remarks were changed while the order was being arranged."""

    __version__ = 1

    order_id = Identifier(required=True)
    remarks = Text(required=True)
    updated_by = Identifier(required=True)
    updated_at = DateTime(required=True)


@requisitions.event(part_of="Order")
class ItemIssueReported:
    """The requester reported delivery discrepancies on received items."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=20)
    item_ids = Text(required=True)  # JSON list of item ids
    actor_id = Identifier(required=True)
    reported_at = DateTime(required=True)


@requisitions.event(part_of="Order")
class ItemIssueAnswered:
    """A manager answered a post-delivery item issue."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=20)
    item_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=50)
    answered_at = DateTime(required=True)


@requisitions.event(part_of="Order")
class ItemIssueResolved:
    """The requester accepted the answer to a post-delivery item issue."""

    __version__ = 1

    order_id = Identifier(required=True)
    item_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    resolved_at = DateTime(required=True)
