"""IssueMessage aggregate: one append-only entry in an order's issue thread.

Every message is its own aggregate so that concurrent appends never contend
on a shared version. Messages are never edited or deleted; the full thread is
retained after the order closes.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from requisitions.domain import requisitions
from requisitions.issue.events import IssueMessagePosted


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class MessageScope(Enum):
    ORDER = "ORDER"
    ITEM = "ITEM"


class SenderRole(Enum):
    REQUESTER = "REQUESTER"
    MANAGER = "MANAGER"
    OTHER = "OTHER"


class MessagePhase(Enum):
    NEGOTIATION = "NEGOTIATION"
    POST_DELIVERY = "POST_DELIVERY"


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@requisitions.aggregate
class IssueMessage:
    order_id: Identifier(required=True)
    scope: String(choices=MessageScope, default=MessageScope.ORDER.value)
    item_id: Identifier()  # Null for the general (order-level) bucket

    sender_id: Identifier(required=True)
    sender_role: String(choices=SenderRole, required=True)

    message: Text(required=True)
    proposed_qty: Integer(min_value=0)
    media: Text()  # JSON list of media references
    phase: String(choices=MessagePhase, default=MessagePhase.NEGOTIATION.value)

    created_at: DateTime()

    @classmethod
    def post(
        cls,
        order_id,
        sender_id,
        sender_role: SenderRole,
        message: str,
        item_id=None,
        proposed_qty=None,
        media=None,
        phase: MessagePhase = MessagePhase.NEGOTIATION,
    ):
        text = (message or "").strip()
        if not text:
            raise ValidationError({"message": ["Message cannot be empty"]})

        now = datetime.now(UTC)
        scope = MessageScope.ITEM if item_id else MessageScope.ORDER
        entry = cls(
            order_id=order_id,
            scope=scope.value,
            item_id=item_id,
            sender_id=sender_id,
            sender_role=sender_role.value,
            message=text,
            proposed_qty=proposed_qty,
            media=json.dumps(list(media)) if media else None,
            phase=phase.value,
            created_at=now,
        )

        entry.raise_(
            IssueMessagePosted(
                message_id=str(entry.id),
                order_id=str(order_id),
                scope=scope.value,
                item_id=str(item_id) if item_id else None,
                sender_id=str(sender_id),
                sender_role=sender_role.value,
                phase=phase.value,
                proposed_qty=proposed_qty,
                message=text,
                posted_at=now,
            )
        )
        return entry

    @property
    def media_references(self) -> list[str]:
        return json.loads(self.media) if self.media else []

    def as_thread_entry(self) -> dict:
        return {
            "id": str(self.id),
            "order_id": str(self.order_id),
            "scope": self.scope,
            "item_id": str(self.item_id) if self.item_id else None,
            "sender_id": str(self.sender_id),
            "sender_role": self.sender_role,
            "message": self.message,
            "proposed_qty": self.proposed_qty,
            "media": self.media_references,
            "phase": self.phase,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
