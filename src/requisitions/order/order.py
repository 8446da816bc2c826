"""Order aggregate (CQRS): the internal stock request and its lifecycle.

An Order travels from the requesting branch through manager approval, an
open-ended negotiation loop, arranging, packaging and transit until the
branch confirms receipt and the order is closed. Every edge is validated in
the same order: actor role, then source state, then payload completeness.
Only a fully valid request mutates state, and each committed edge raises
exactly one ``OrderTransitioned`` event.

State Machine (see ``requisitions.order.lifecycle`` for the full table):
    REQUESTED → MANAGER_APPROVED → CONFIRMED → ARRANGING → UNDER_PACKAGING
        → PACKAGING_COMPLETED → IN_TRANSIT → RECEIVED → CLOSED
    MANAGER_APPROVED ⇄ ISSUE_RAISED
"""

import json
import secrets
import string
from datetime import UTC, datetime

from protean.exceptions import InvalidStateError, ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from requisitions.domain import requisitions
from requisitions.order.errors import ForbiddenTransitionError
from requisitions.order.events import (
    ArrangingRemarksUpdated,
    ItemIssueAnswered,
    ItemIssueReported,
    ItemIssueResolved,
    OrderPlaced,
    OrderTransitioned,
    StageMediaAttached,
)
from requisitions.order.lifecycle import (
    ARRANGING_EDGES,
    EDGES,
    FulfillmentSubstage,
    MediaStage,
    OrderStatus,
    Role,
    Transition,
    assert_actor_allowed,
    assert_may_initiate_any,
    assert_source_state,
    media_edges,
    parse_role,
)
from requisitions.order.negotiation import Negotiation, NegotiationScope

_ORDER_NUMBER_ALPHABET = string.ascii_uppercase + string.digits

_MANAGEMENT_ROLES = {Role.MANAGER, Role.ADMIN}

# Statuses in which the issue ledger accepts new messages.
MESSAGING_STATUSES = {
    OrderStatus.MANAGER_APPROVED,
    OrderStatus.ISSUE_RAISED,
    OrderStatus.CONFIRMED,
    OrderStatus.ARRANGING,
    OrderStatus.UNDER_PACKAGING,
    OrderStatus.PACKAGING_COMPLETED,
    OrderStatus.IN_TRANSIT,
    OrderStatus.RECEIVED,
}


def generate_order_number() -> str:
    """``OR`` followed by six random uppercase alphanumerics, e.g. ``OR3X9K2M``."""
    return "OR" + "".join(secrets.choice(_ORDER_NUMBER_ALPHABET) for _ in range(6))


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@requisitions.value_object(part_of="Order")
class Tracking:
    """Courier tracking details captured at dispatch."""

    tracking_id = String(max_length=255)
    tracking_link = String(max_length=1000)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@requisitions.entity(part_of="Order")
class OrderItem:
    """A requested line. ``qty_requested`` never changes after placement."""

    sku = String(required=True, max_length=100)
    name = String(max_length=255)
    qty_requested = Integer(required=True, min_value=1)
    qty_approved = Integer(min_value=0)
    unit_price = Float(default=0.0, min_value=0.0)
    total_price = Float(default=0.0)
    negotiation = ValueObject(Negotiation)

    def set_approved_quantity(self, qty: int) -> None:
        self.qty_approved = qty
        self.total_price = round(qty * (self.unit_price or 0.0), 2)

    @property
    def effective_quantity(self) -> int:
        return self.qty_requested if self.qty_approved is None else self.qty_approved


@requisitions.entity(part_of="Order")
class StageMedia:
    """A reference to an uploaded photo or video proving a stage was reached."""

    stage = String(required=True, max_length=20, choices=MediaStage)
    reference = String(required=True, max_length=1000)
    uploaded_by = Identifier(required=True)
    uploaded_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@requisitions.aggregate
class Order:
    order_number = String(required=True, max_length=20, unique=True)
    requester_id = Identifier(required=True)
    branch_id = Identifier(required=True)
    manager_id = Identifier()
    packager_id = Identifier()
    dispatcher_id = Identifier()

    status = String(max_length=50, choices=OrderStatus, default=OrderStatus.REQUESTED.value)
    substage = String(max_length=50, choices=FulfillmentSubstage)

    items = HasMany(OrderItem)
    media = HasMany(StageMedia)

    total_items = Integer(default=0)
    total_value = Float(default=0.0)

    remarks = Text()
    manager_reply = Text()
    arranging_remarks = Text()

    tracking = ValueObject(Tracking)
    expected_delivery_at = DateTime()
    negotiation = ValueObject(Negotiation)

    # Stage timestamps, each null until reached
    requested_at = DateTime()
    approved_at = DateTime()
    confirmed_at = DateTime()
    arranging_started_at = DateTime()
    arranging_completed_at = DateTime()
    sent_for_packaging_at = DateTime()
    packaging_started_at = DateTime()
    packaging_completed_at = DateTime()
    dispatched_at = DateTime()
    received_at = DateTime()
    closed_at = DateTime()
    auto_close_at = DateTime()

    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, requester_id, branch_id, items_data, actor_role=Role.BRANCH_USER.value, remarks=None):
        """Create a new order in REQUESTED status."""
        if parse_role(actor_role) != Role.BRANCH_USER:
            raise ForbiddenTransitionError("Only branch users may place stock requests")

        errors = {}
        if not items_data:
            errors["items"] = ["At least one item is required"]

        seen = set()
        for index, item in enumerate(items_data or []):
            sku = (item.get("sku") or "").strip()
            if not sku:
                errors.setdefault("items", []).append(f"Item #{index + 1} is missing a SKU")
                continue
            if sku in seen:
                errors.setdefault("items", []).append(f"Duplicate SKU: {sku}")
            seen.add(sku)

            quantity = item.get("quantity")
            if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
                errors.setdefault("quantity", []).append(f"Quantity for SKU {sku} must be a positive integer")
            if float(item.get("unit_price") or 0) < 0:
                errors.setdefault("unit_price", []).append(f"Unit price for SKU {sku} cannot be negative")

        if errors:
            raise ValidationError(errors)

        now = datetime.now(UTC)
        order = cls(
            order_number=generate_order_number(),
            requester_id=requester_id,
            branch_id=branch_id,
            status=OrderStatus.REQUESTED.value,
            remarks=remarks,
            negotiation=Negotiation.start(NegotiationScope.ORDER),
            requested_at=now,
            created_at=now,
            updated_at=now,
        )
        for item in items_data:
            order.add_items(
                OrderItem(
                    sku=item["sku"].strip(),
                    name=item.get("name"),
                    qty_requested=item["quantity"],
                    unit_price=float(item.get("unit_price") or 0),
                    total_price=round(item["quantity"] * float(item.get("unit_price") or 0), 2),
                    negotiation=Negotiation.start(NegotiationScope.ITEM),
                )
            )
        order._recalculate_totals()

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                requester_id=str(requester_id),
                branch_id=str(branch_id),
                items=json.dumps(
                    [
                        {
                            "sku": i.sku,
                            "name": i.name,
                            "quantity": i.qty_requested,
                            "unit_price": i.unit_price,
                        }
                        for i in order.items
                    ]
                ),
                total_items=order.total_items,
                total_value=order.total_value,
                remarks=remarks,
                requested_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Transition helpers
    # -------------------------------------------------------------------
    def _begin(self, transition: Transition, actor_id, actor_role) -> Role:
        """Check actor role, then source state. Raises before any mutation."""
        role = assert_actor_allowed(transition, actor_id, actor_role, self.requester_id)
        assert_source_state(transition, self.status, self.substage)
        return role

    def _require_media(self, transition: Transition, has_media: bool, errors: dict) -> None:
        stage = EDGES[transition].media_stage
        if stage is not None and not has_media:
            errors["media"] = [f"At least one photo or video of the {stage.value.lower()} stage is required"]

    def _advance(self, transition: Transition, actor_id, role: Role, now=None) -> None:
        """Move to the edge's target, stamp its timestamp and raise the fact."""
        edge = EDGES[transition]
        now = now or datetime.now(UTC)
        from_status, from_substage = self.status, self.substage
        target_status, target_substage = edge.target

        self.status = target_status.value
        self.substage = target_substage.value if target_substage else None
        if edge.timestamp:
            setattr(self, edge.timestamp, now)
        self.updated_at = now

        self.raise_(
            OrderTransitioned(
                order_id=str(self.id),
                order_number=self.order_number,
                transition=transition.value,
                from_status=from_status,
                from_substage=from_substage,
                to_status=self.status,
                to_substage=self.substage,
                actor_id=str(actor_id),
                actor_role=role.value,
                occurred_at=now,
            )
        )

    def _recalculate_totals(self) -> None:
        items = self.items or []
        self.total_items = sum(i.qty_requested for i in items)
        self.total_value = round(sum(i.effective_quantity * (i.unit_price or 0.0) for i in items), 2)

    def find_item(self, reference):
        """Locate an item by id or SKU, or None."""
        for item in self.items or []:
            if str(item.id) == str(reference) or item.sku == reference:
                return item
        return None

    def _validated_quantity(self, item, qty, errors: dict):
        if not isinstance(qty, int) or isinstance(qty, bool):
            errors.setdefault("qty_approved", []).append(f"Approved quantity for SKU {item.sku} must be an integer")
            return None
        if qty < 0 or qty > item.qty_requested:
            errors.setdefault("qty_approved", []).append(
                f"Approved quantity for SKU {item.sku} must be between 0 and {item.qty_requested}"
            )
            return None
        return qty

    def _assert_management(self, actor_role, action: str) -> Role:
        role = parse_role(actor_role)
        if role not in _MANAGEMENT_ROLES:
            raise ForbiddenTransitionError(f"Role {role.value} is not permitted to {action}")
        return role

    def _assert_requester(self, actor_id, actor_role, action: str) -> Role:
        role = parse_role(actor_role)
        if role != Role.BRANCH_USER or str(actor_id) != str(self.requester_id):
            raise ForbiddenTransitionError(f"Only the original requester may {action}")
        return role

    def has_media_for(self, stage: MediaStage) -> bool:
        return any(m.stage == stage.value for m in (self.media or []))

    def media_for(self, stage: MediaStage) -> list[str]:
        return [m.reference for m in (self.media or []) if m.stage == stage.value]

    # -------------------------------------------------------------------
    # Approval and negotiation
    # -------------------------------------------------------------------
    def approve(self, actor_id, actor_role, approvals=None):
        """Record approved quantities. Items not listed are approved in full."""
        role = self._begin(Transition.APPROVE, actor_id, actor_role)

        errors = {}
        decided = {}
        for entry in approvals or []:
            reference = entry.get("item_id") or entry.get("sku")
            item = self.find_item(reference)
            if item is None:
                errors.setdefault("item_id", []).append(f"Unknown item: {reference}")
                continue
            qty = self._validated_quantity(item, entry.get("qty_approved"), errors)
            if qty is not None:
                decided[str(item.id)] = qty
        if errors:
            raise ValidationError(errors)

        for item in self.items:
            item.set_approved_quantity(decided.get(str(item.id), item.qty_requested))
        self.manager_id = actor_id
        self._recalculate_totals()
        self._advance(Transition.APPROVE, actor_id, role)

    def confirm(self, actor_id, actor_role):
        """The requester accepts the approved quantities."""
        role = self._begin(Transition.CONFIRM, actor_id, actor_role)
        now = datetime.now(UTC)

        if self.negotiation and self.negotiation.is_open:
            self.negotiation = self.negotiation.resolve(now)
        for item in self.items:
            if item.negotiation and item.negotiation.is_open:
                item.negotiation = item.negotiation.resolve(now)

        self._advance(Transition.CONFIRM, actor_id, role, now)

    @staticmethod
    def normalize_issues(payload) -> list[dict]:
        """Accept a single reason or a list of ``{item_id, reason}``; drop blanks."""
        if isinstance(payload, str):
            reason = payload.strip()
            if not reason:
                raise ValidationError({"reason": ["Issue reason cannot be empty"]})
            return [{"item_id": None, "reason": reason}]

        if isinstance(payload, list):
            issues = [
                {"item_id": entry.get("item_id") or None, "reason": (entry.get("reason") or "").strip()}
                for entry in payload
            ]
            issues = [i for i in issues if i["reason"]]
            if not issues:
                raise ValidationError({"issues": ["No valid issues provided"]})
            return issues

        raise ValidationError({"issues": ["Issues must be a reason or a list of item issues"]})

    def raise_issue(self, actor_id, actor_role, payload) -> list[dict]:
        """The requester disputes the approval; returns the normalized issues."""
        role = self._begin(Transition.RAISE_ISSUE, actor_id, actor_role)
        issues = self.normalize_issues(payload)

        unknown = [i["item_id"] for i in issues if i["item_id"] and self.find_item(i["item_id"]) is None]
        if unknown:
            raise ValidationError({"item_id": [f"Unknown item: {ref}" for ref in unknown]})

        now = datetime.now(UTC)
        for issue in issues:
            if issue["item_id"]:
                item = self.find_item(issue["item_id"])
                issue["item_id"] = str(item.id)
                if not item.negotiation.awaits_manager:
                    item.negotiation = item.negotiation.open(now)

        if len(issues) == 1:
            self.remarks = issues[0]["reason"]
        else:
            self.remarks = " | ".join(f"#{n}: {i['reason']}" for n, i in enumerate(issues, start=1))

        self.negotiation = self.negotiation.open(now)
        self._advance(Transition.RAISE_ISSUE, actor_id, role, now)
        return issues

    def reply(self, actor_id, actor_role, replies) -> list[dict]:
        """The manager answers the raised issue, optionally revising quantities."""
        role = self._begin(Transition.REPLY, actor_id, actor_role)

        errors = {}
        if not replies:
            errors["replies"] = ["At least one reply is required"]

        normalized = []
        for entry in replies or []:
            message = (entry.get("message") or "").strip()
            item = None
            if entry.get("item_id"):
                item = self.find_item(entry["item_id"])
                if item is None:
                    errors.setdefault("item_id", []).append(f"Unknown item: {entry['item_id']}")
                    continue
            if not message:
                errors.setdefault("message", []).append("Reply message cannot be empty")
            qty = entry.get("qty_approved")
            if qty is not None:
                if item is None:
                    errors.setdefault("qty_approved", []).append("A revised quantity must name an item")
                else:
                    qty = self._validated_quantity(item, qty, errors)
            normalized.append({"item": item, "message": message, "qty_approved": qty})
        if errors:
            raise ValidationError(errors)

        now = datetime.now(UTC)
        for entry in normalized:
            item = entry["item"]
            if item is None:
                continue
            if entry["qty_approved"] is not None and entry["qty_approved"] != item.qty_approved:
                item.set_approved_quantity(entry["qty_approved"])
                item.negotiation = item.negotiation.reopen_for_requester(now)
            elif item.negotiation.awaits_manager:
                item.negotiation = item.negotiation.reply(now)

        # Items raised this round but left unanswered are answered by the order-level reply.
        for item in self.items:
            if item.negotiation.awaits_manager:
                item.negotiation = item.negotiation.reply(now)

        self.manager_reply = "\n".join(e["message"] for e in normalized)
        self.manager_id = actor_id
        self.negotiation = self.negotiation.reply(now)
        self._recalculate_totals()
        self._advance(Transition.REPLY, actor_id, role, now)

        return [
            {
                "item_id": str(e["item"].id) if e["item"] else None,
                "message": e["message"],
                "qty_approved": e["qty_approved"],
            }
            for e in normalized
        ]

    # -------------------------------------------------------------------
    # Arranging
    # -------------------------------------------------------------------
    def update_arranging_stage(self, actor_id, actor_role, stage, has_media=False):
        """Advance the arranging substage by exactly one step."""
        assert_may_initiate_any(ARRANGING_EDGES.values(), actor_role, "update the arranging stage of")
        try:
            substage = FulfillmentSubstage(stage)
        except ValueError:
            substage = None
        if substage not in ARRANGING_EDGES:
            raise ValidationError({"arranging_stage": [f"Unknown arranging stage: {stage}"]})

        transition = ARRANGING_EDGES[substage]
        role = self._begin(transition, actor_id, actor_role)

        errors = {}
        self._require_media(transition, has_media, errors)
        if errors:
            raise ValidationError(errors)

        self._advance(transition, actor_id, role)

    def update_arranging_remarks(self, actor_id, actor_role, remarks):
        self._assert_management(actor_role, "update arranging remarks")
        if OrderStatus(self.status) != OrderStatus.ARRANGING:
            raise InvalidStateError("Arranging remarks can only be changed while the order is being arranged")
        if not (remarks or "").strip():
            raise ValidationError({"remarks": ["Remarks cannot be empty"]})

        now = datetime.now(UTC)
        self.arranging_remarks = remarks.strip()
        self.updated_at = now

        self.raise_(
            ArrangingRemarksUpdated(
                order_id=str(self.id),
                remarks=self.arranging_remarks,
                updated_by=str(actor_id),
                updated_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Packaging and transit
    # -------------------------------------------------------------------
    def start_packaging(self, actor_id, actor_role, has_media=False):
        role = self._begin(Transition.START_PACKAGING, actor_id, actor_role)
        errors = {}
        self._require_media(Transition.START_PACKAGING, has_media, errors)
        if errors:
            raise ValidationError(errors)

        if role == Role.PACKAGER:
            self.packager_id = actor_id
        self._advance(Transition.START_PACKAGING, actor_id, role)

    def complete_packaging(self, actor_id, actor_role, has_media=False):
        role = self._begin(Transition.COMPLETE_PACKAGING, actor_id, actor_role)
        errors = {}
        self._require_media(Transition.COMPLETE_PACKAGING, has_media, errors)
        if errors:
            raise ValidationError(errors)

        if role == Role.PACKAGER:
            self.packager_id = actor_id
        self._advance(Transition.COMPLETE_PACKAGING, actor_id, role)

    def dispatch(
        self,
        actor_id,
        actor_role,
        tracking_id=None,
        tracking_link=None,
        expected_delivery_at=None,
        has_media=False,
    ):
        """Hand the order to the courier. Tracking id and link are mandatory."""
        role = self._begin(Transition.DISPATCH, actor_id, actor_role)
        now = datetime.now(UTC)

        errors = {}
        if not (tracking_id or "").strip():
            errors["tracking_id"] = ["Tracking ID is required"]
        if not (tracking_link or "").strip():
            errors["tracking_link"] = ["Tracking link is required"]
        if expected_delivery_at is not None:
            expected = expected_delivery_at
            if expected.tzinfo is None:
                expected = expected.replace(tzinfo=UTC)
            if expected < now:
                errors["expected_delivery_at"] = ["Expected delivery time cannot be in the past"]
        self._require_media(Transition.DISPATCH, has_media, errors)
        if errors:
            raise ValidationError(errors)

        self.tracking = Tracking(tracking_id=tracking_id.strip(), tracking_link=tracking_link.strip())
        self.expected_delivery_at = expected_delivery_at
        if role == Role.DISPATCHER:
            self.dispatcher_id = actor_id
        self._advance(Transition.DISPATCH, actor_id, role, now)

    # -------------------------------------------------------------------
    # Receipt and closure
    # -------------------------------------------------------------------
    def confirm_receipt(self, actor_id, actor_role, has_media=False, auto_close_at=None, received_at=None):
        role = self._begin(Transition.CONFIRM_RECEIPT, actor_id, actor_role)
        errors = {}
        self._require_media(Transition.CONFIRM_RECEIPT, has_media, errors)
        if errors:
            raise ValidationError(errors)

        self.auto_close_at = auto_close_at
        self._advance(Transition.CONFIRM_RECEIPT, actor_id, role, received_at)

    def close(self, actor_id, actor_role):
        role = self._begin(Transition.CLOSE, actor_id, actor_role)
        self.auto_close_at = None
        self._advance(Transition.CLOSE, actor_id, role)

    # -------------------------------------------------------------------
    # Stage media
    # -------------------------------------------------------------------
    def assert_may_attach_media(self, actor_id, actor_role, stage) -> Role:
        """Reject the actor unless they may initiate an edge gated on ``stage``."""
        role = parse_role(actor_role)
        try:
            media_stage = MediaStage(stage)
        except ValueError:
            raise ValidationError({"stage": [f"Unknown media stage: {stage}"]}) from None

        edges = [EDGES[transition] for transition in media_edges(media_stage)]
        permitted = [edge for edge in edges if role in edge.roles]
        if not permitted:
            raise ForbiddenTransitionError(
                f"Role {role.value} is not permitted to attach {media_stage.value} media to this order"
            )
        if all(edge.requester_only for edge in permitted) and str(actor_id) != str(self.requester_id):
            raise ForbiddenTransitionError(
                f"Only the original requester may attach {media_stage.value} media to this order"
            )
        return role

    def attach_media(self, stage, references, uploaded_by):
        """Record proof-of-stage media references."""
        try:
            media_stage = MediaStage(stage)
        except ValueError:
            raise ValidationError({"stage": [f"Unknown media stage: {stage}"]}) from None
        references = [r.strip() for r in references or [] if r and r.strip()]
        if not references:
            raise ValidationError({"media": ["At least one media reference is required"]})
        if OrderStatus(self.status) == OrderStatus.CLOSED:
            raise InvalidStateError("Media cannot be attached to a closed order")

        now = datetime.now(UTC)
        for reference in references:
            self.add_media(
                StageMedia(
                    stage=media_stage.value,
                    reference=reference,
                    uploaded_by=uploaded_by,
                    uploaded_at=now,
                )
            )
        self.updated_at = now

        self.raise_(
            StageMediaAttached(
                order_id=str(self.id),
                stage=media_stage.value,
                references=json.dumps(references),
                uploaded_by=str(uploaded_by),
                attached_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Post-delivery item issues
    # -------------------------------------------------------------------
    def report_received_issues(self, actor_id, actor_role, issues) -> list[dict]:
        """Open item threads for delivery discrepancies without reopening the order."""
        self._assert_requester(actor_id, actor_role, "report issues on received items")
        if OrderStatus(self.status) != OrderStatus.RECEIVED:
            raise InvalidStateError("Delivery issues can only be reported on received orders")

        normalized = self.normalize_issues(issues or [])
        errors = {}
        for issue in normalized:
            if not issue["item_id"]:
                errors.setdefault("item_id", []).append("Each delivery issue must name an item")
            elif self.find_item(issue["item_id"]) is None:
                errors.setdefault("item_id", []).append(f"Unknown item: {issue['item_id']}")
        if errors:
            raise ValidationError(errors)

        now = datetime.now(UTC)
        for issue in normalized:
            item = self.find_item(issue["item_id"])
            issue["item_id"] = str(item.id)
            item.negotiation = item.negotiation.open(now)
        self.updated_at = now

        self.raise_(
            ItemIssueReported(
                order_id=str(self.id),
                order_number=self.order_number,
                item_ids=json.dumps([i["item_id"] for i in normalized]),
                actor_id=str(actor_id),
                reported_at=now,
            )
        )
        return normalized

    def answer_item_issue(self, actor_id, actor_role, item_id):
        role = self._assert_management(actor_role, "answer delivery issues")
        if OrderStatus(self.status) != OrderStatus.RECEIVED:
            raise InvalidStateError("Delivery issues can only be answered on received orders")
        item = self.find_item(item_id)
        if item is None:
            raise ValidationError({"item_id": [f"Unknown item: {item_id}"]})

        now = datetime.now(UTC)
        item.negotiation = item.negotiation.reply(now)
        self.updated_at = now

        self.raise_(
            ItemIssueAnswered(
                order_id=str(self.id),
                order_number=self.order_number,
                item_id=str(item.id),
                actor_id=str(actor_id),
                actor_role=role.value,
                answered_at=now,
            )
        )

    def resolve_item_issue(self, actor_id, actor_role, item_id):
        self._assert_requester(actor_id, actor_role, "resolve delivery issues")
        item = self.find_item(item_id)
        if item is None:
            raise ValidationError({"item_id": [f"Unknown item: {item_id}"]})
        if not item.negotiation.is_open:
            raise InvalidStateError(f"Item {item.sku} has no open issue")

        now = datetime.now(UTC)
        item.negotiation = item.negotiation.resolve(now)
        self.updated_at = now

        self.raise_(
            ItemIssueResolved(
                order_id=str(self.id),
                item_id=str(item.id),
                actor_id=str(actor_id),
                resolved_at=now,
            )
        )
