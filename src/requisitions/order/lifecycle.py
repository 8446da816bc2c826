"""Order lifecycle tables: statuses, roles and the permitted transition graph.

Every edge of the order state machine is described once here: which roles
may initiate it, which (status, substage) pairs it may leave from, where it
lands, which timestamp it stamps and which stage of proof media it needs.
The Order aggregate consults these tables; nothing else encodes the graph.

    REQUESTED → MANAGER_APPROVED → CONFIRMED → ARRANGING → UNDER_PACKAGING
        → PACKAGING_COMPLETED → IN_TRANSIT → RECEIVED → CLOSED
    MANAGER_APPROVED → ISSUE_RAISED → MANAGER_APPROVED   (negotiation loop)
    ARRANGING substages: ARRANGING → ARRANGED → SENT_FOR_PACKAGING
"""

from enum import Enum
from typing import NamedTuple

from protean.exceptions import InvalidStateError, ValidationError

from requisitions.order.errors import ForbiddenTransitionError


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    REQUESTED = "REQUESTED"
    MANAGER_APPROVED = "MANAGER_APPROVED"
    ISSUE_RAISED = "ISSUE_RAISED"
    CONFIRMED = "CONFIRMED"
    ARRANGING = "ARRANGING"
    UNDER_PACKAGING = "UNDER_PACKAGING"
    PACKAGING_COMPLETED = "PACKAGING_COMPLETED"
    IN_TRANSIT = "IN_TRANSIT"
    RECEIVED = "RECEIVED"
    CLOSED = "CLOSED"


class FulfillmentSubstage(Enum):
    ARRANGING = "ARRANGING"
    ARRANGED = "ARRANGED"
    SENT_FOR_PACKAGING = "SENT_FOR_PACKAGING"
    UNDER_PACKAGING = "UNDER_PACKAGING"
    PACKAGING_COMPLETED = "PACKAGING_COMPLETED"


class Role(Enum):
    BRANCH_USER = "BRANCH_USER"
    MANAGER = "MANAGER"
    ADMIN = "ADMIN"
    PACKAGER = "PACKAGER"
    DISPATCHER = "DISPATCHER"
    SYSTEM = "SYSTEM"


class MediaStage(Enum):
    ARRANGING = "ARRANGING"
    PACKAGING = "PACKAGING"
    TRANSIT = "TRANSIT"
    RECEIPT = "RECEIPT"


class Transition(Enum):
    APPROVE = "approve"
    CONFIRM = "confirm"
    RAISE_ISSUE = "raise_issue"
    REPLY = "reply"
    START_ARRANGING = "start_arranging"
    MARK_ARRANGED = "mark_arranged"
    SEND_FOR_PACKAGING = "send_for_packaging"
    START_PACKAGING = "start_packaging"
    COMPLETE_PACKAGING = "complete_packaging"
    DISPATCH = "dispatch"
    CONFIRM_RECEIPT = "confirm_receipt"
    CLOSE = "close"


# ---------------------------------------------------------------------------
# Transition graph
# ---------------------------------------------------------------------------
class Edge(NamedTuple):
    roles: frozenset
    sources: frozenset
    target: tuple
    timestamp: str | None = None
    media_stage: MediaStage | None = None
    requester_only: bool = False


_MANAGEMENT = frozenset({Role.MANAGER, Role.ADMIN})

_S = OrderStatus
_SUB = FulfillmentSubstage

EDGES: dict[Transition, Edge] = {
    Transition.APPROVE: Edge(
        roles=_MANAGEMENT,
        sources=frozenset({(_S.REQUESTED, None)}),
        target=(_S.MANAGER_APPROVED, None),
        timestamp="approved_at",
    ),
    Transition.CONFIRM: Edge(
        roles=frozenset({Role.BRANCH_USER}),
        sources=frozenset({(_S.MANAGER_APPROVED, None)}),
        target=(_S.CONFIRMED, None),
        timestamp="confirmed_at",
        requester_only=True,
    ),
    Transition.RAISE_ISSUE: Edge(
        roles=frozenset({Role.BRANCH_USER}),
        sources=frozenset({(_S.MANAGER_APPROVED, None)}),
        target=(_S.ISSUE_RAISED, None),
        requester_only=True,
    ),
    Transition.REPLY: Edge(
        roles=_MANAGEMENT,
        sources=frozenset({(_S.ISSUE_RAISED, None)}),
        target=(_S.MANAGER_APPROVED, None),
    ),
    Transition.START_ARRANGING: Edge(
        roles=_MANAGEMENT,
        sources=frozenset({(_S.CONFIRMED, None)}),
        target=(_S.ARRANGING, _SUB.ARRANGING),
        timestamp="arranging_started_at",
    ),
    Transition.MARK_ARRANGED: Edge(
        roles=_MANAGEMENT,
        sources=frozenset({(_S.ARRANGING, _SUB.ARRANGING)}),
        target=(_S.ARRANGING, _SUB.ARRANGED),
        timestamp="arranging_completed_at",
        media_stage=MediaStage.ARRANGING,
    ),
    Transition.SEND_FOR_PACKAGING: Edge(
        roles=_MANAGEMENT,
        sources=frozenset({(_S.ARRANGING, _SUB.ARRANGED)}),
        target=(_S.ARRANGING, _SUB.SENT_FOR_PACKAGING),
        timestamp="sent_for_packaging_at",
        media_stage=MediaStage.ARRANGING,
    ),
    Transition.START_PACKAGING: Edge(
        roles=frozenset({Role.PACKAGER}) | _MANAGEMENT,
        sources=frozenset({(_S.ARRANGING, _SUB.SENT_FOR_PACKAGING)}),
        target=(_S.UNDER_PACKAGING, _SUB.UNDER_PACKAGING),
        timestamp="packaging_started_at",
        media_stage=MediaStage.PACKAGING,
    ),
    Transition.COMPLETE_PACKAGING: Edge(
        roles=frozenset({Role.PACKAGER}) | _MANAGEMENT,
        sources=frozenset({(_S.UNDER_PACKAGING, _SUB.UNDER_PACKAGING)}),
        target=(_S.PACKAGING_COMPLETED, _SUB.PACKAGING_COMPLETED),
        timestamp="packaging_completed_at",
        media_stage=MediaStage.PACKAGING,
    ),
    Transition.DISPATCH: Edge(
        roles=frozenset({Role.DISPATCHER}) | _MANAGEMENT,
        sources=frozenset({(_S.PACKAGING_COMPLETED, _SUB.PACKAGING_COMPLETED)}),
        target=(_S.IN_TRANSIT, None),
        timestamp="dispatched_at",
        media_stage=MediaStage.TRANSIT,
    ),
    Transition.CONFIRM_RECEIPT: Edge(
        roles=frozenset({Role.BRANCH_USER}),
        sources=frozenset({(_S.IN_TRANSIT, None)}),
        target=(_S.RECEIVED, None),
        timestamp="received_at",
        media_stage=MediaStage.RECEIPT,
        requester_only=True,
    ),
    Transition.CLOSE: Edge(
        roles=frozenset({Role.SYSTEM}) | _MANAGEMENT,
        sources=frozenset({(_S.RECEIVED, None)}),
        target=(_S.CLOSED, None),
        timestamp="closed_at",
    ),
}

# Arranging substage requested by name → the edge that reaches it.
ARRANGING_EDGES = {
    _SUB.ARRANGING: Transition.START_ARRANGING,
    _SUB.ARRANGED: Transition.MARK_ARRANGED,
    _SUB.SENT_FOR_PACKAGING: Transition.SEND_FOR_PACKAGING,
}

# Target status requested through the generic status update → edge.
STATUS_UPDATE_EDGES = {
    _S.UNDER_PACKAGING: Transition.START_PACKAGING,
    _S.PACKAGING_COMPLETED: Transition.COMPLETE_PACKAGING,
    _S.IN_TRANSIT: Transition.DISPATCH,
}


def parse_role(value) -> Role:
    """Coerce a role string into a Role, rejecting unknown roles."""
    if isinstance(value, Role):
        return value
    try:
        return Role(value)
    except ValueError:
        raise ValidationError({"actor_role": [f"Unknown role: {value}"]}) from None


def assert_actor_allowed(
    transition: Transition,
    actor_id: str,
    actor_role,
    requester_id: str,
) -> Role:
    """Reject the actor unless their role may initiate the edge."""
    edge = EDGES[transition]
    role = parse_role(actor_role)

    if role not in edge.roles:
        raise ForbiddenTransitionError(
            f"Role {role.value} is not permitted to {transition.value} this order"
        )
    if edge.requester_only and str(actor_id) != str(requester_id):
        raise ForbiddenTransitionError(
            f"Only the original requester may {transition.value} this order"
        )
    return role


def assert_may_initiate_any(transitions, actor_role, action: str) -> Role:
    """Reject the actor unless their role may initiate at least one of ``transitions``."""
    role = parse_role(actor_role)
    if not any(role in EDGES[transition].roles for transition in transitions):
        raise ForbiddenTransitionError(f"Role {role.value} is not permitted to {action} this order")
    return role


def media_edges(stage: MediaStage) -> list[Transition]:
    """Edges whose proof photos are collected at ``stage``."""
    return [transition for transition, edge in EDGES.items() if edge.media_stage == stage]


def assert_source_state(transition: Transition, status, substage) -> None:
    """Reject the edge unless the order currently sits on one of its sources."""
    current = (OrderStatus(status), FulfillmentSubstage(substage) if substage else None)
    if current not in EDGES[transition].sources:
        label = current[0].value if current[1] is None else f"{current[0].value}/{current[1].value}"
        raise InvalidStateError(f"Cannot {transition.value} an order in {label}")
