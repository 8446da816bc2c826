"""Negotiation: the open-until-confirmed issue loop, reusable at two scopes.

The same primitive tracks the order-level issue loop (requester raises,
manager replies, requester confirms) and each item's own thread, including
post-delivery discrepancy reports. Rounds are unbounded; the loop only ends
when the requester resolves it.

    IDLE → AWAITING_MANAGER → AWAITING_REQUESTER → RESOLVED
    AWAITING_REQUESTER → AWAITING_MANAGER   (raised again)
    RESOLVED → AWAITING_MANAGER             (new round)
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import InvalidStateError
from protean.fields import DateTime, Integer, String

from requisitions.domain import requisitions


class NegotiationScope(Enum):
    ORDER = "ORDER"
    ITEM = "ITEM"


class NegotiationState(Enum):
    IDLE = "IDLE"
    AWAITING_MANAGER = "AWAITING_MANAGER"
    AWAITING_REQUESTER = "AWAITING_REQUESTER"
    RESOLVED = "RESOLVED"


_CAN_OPEN = {NegotiationState.IDLE, NegotiationState.AWAITING_REQUESTER, NegotiationState.RESOLVED}


@requisitions.value_object(part_of="Order")
class Negotiation:
    """Where one issue loop stands. Immutable: every step returns a new value."""

    scope = String(max_length=10, choices=NegotiationScope, default=NegotiationScope.ORDER.value)
    state = String(max_length=30, choices=NegotiationState, default=NegotiationState.IDLE.value)
    rounds = Integer(default=0, min_value=0)
    opened_at = DateTime()
    last_activity_at = DateTime()

    @classmethod
    def start(cls, scope: NegotiationScope) -> "Negotiation":
        return cls(scope=scope.value, state=NegotiationState.IDLE.value, rounds=0)

    @property
    def is_open(self) -> bool:
        return NegotiationState(self.state) in (
            NegotiationState.AWAITING_MANAGER,
            NegotiationState.AWAITING_REQUESTER,
        )

    @property
    def awaits_manager(self) -> bool:
        return NegotiationState(self.state) == NegotiationState.AWAITING_MANAGER

    def _step(self, state: NegotiationState, at=None, new_round=False) -> "Negotiation":
        now = at or datetime.now(UTC)
        return Negotiation(
            scope=self.scope,
            state=state.value,
            rounds=(self.rounds or 0) + (1 if new_round else 0),
            opened_at=now if new_round else self.opened_at,
            last_activity_at=now,
        )

    def open(self, at=None) -> "Negotiation":
        """The requester raises a concern; the manager now owes a reply."""
        if NegotiationState(self.state) not in _CAN_OPEN:
            raise InvalidStateError(f"{self.scope.lower()} issue is already awaiting a manager reply")
        return self._step(NegotiationState.AWAITING_MANAGER, at, new_round=True)

    def reply(self, at=None) -> "Negotiation":
        """The manager answered; the requester must re-confirm."""
        if NegotiationState(self.state) != NegotiationState.AWAITING_MANAGER:
            raise InvalidStateError(f"No open {self.scope.lower()} issue is awaiting a reply")
        return self._step(NegotiationState.AWAITING_REQUESTER, at)

    def reopen_for_requester(self, at=None) -> "Negotiation":
        """A manager revised terms unprompted; the requester must re-confirm."""
        return self._step(NegotiationState.AWAITING_REQUESTER, at)

    def resolve(self, at=None) -> "Negotiation":
        """The requester accepted the current terms."""
        if NegotiationState(self.state) == NegotiationState.AWAITING_MANAGER:
            raise InvalidStateError(f"The {self.scope.lower()} issue is still awaiting a manager reply")
        return self._step(NegotiationState.RESOLVED, at)
