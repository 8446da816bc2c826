"""Typed failures raised by the order state machine.

The HTTP layer maps each of these onto a stable error code; the domain only
raises. Invalid source states use protean's InvalidStateError directly and
missing or out-of-range payload fields use protean's ValidationError.
"""

from enum import Enum

from protean.exceptions import ExpectedVersionError, InvalidOperationError


class ErrorCode(Enum):
    FORBIDDEN_TRANSITION = "FORBIDDEN_TRANSITION"
    INVALID_STATE = "INVALID_STATE"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONCURRENCY_CONFLICT = "CONCURRENCY_CONFLICT"
    NOT_FOUND = "NOT_FOUND"
    CHANNEL_FAILURE = "CHANNEL_FAILURE"


class ForbiddenTransitionError(InvalidOperationError):
    """The actor's role may not initiate the requested edge."""

    code = ErrorCode.FORBIDDEN_TRANSITION


class ConcurrencyConflictError(ExpectedVersionError):
    """The order changed since the caller last read it."""

    code = ErrorCode.CONCURRENCY_CONFLICT
