"""Automatic closure of received orders.

Designed to be triggered once a day by an external scheduler (cron, K8s
CronJob) through ``manage.py close-due-orders``. Every RECEIVED order whose
``auto_close_at`` has passed is closed with the SYSTEM actor.

Each order is closed by its own ``CloseOrder`` command, so each commits in
its own unit of work. A failure on one order, including a version conflict
at commit when someone closed it at the same moment, is logged and the run
moves on to the next. Call ``close_due_orders`` outside any unit of work.
"""

from datetime import UTC, datetime

import structlog
from protean.exceptions import (
    ExpectedVersionError,
    InvalidOperationError,
    InvalidStateError,
    ObjectNotFoundError,
    TransactionError,
    ValidationError,
)
from protean.utils.globals import current_domain

from requisitions.order.lifecycle import OrderStatus, Role
from requisitions.order.order import Order
from requisitions.order.progress import CloseOrder

logger = structlog.get_logger(__name__)

SYSTEM_ACTOR_ID = "SYSTEM_AUTO"

_SKIPPABLE = (
    ValidationError,
    InvalidStateError,
    InvalidOperationError,
    ObjectNotFoundError,
    ExpectedVersionError,
    TransactionError,
)


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)


def due_orders(as_of: datetime) -> list[Order]:
    """RECEIVED orders whose auto-close time is at or before ``as_of``."""
    received = (
        current_domain.repository_for(Order)
        ._dao.query.filter(status=OrderStatus.RECEIVED.value)
        .limit(None)
        .all()
        .items
    )
    return [o for o in received if o.auto_close_at and _as_utc(o.auto_close_at) <= as_of]


def close_due_orders(as_of: datetime | None = None) -> int:
    """Close every received order whose auto-close time has passed.

    Returns the number of orders closed by this run.
    """
    as_of = _as_utc(as_of or datetime.now(UTC))
    due = due_orders(as_of)

    logger.info("Checking for orders due to auto-close", as_of=as_of.isoformat(), due=len(due))
    if not due:
        return 0

    closed_count = 0
    for candidate in due:
        try:
            current_domain.process(
                CloseOrder(
                    order_id=str(candidate.id),
                    actor_id=SYSTEM_ACTOR_ID,
                    actor_role=Role.SYSTEM.value,
                    expected_version=candidate._version,
                ),
                asynchronous=False,
            )
        except _SKIPPABLE as exc:
            logger.warning(
                "Failed to auto-close order",
                order_id=str(candidate.id),
                order_number=candidate.order_number,
                error=str(exc),
            )
            continue

        closed_count += 1
        logger.info(
            "Auto-closed order",
            order_id=str(candidate.id),
            order_number=candidate.order_number,
            auto_close_at=str(candidate.auto_close_at),
        )

    logger.info("Auto-close run complete", closed_count=closed_count)
    return closed_count
