"""Requisitions bounded context: internal stock requests from branch to receipt.

Drives the order fulfillment lifecycle (approval, negotiation, arranging,
packaging, transit, receipt and closure), keeps the append-only issue
ledger between branch requesters and managers, and fans every committed
transition out to in-app, email and messaging notifications.
"""

import structlog
from protean.domain import Domain

requisitions = Domain(name="requisitions")

logger = structlog.get_logger(__name__)
