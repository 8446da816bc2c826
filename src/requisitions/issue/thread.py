"""Reading an order's issue thread."""

from protean.utils.globals import current_domain

from requisitions.issue.message import IssueMessage

GENERAL_BUCKET = "general"


def list_thread(order_id) -> dict[str, list[dict]]:
    """All messages of an order grouped by item, oldest first.

    Order-level messages are collected under ``"general"``. Ties on
    ``created_at`` are broken by message id so repeated reads are identical.
    """
    messages = (
        current_domain.repository_for(IssueMessage)
        ._dao.query.filter(order_id=str(order_id))
        .limit(None)
        .all()
        .items
    )
    messages = sorted(messages, key=lambda m: (m.created_at, str(m.id)))

    thread: dict[str, list[dict]] = {GENERAL_BUCKET: []}
    for message in messages:
        key = str(message.item_id) if message.item_id else GENERAL_BUCKET
        thread.setdefault(key, []).append(message.as_thread_entry())
    return thread
