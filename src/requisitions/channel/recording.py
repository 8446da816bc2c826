"""In-memory channel used by tests and local runs: keeps what it was asked to send."""

from uuid import uuid4


class RecordingChannel:
    """Appends every accepted send to ``outbox``; can be switched to fail."""

    message_prefix = "sent"
    default_failure = "Delivery failed"

    def __init__(self):
        self.outbox: list[dict] = []
        self.should_succeed = True
        self.failure_reason = self.default_failure

    def configure(self, should_succeed: bool = True, failure_reason: str | None = None):
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason or self.default_failure

    def reset(self):
        self.outbox.clear()
        self.configure()

    def _record(self, **fields) -> dict:
        if not self.should_succeed:
            return {"success": False, "message_id": None, "error": self.failure_reason}

        message_id = f"{self.message_prefix}-{uuid4().hex[:12]}"
        self.outbox.append({"message_id": message_id, **fields})
        return {"success": True, "message_id": message_id, "error": None}
