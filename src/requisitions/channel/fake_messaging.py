"""Fake messaging adapter: records text messages instead of sending them."""

from requisitions.channel.messaging_port import MessagingPort
from requisitions.channel.recording import RecordingChannel


class FakeMessagingAdapter(RecordingChannel, MessagingPort):
    message_prefix = "msg"
    default_failure = "Message delivery failed"

    @property
    def sent_messages(self) -> list[dict]:
        return self.outbox

    def send(self, to: str, text: str) -> dict:
        return self._record(to=to, text=text)
