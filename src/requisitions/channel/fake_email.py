"""Fake email adapter: records emails instead of sending them."""

from requisitions.channel.email_port import EmailPort
from requisitions.channel.recording import RecordingChannel


class FakeEmailAdapter(RecordingChannel, EmailPort):
    message_prefix = "email"
    default_failure = "Email delivery failed"

    @property
    def sent_emails(self) -> list[dict]:
        return self.outbox

    def send(self, to: str, subject: str, html: str, text: str | None = None) -> dict:
        return self._record(to=to, subject=subject, html=html, text=text)
