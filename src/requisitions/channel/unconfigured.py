"""Adapters installed when a channel has no settings. Every send fails softly."""

from requisitions.channel.email_port import EmailPort
from requisitions.channel.messaging_port import MessagingPort


class UnconfiguredEmailAdapter(EmailPort):
    def send(self, to: str, subject: str, html: str, text: str | None = None) -> dict:
        return {"success": False, "message_id": None, "error": "Email channel is not configured"}


class UnconfiguredMessagingAdapter(MessagingPort):
    def send(self, to: str, text: str) -> dict:
        return {"success": False, "message_id": None, "error": "Messaging channel is not configured"}
