"""Messaging channel port: abstract interface for short text messages."""

from abc import ABC, abstractmethod


class MessagingPort(ABC):
    """Abstract interface for messaging (WhatsApp, SMS gateway) adapters."""

    @abstractmethod
    def send(self, to: str, text: str) -> dict:
        """Send a text message. Never raises.

        Returns:
            dict with keys: success (bool), message_id (str or None), error (str or None)
        """
        ...
