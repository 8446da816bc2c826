"""Email channel port."""

from abc import ABC, abstractmethod


class EmailPort(ABC):
    """Sends one HTML email (with an optional plain-text part) to one address."""

    @abstractmethod
    def send(self, to: str, subject: str, html: str, text: str | None = None) -> dict:
        """Deliver the email. Failures are returned, not raised.

        Returns:
            dict with keys: success (bool), message_id (str or None), error (str or None)
        """
        ...
