"""HTTP messaging adapter: a WhatsApp-style text API behind a bearer token.

Posts ``{"to", "from", "message"}`` to ``{api_url}/messages/text`` and reads
the provider's message id from ``data.id`` in the response.
"""

import requests
import structlog

from requisitions.channel.messaging_port import MessagingPort

logger = structlog.get_logger(__name__)


class HttpMessagingAdapter(MessagingPort):
    def __init__(self, api_url: str, api_key: str, sender: str | None = None, timeout: float = 15):
        self.api_url = api_url.rstrip("/")
        self.sender = sender
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
        )

    def send(self, to: str, text: str) -> dict:
        payload = {"to": to, "from": self.sender, "message": text}
        try:
            response = self.session.post(f"{self.api_url}/messages/text", json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("Message send failed", to=to, error=str(exc))
            return {"success": False, "message_id": None, "error": str(exc)}

        try:
            body = response.json()
        except ValueError:
            body = {}
        message_id = (body.get("data") or {}).get("id") if isinstance(body, dict) else None
        return {"success": True, "message_id": message_id, "error": None}
