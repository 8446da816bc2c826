"""Channel registry: the email and messaging adapters used by the fan-out.

A ``ChannelRegistry`` is built explicitly, either from environment settings
or from adapters handed in by tests, and installed once. A channel without
settings gets an unconfigured adapter whose sends fail softly.

Environment:
    SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASSWORD, SMTP_FROM
    MESSAGING_API_URL, MESSAGING_API_KEY, MESSAGING_SENDER
"""

import os
from dataclasses import dataclass

import structlog

from requisitions.channel.email_port import EmailPort
from requisitions.channel.messaging_port import MessagingPort

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ChannelRegistry:
    email: EmailPort
    messaging: MessagingPort

    @classmethod
    def from_environment(cls, environ=None, timeout: float = 15) -> "ChannelRegistry":
        environ = os.environ if environ is None else environ

        if environ.get("SMTP_HOST"):
            from requisitions.channel.smtp_email import SmtpEmailAdapter

            email = SmtpEmailAdapter(
                host=environ["SMTP_HOST"],
                port=int(environ.get("SMTP_PORT", 587)),
                username=environ.get("SMTP_USER"),
                password=environ.get("SMTP_PASSWORD"),
                sender=environ.get("SMTP_FROM"),
                timeout=timeout,
            )
        else:
            from requisitions.channel.unconfigured import UnconfiguredEmailAdapter

            logger.warning("Email channel not configured, emails will not be sent")
            email = UnconfiguredEmailAdapter()

        if environ.get("MESSAGING_API_URL") and environ.get("MESSAGING_API_KEY"):
            from requisitions.channel.http_messaging import HttpMessagingAdapter

            messaging = HttpMessagingAdapter(
                api_url=environ["MESSAGING_API_URL"],
                api_key=environ["MESSAGING_API_KEY"],
                sender=environ.get("MESSAGING_SENDER"),
                timeout=timeout,
            )
        else:
            from requisitions.channel.unconfigured import UnconfiguredMessagingAdapter

            logger.warning("Messaging channel not configured, messages will not be sent")
            messaging = UnconfiguredMessagingAdapter()

        return cls(email=email, messaging=messaging)


_registry: ChannelRegistry | None = None


def install_channels(registry: ChannelRegistry) -> ChannelRegistry:
    """Install the registry used by the notification fan-out."""
    global _registry
    _registry = registry
    return registry


def get_channels() -> ChannelRegistry:
    """Return the installed registry, building one from the environment on first use."""
    global _registry
    if _registry is None:
        from protean.utils.globals import current_domain

        timeout = current_domain.config.get("custom", {}).get("CHANNEL_TIMEOUT_SECONDS", 15)
        _registry = ChannelRegistry.from_environment(timeout=timeout)
    return _registry


def reset_channels():
    """Drop the installed registry (useful for testing)."""
    global _registry
    _registry = None
