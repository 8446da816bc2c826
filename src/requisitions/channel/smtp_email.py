"""SMTP email adapter.

The connection is opened and verified on first use and reused for later
sends. Any transport failure drops the connection so the next send starts
afresh, and is reported as a failed result rather than raised.
"""

import smtplib
from email.message import EmailMessage
from email.utils import make_msgid

import structlog

from requisitions.channel.email_port import EmailPort

logger = structlog.get_logger(__name__)


class SmtpEmailAdapter(EmailPort):
    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        sender: str | None = None,
        timeout: float = 15,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender or username
        self.timeout = timeout
        self._connection: smtplib.SMTP | None = None

    def _connect(self) -> smtplib.SMTP:
        if self._connection is None:
            if self.port == 465:
                connection = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
            else:
                connection = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
                connection.starttls()
            if self.username and self.password:
                connection.login(self.username, self.password)
            connection.noop()
            self._connection = connection
            logger.info("SMTP connection established", host=self.host, port=self.port)
        return self._connection

    def _drop_connection(self) -> None:
        connection, self._connection = self._connection, None
        if connection is not None:
            try:
                connection.close()
            except (smtplib.SMTPException, OSError) as exc:
                logger.debug("Error closing SMTP connection", error=str(exc))

    def send(self, to: str, subject: str, html: str, text: str | None = None) -> dict:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message["Message-ID"] = make_msgid()
        message.set_content(text or "")
        message.add_alternative(html, subtype="html")

        try:
            self._connect().send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            self._drop_connection()
            logger.warning("Email send failed", to=to, subject=subject, error=str(exc))
            return {"success": False, "message_id": None, "error": str(exc)}

        return {"success": True, "message_id": message["Message-ID"], "error": None}

    def close(self) -> None:
        self._drop_connection()
