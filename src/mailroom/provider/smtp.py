"""SMTP relay email provider.

Opens one connection per message with a socket timeout, upgrades to TLS when
configured and authenticates only when credentials are present.
"""

import smtplib
from email.message import EmailMessage

import structlog
from mailroom.provider.port import DeliveryError, DeliveryProvider, SendReceipt

logger = structlog.get_logger(__name__)


class SMTPProvider(DeliveryProvider):
    """Delivers through a plain SMTP relay."""

    name = "smtp"

    def __init__(
        self,
        from_email: str,
        host: str = "localhost",
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self.from_email = from_email
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def _build_message(self, to: str, subject: str, body: str, html: bool) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.from_email
        message["To"] = to
        message["Subject"] = subject
        if html:
            message.set_content(body, subtype="html", charset="utf-8")
        else:
            message.set_content(body, charset="utf-8")
        return message

    def _send(self, message: EmailMessage) -> SendReceipt:
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning("SMTP delivery failed", to=message["To"], host=self.host, error=str(exc))
            raise DeliveryError(str(exc) or exc.__class__.__name__) from exc

        logger.info("Email sent via SMTP", to=message["To"], host=self.host)
        return SendReceipt(provider=self.name, message_id=message.get("Message-ID"))

    def send_plain_text(self, to: str, subject: str, body: str) -> SendReceipt:
        return self._send(self._build_message(to, subject, body, html=False))

    def send_html(self, to: str, subject: str, html_body: str) -> SendReceipt:
        return self._send(self._build_message(to, subject, html_body, html=True))
