"""Amazon SES email provider.

Uses boto3's SES client. The client is created lazily on first send so the
service can start without AWS credentials when another provider is selected.
Connect and read timeouts bound every call.
"""

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from mailroom.provider.port import DeliveryError, DeliveryProvider, SendReceipt

logger = structlog.get_logger(__name__)

_CHARSET = "UTF-8"


class SESProvider(DeliveryProvider):
    """Delivers through the Amazon Simple Email Service API."""

    name = "ses"

    def __init__(
        self,
        from_email: str,
        region: str = "us-east-1",
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        timeout: float = 10.0,
        client=None,
    ) -> None:
        self.from_email = from_email
        self.region = region
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key
        self.timeout = timeout
        self._client = client

    def _get_client(self):
        if self._client is None:
            kwargs = {
                "region_name": self.region,
                "config": Config(
                    connect_timeout=self.timeout,
                    read_timeout=self.timeout,
                    retries={"max_attempts": 2, "mode": "standard"},
                ),
            }
            # Without explicit keys boto3 falls back to its default credential chain
            if self.access_key_id and self.secret_access_key:
                kwargs["aws_access_key_id"] = self.access_key_id
                kwargs["aws_secret_access_key"] = self.secret_access_key
            self._client = boto3.client("ses", **kwargs)
        return self._client

    def _send(self, to: str, subject: str, body: dict) -> SendReceipt:
        try:
            response = self._get_client().send_email(
                Source=self.from_email,
                Destination={"ToAddresses": [to]},
                Message={
                    "Subject": {"Data": subject, "Charset": _CHARSET},
                    "Body": body,
                },
            )
        except ClientError as exc:
            error = exc.response.get("Error", {})
            message = f"{error.get('Code', 'ClientError')}: {error.get('Message', str(exc))}"
            logger.warning("SES rejected message", to=to, error=message)
            raise DeliveryError(message) from exc
        except BotoCoreError as exc:
            logger.warning("SES request failed", to=to, error=str(exc))
            raise DeliveryError(str(exc)) from exc

        message_id = response.get("MessageId")
        logger.info("Email sent via SES", to=to, message_id=message_id)
        return SendReceipt(provider=self.name, message_id=message_id)

    def send_plain_text(self, to: str, subject: str, body: str) -> SendReceipt:
        return self._send(to, subject, {"Text": {"Data": body, "Charset": _CHARSET}})

    def send_html(self, to: str, subject: str, html_body: str) -> SendReceipt:
        return self._send(to, subject, {"Html": {"Data": html_body, "Charset": _CHARSET}})
