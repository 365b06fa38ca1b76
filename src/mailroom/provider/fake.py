"""Fake email provider — records sent messages for testing and local runs."""

from uuid import uuid4

from mailroom.provider.port import DeliveryError, DeliveryProvider, SendReceipt


class FakeProvider(DeliveryProvider):
    """Provider that keeps messages in memory for test assertions."""

    name = "fake"

    def __init__(self):
        self.sent_emails: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Email delivery failed"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Email delivery failed"):
        """Configure the fake provider behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def _record(self, to: str, subject: str, body: str, html: bool) -> SendReceipt:
        if not self.should_succeed:
            raise DeliveryError(self.failure_reason)

        message_id = f"email-{uuid4().hex[:12]}"
        self.sent_emails.append(
            {
                "message_id": message_id,
                "to": to,
                "subject": subject,
                "body": body,
                "html": html,
            }
        )
        return SendReceipt(provider=self.name, message_id=message_id)

    def send_plain_text(self, to: str, subject: str, body: str) -> SendReceipt:
        return self._record(to, subject, body, html=False)

    def send_html(self, to: str, subject: str, html_body: str) -> SendReceipt:
        return self._record(to, subject, html_body, html=True)

    def reset(self):
        """Clear sent emails (useful between tests)."""
        self.sent_emails.clear()
        self.should_succeed = True
        self.failure_reason = "Email delivery failed"
