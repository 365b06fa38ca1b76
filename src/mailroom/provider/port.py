"""Email delivery provider port — the send capability the dispatcher depends on.

Concrete providers (Amazon SES, SMTP relay, the in-memory fake) implement
both variants. A provider signals failure by raising ``DeliveryError``;
returning normally means the message was accepted for delivery.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


class DeliveryError(Exception):
    """The provider could not hand the message over (network, auth, recipient, quota)."""


@dataclass(frozen=True)
class SendReceipt:
    """Acknowledgement returned by a provider for an accepted message."""

    provider: str
    message_id: str | None = None


class DeliveryProvider(ABC):
    """Abstract interface for email delivery backends."""

    name: str = "abstract"

    @abstractmethod
    def send_plain_text(self, to: str, subject: str, body: str) -> SendReceipt:
        """Send a plain-text message."""
        ...

    @abstractmethod
    def send_html(self, to: str, subject: str, html_body: str) -> SendReceipt:
        """Send an HTML message."""
        ...
