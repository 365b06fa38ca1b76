"""Operator-initiated test email, not tied to any user."""

import structlog
from mailroom.delivery.dispatcher import get_dispatcher
from mailroom.delivery.record import NotificationType

logger = structlog.get_logger(__name__)


def send_test_notification(recipient_email: str, subject: str, content: str) -> str:
    """Dispatch a plain-text PROMOTIONAL email and return the new record id."""
    logger.info("Sending test notification", recipient=recipient_email)
    return get_dispatcher().dispatch(
        recipient_email,
        subject,
        content,
        NotificationType.PROMOTIONAL.value,
    )
