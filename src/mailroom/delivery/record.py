"""DeliveryRecord aggregate (CQRS): audit row for one delivery attempt.

Every dispatch produces exactly one record in PENDING, followed by exactly one
terminal write (SENT or FAILED). Operators can hand a FAILED record back for
another attempt, which moves it to RETRY and creates a brand new record.

State Machine (4 states):
    PENDING → SENT
    PENDING → FAILED → (retry) → RETRY
    RETRY → FAILED only when the dispatcher refused the new attempt
"""

from datetime import UTC, datetime
from enum import Enum

from mailroom.delivery.events import (
    DeliveryFailed,
    DeliveryRecorded,
    DeliveryRetried,
    DeliveryRetryAborted,
    DeliverySent,
)
from mailroom.domain import mailroom
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

ERROR_MESSAGE_MAX_LENGTH = 1000


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class NotificationType(Enum):
    USER_REGISTRATION = "USER_REGISTRATION"
    PASSWORD_RESET = "PASSWORD_RESET"
    ORDER_CONFIRMATION = "ORDER_CONFIRMATION"
    ORDER_SHIPPED = "ORDER_SHIPPED"
    ORDER_DELIVERED = "ORDER_DELIVERED"
    PAYMENT_SUCCESS = "PAYMENT_SUCCESS"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    ORDER_CANCELLED = "ORDER_CANCELLED"
    WELCOME_EMAIL = "WELCOME_EMAIL"
    PROMOTIONAL = "PROMOTIONAL"


class DeliveryStatus(Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"
    RETRY = "RETRY"


# ---------------------------------------------------------------------------
# State Machine
# ---------------------------------------------------------------------------
_VALID_TRANSITIONS = {
    DeliveryStatus.PENDING: {
        DeliveryStatus.SENT,
        DeliveryStatus.FAILED,
    },
    DeliveryStatus.FAILED: {
        DeliveryStatus.RETRY,
    },
    DeliveryStatus.SENT: set(),  # Terminal
    DeliveryStatus.RETRY: set(),  # Superseded by the new attempt
}


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@mailroom.aggregate
class DeliveryRecord:
    """One email delivery attempt and its lifecycle."""

    # Recipient
    user_id: Integer()
    recipient_email: String(required=True, max_length=320)

    # Materialized message, stored verbatim (no markup escaping)
    subject: String(required=True, max_length=500, sanitize=False)
    content: Text(required=True, sanitize=False)
    is_html: Boolean(default=False)

    notification_type: String(choices=NotificationType, required=True)

    # Status
    status: String(choices=DeliveryStatus, default=DeliveryStatus.PENDING.value)
    error_message: String(max_length=ERROR_MESSAGE_MAX_LENGTH, sanitize=False)

    # Source event correlation
    order_id: Integer()
    reset_token: String(max_length=255)

    # Set on the new attempt when an operator retries a failed record
    retry_of: Identifier()

    # Timestamps
    created_at: DateTime()
    updated_at: DateTime()
    sent_at: DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        recipient_email,
        subject,
        content,
        notification_type,
        user_id=None,
        is_html=False,
        order_id=None,
        reset_token=None,
        retry_of=None,
    ):
        """Record a new delivery attempt in PENDING status."""
        now = datetime.now(UTC)

        record = cls(
            user_id=user_id,
            recipient_email=recipient_email,
            subject=subject,
            content=content,
            is_html=is_html,
            notification_type=notification_type,
            status=DeliveryStatus.PENDING.value,
            order_id=order_id,
            reset_token=reset_token,
            retry_of=retry_of,
            created_at=now,
            updated_at=now,
        )

        record.raise_(
            DeliveryRecorded(
                delivery_id=str(record.id),
                user_id=user_id,
                recipient_email=recipient_email,
                notification_type=notification_type,
                subject=subject,
                retry_of=retry_of,
                created_at=now,
            )
        )

        return record

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        current = DeliveryStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def mark_sent(self, sent_at=None):
        """Mark the attempt as accepted by the provider."""
        self._assert_can_transition(DeliveryStatus.SENT)

        now = sent_at or datetime.now(UTC)
        self.status = DeliveryStatus.SENT.value
        self.sent_at = now
        self.updated_at = now

        self.raise_(
            DeliverySent(
                delivery_id=str(self.id),
                recipient_email=self.recipient_email,
                sent_at=now,
            )
        )

    def mark_failed(self, reason):
        """Mark the attempt as failed, keeping the provider's error text."""
        self._assert_can_transition(DeliveryStatus.FAILED)

        reason = (reason or "Unknown delivery error")[:ERROR_MESSAGE_MAX_LENGTH]
        now = datetime.now(UTC)
        self.status = DeliveryStatus.FAILED.value
        self.error_message = reason
        self.updated_at = now

        self.raise_(
            DeliveryFailed(
                delivery_id=str(self.id),
                recipient_email=self.recipient_email,
                reason=reason,
                failed_at=now,
            )
        )

    def mark_for_retry(self):
        """Hand a failed attempt back for a fresh dispatch."""
        if DeliveryStatus(self.status) != DeliveryStatus.FAILED:
            raise ValidationError({"status": ["Only failed deliveries can be retried"]})

        now = datetime.now(UTC)
        self.status = DeliveryStatus.RETRY.value
        self.error_message = None
        self.updated_at = now

        self.raise_(
            DeliveryRetried(
                delivery_id=str(self.id),
                recipient_email=self.recipient_email,
                retried_at=now,
            )
        )

    def abort_retry(self, error_message):
        """Return a RETRY record to FAILED because its new attempt was never created."""
        if DeliveryStatus(self.status) != DeliveryStatus.RETRY:
            raise ValidationError({"status": ["Only deliveries handed back for retry can be restored"]})

        now = datetime.now(UTC)
        self.status = DeliveryStatus.FAILED.value
        self.error_message = (error_message or "Unknown delivery error")[:ERROR_MESSAGE_MAX_LENGTH]
        self.updated_at = now

        self.raise_(
            DeliveryRetryAborted(
                delivery_id=str(self.id),
                recipient_email=self.recipient_email,
                reason=self.error_message,
                aborted_at=now,
            )
        )
