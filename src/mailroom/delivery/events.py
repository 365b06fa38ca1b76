"""Domain events for the DeliveryRecord aggregate."""

from mailroom.domain import mailroom
from protean.fields import DateTime, Identifier, Integer, String


@mailroom.event(part_of="DeliveryRecord")
class DeliveryRecorded:
    """A delivery attempt was recorded in PENDING and handed to the dispatcher."""

    __version__ = 1

    delivery_id: Identifier(required=True)
    user_id: Integer()
    recipient_email: String(required=True, max_length=320)
    notification_type: String(required=True)
    subject: String(max_length=500, sanitize=False)
    retry_of: Identifier()
    created_at: DateTime(required=True)


@mailroom.event(part_of="DeliveryRecord")
class DeliverySent:
    """The provider accepted the message."""

    __version__ = 1

    delivery_id: Identifier(required=True)
    recipient_email: String(required=True, max_length=320)
    sent_at: DateTime(required=True)


@mailroom.event(part_of="DeliveryRecord")
class DeliveryFailed:
    """The provider rejected the message or could not be reached."""

    __version__ = 1

    delivery_id: Identifier(required=True)
    recipient_email: String(required=True, max_length=320)
    reason: String(required=True, max_length=1000, sanitize=False)
    failed_at: DateTime(required=True)


@mailroom.event(part_of="DeliveryRecord")
class DeliveryRetried:
    """A failed delivery was handed back for a fresh attempt."""

    __version__ = 1

    delivery_id: Identifier(required=True)
    recipient_email: String(required=True, max_length=320)
    retried_at: DateTime(required=True)


@mailroom.event(part_of="DeliveryRecord")
class DeliveryRetryAborted:
    """A retry was refused by the dispatcher; the record is FAILED again."""

    __version__ = 1

    delivery_id: Identifier(required=True)
    recipient_email: String(required=True, max_length=320)
    reason: String(max_length=1000, sanitize=False)
    aborted_at: DateTime(required=True)
