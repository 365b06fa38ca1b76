"""Retry coordinator — re-send a failed delivery as a new attempt.

Runs outside any command-handler unit of work: the new attempt's PENDING row
must be committed before a dispatch worker goes looking for it.
"""

import structlog
from mailroom.delivery.dispatcher import DispatchInitiationError, DispatchRejected, get_dispatcher
from mailroom.delivery.record import DeliveryRecord
from protean.utils.globals import current_domain

logger = structlog.get_logger(__name__)


def retry_delivery(record_id: str) -> str:
    """Mark a FAILED record as RETRY and dispatch its stored content again.

    The status check and the FAILED → RETRY write happen under the record's
    row lock, so of several concurrent retries only one gets through. The
    stored content is sent as-is; nothing is re-rendered. If the dispatcher
    refuses the new attempt, the record goes back to FAILED with its original
    error so it can be retried later.

    Returns:
        The id of the new delivery record.

    Raises:
        ObjectNotFoundError: no record with ``record_id``.
        ValidationError: the record is not FAILED.
        DispatchRejected, DispatchInitiationError: the new attempt was not created.
    """
    repo = current_domain.repository_for(DeliveryRecord)
    previous = {}

    def hand_back(record):
        previous["error_message"] = record.error_message
        record.mark_for_retry()

    record = repo.apply(record_id, hand_back)

    logger.info("Retrying delivery", delivery_id=str(record_id), recipient=record.recipient_email)

    try:
        return get_dispatcher().dispatch(
            record.recipient_email,
            record.subject,
            record.content,
            record.notification_type,
            record.user_id,
            is_html=bool(record.is_html),
            order_id=record.order_id,
            reset_token=record.reset_token,
            retry_of=str(record.id),
        )
    except (DispatchRejected, DispatchInitiationError) as exc:
        logger.warning("Retry not dispatched, restoring failed status", delivery_id=str(record_id), error=str(exc))
        repo.apply(record_id, lambda r: r.abort_retry(previous["error_message"]))
        raise
