"""FastAPI routes for the Mailroom admin surface.

Thin adapters over the delivery store, the retry coordinator and the
statistics. No business logic — just request→call→response translation.
Fixed paths are declared before ``/{delivery_id}`` so they are matched first.
"""

from datetime import UTC, datetime, timedelta

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from mailroom.api.schemas import (
    AdhocNotificationRequest,
    AdhocNotificationResponse,
    DeadLetterListResponse,
    DeadLetterResponse,
    DeliveryListResponse,
    DeliveryPageResponse,
    DeliveryResponse,
    RetentionResponse,
    RetryResponse,
    StalePendingResponse,
    StatsResponse,
)
from mailroom.deadletter.dead_letter import DeadLetter
from mailroom.delivery.adhoc import send_test_notification
from mailroom.delivery.dispatcher import DispatchInitiationError, DispatchRejected
from mailroom.delivery.record import DeliveryRecord, DeliveryStatus, NotificationType
from mailroom.delivery.retry import retry_delivery
from mailroom.delivery.stats import delivery_statistics
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _iso(value) -> str | None:
    return value.isoformat() if value else None


def _to_response(record: DeliveryRecord) -> DeliveryResponse:
    return DeliveryResponse(
        delivery_id=str(record.id),
        user_id=record.user_id,
        recipient_email=record.recipient_email,
        subject=record.subject,
        content=record.content,
        is_html=bool(record.is_html),
        notification_type=record.notification_type,
        status=record.status,
        error_message=record.error_message,
        order_id=record.order_id,
        reset_token=record.reset_token,
        retry_of=str(record.retry_of) if record.retry_of else None,
        created_at=_iso(record.created_at),
        updated_at=_iso(record.updated_at),
        sent_at=_iso(record.sent_at),
    )


def _list(records) -> DeliveryListResponse:
    return DeliveryListResponse(notifications=[_to_response(r) for r in records])


def _repo():
    return current_domain.repository_for(DeliveryRecord)


# ---------------------------------------------------------------------------
# Delivery history
# ---------------------------------------------------------------------------
@router.get("/user/{user_id}", response_model=DeliveryPageResponse)
async def get_user_notifications(
    user_id: int,
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
) -> DeliveryPageResponse:
    """Get a user's delivery history, newest first."""
    result = _repo().find_for_user(user_id, page=page, size=size)
    return DeliveryPageResponse(
        notifications=[_to_response(r) for r in result.items],
        current_page=result.page,
        total_items=result.total,
        total_pages=result.total_pages,
        has_next=result.has_next,
        has_previous=result.has_previous,
    )


@router.get("/stats", response_model=StatsResponse)
async def get_statistics() -> StatsResponse:
    """Sent and failed counts over the last 24 hours, 7 days and 30 days."""
    report = delivery_statistics()
    report["generated_at"] = report["generated_at"].isoformat()
    return StatsResponse(**report)


@router.get("/failed", response_model=DeliveryListResponse)
async def get_failed_notifications() -> DeliveryListResponse:
    return _list(_repo().find_by_status(DeliveryStatus.FAILED.value))


@router.get("/order/{order_id}", response_model=DeliveryListResponse)
async def get_order_notifications(order_id: int) -> DeliveryListResponse:
    return _list(_repo().find_by_order(order_id))


@router.get("/recipient/{email}", response_model=DeliveryListResponse)
async def get_recipient_notifications(email: str) -> DeliveryListResponse:
    return _list(_repo().find_by_recipient(email))


@router.get("/type/{notification_type}", response_model=DeliveryListResponse)
async def get_notifications_by_type(notification_type: NotificationType) -> DeliveryListResponse:
    return _list(_repo().find_by_type(notification_type.value))


# ---------------------------------------------------------------------------
# Maintenance — audit endpoints for housekeeping jobs
# ---------------------------------------------------------------------------
@router.get("/maintenance/stale-pending", response_model=StalePendingResponse)
async def get_stale_pending(older_than_minutes: int = Query(15, ge=1)) -> StalePendingResponse:
    """PENDING records whose attempt never completed (e.g. the process died mid-send)."""
    cutoff = datetime.now(UTC) - timedelta(minutes=older_than_minutes)
    records = _repo().find_stale_pending(cutoff)
    return StalePendingResponse(
        older_than_minutes=older_than_minutes,
        notifications=[_to_response(r) for r in records],
    )


@router.get("/maintenance/retention", response_model=RetentionResponse)
async def get_retention_count(older_than_days: int = Query(90, ge=1)) -> RetentionResponse:
    """Number of records a retention job would remove."""
    cutoff = datetime.now(UTC) - timedelta(days=older_than_days)
    return RetentionResponse(
        older_than_days=older_than_days,
        cutoff=cutoff.isoformat(),
        count=_repo().count_created_before(cutoff),
    )


@router.get("/dead-letters", response_model=DeadLetterListResponse)
async def get_dead_letters(limit: int = Query(100, ge=1, le=1000)) -> DeadLetterListResponse:
    letters = current_domain.repository_for(DeadLetter).recent(limit)
    return DeadLetterListResponse(
        dead_letters=[
            DeadLetterResponse(
                dead_letter_id=str(letter.id),
                topic=letter.topic,
                event_key=letter.event_key,
                payload=letter.payload,
                stage=letter.stage,
                reason=letter.reason,
                received_at=_iso(letter.received_at),
            )
            for letter in letters
        ]
    )


# ---------------------------------------------------------------------------
# Operator actions
# ---------------------------------------------------------------------------
@router.post("/test", status_code=202, response_model=AdhocNotificationResponse)
async def send_test(body: AdhocNotificationRequest):
    """Send an ad-hoc plain-text email (PROMOTIONAL, no user)."""
    try:
        delivery_id = send_test_notification(body.recipient_email, body.subject, body.content)
    except (DispatchRejected, DispatchInitiationError) as exc:
        return JSONResponse(status_code=503, content={"error": str(exc)})
    return AdhocNotificationResponse(delivery_id=delivery_id)


@router.post("/{delivery_id}/retry", response_model=RetryResponse)
async def retry_notification(delivery_id: str):
    """Retry a failed delivery as a new attempt."""
    try:
        new_id = retry_delivery(delivery_id)
    except ObjectNotFoundError:
        return JSONResponse(
            status_code=404,
            content=RetryResponse(success=False, message=f"Notification {delivery_id} not found").model_dump(),
        )
    except ValidationError:
        return JSONResponse(
            status_code=400,
            content=RetryResponse(success=False, message="Notification is not in failed status").model_dump(),
        )
    except (DispatchRejected, DispatchInitiationError) as exc:
        return JSONResponse(
            status_code=503,
            content=RetryResponse(success=False, message=str(exc)).model_dump(),
        )
    return RetryResponse(success=True, message="Notification retry initiated", delivery_id=new_id)


@router.get("/{delivery_id}", response_model=DeliveryResponse)
async def get_notification(delivery_id: str) -> DeliveryResponse:
    """Get a single delivery record."""
    return _to_response(_repo().get(delivery_id))
