"""Pydantic request/response models for the Mailroom admin API.

API schemas are separate from the domain aggregates (anti-corruption pattern).
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request Models
# ---------------------------------------------------------------------------
class AdhocNotificationRequest(BaseModel):
    recipient_email: str = Field(..., min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    subject: str = Field(..., min_length=1, max_length=500)
    content: str = Field(..., min_length=1)


# ---------------------------------------------------------------------------
# Response Models
# ---------------------------------------------------------------------------
class DeliveryResponse(BaseModel):
    delivery_id: str
    user_id: int | None = None
    recipient_email: str
    subject: str
    content: str
    is_html: bool = False
    notification_type: str
    status: str
    error_message: str | None = None
    order_id: int | None = None
    reset_token: str | None = None
    retry_of: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    sent_at: str | None = None


class DeliveryListResponse(BaseModel):
    notifications: list[DeliveryResponse]


class DeliveryPageResponse(BaseModel):
    notifications: list[DeliveryResponse]
    current_page: int
    total_items: int
    total_pages: int
    has_next: bool
    has_previous: bool


class WindowCounts(BaseModel):
    sent: int
    failed: int


class StatsResponse(BaseModel):
    last_24h: WindowCounts
    last_7d: WindowCounts
    last_30d: WindowCounts
    by_type_last_30d: dict[str, int]
    generated_at: str


class RetryResponse(BaseModel):
    success: bool
    message: str
    delivery_id: str | None = None


class AdhocNotificationResponse(BaseModel):
    status: str = "accepted"
    delivery_id: str


class StalePendingResponse(BaseModel):
    older_than_minutes: int
    notifications: list[DeliveryResponse]


class RetentionResponse(BaseModel):
    older_than_days: int
    cutoff: str
    count: int


class DeadLetterResponse(BaseModel):
    dead_letter_id: str
    topic: str
    event_key: str | None = None
    payload: str | None = None
    stage: str
    reason: str | None = None
    received_at: str | None = None


class DeadLetterListResponse(BaseModel):
    dead_letters: list[DeadLetterResponse]
