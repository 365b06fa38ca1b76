"""Inbound event variants, validated at the decode boundary.

Producers publish camelCase JSON; each variant declares the fields it needs
and ``decode`` turns a raw payload into one of them or raises ``DecodeError``.
"""

import json
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError


class DecodeError(Exception):
    """A payload is malformed or lacks a required field."""

    def __init__(self, message: str, errors: list | None = None):
        super().__init__(message)
        self.errors = errors or []


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------
class Topic(Enum):
    USER_EVENTS = "user-events"
    NOTIFICATION_EVENTS = "notification-events"
    ORDER_EVENTS = "order-events"


class UserEventType(Enum):
    USER_REGISTERED = "USER_REGISTERED"
    PASSWORD_CHANGED = "PASSWORD_CHANGED"


class NotificationRequestKey(Enum):
    PASSWORD_RESET_REQUESTED = "password-reset-requested"
    ORDER_PAYMENT_SUCCESS = "order-payment-success"
    ORDER_PAYMENT_FAILED = "order-payment-failed"
    ORDER_REFUNDED = "order-refunded"


class OrderEventType(Enum):
    ORDER_CREATED = "ORDER_CREATED"
    ORDER_STATUS_UPDATED = "ORDER_STATUS_UPDATED"


# ---------------------------------------------------------------------------
# Variants
# ---------------------------------------------------------------------------
class InboundEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class UserEvent(InboundEvent):
    event_type: UserEventType = Field(alias="eventType")
    user_id: int = Field(alias="userId")
    email: str


class PasswordResetRequested(InboundEvent):
    user_id: int = Field(alias="userId")
    reset_token: str = Field(alias="resetToken", min_length=1)
    email: str | None = None


class PaymentSucceeded(InboundEvent):
    user_id: int = Field(alias="userId")
    order_id: int = Field(alias="orderId")
    amount: Decimal | None = None


class PaymentFailed(InboundEvent):
    user_id: int = Field(alias="userId")
    order_id: int = Field(alias="orderId")
    amount: Decimal | None = None
    reason: str | None = None


class OrderRefunded(InboundEvent):
    user_id: int = Field(alias="userId")
    order_id: int = Field(alias="orderId")
    amount: Decimal | None = None


class OrderCreated(InboundEvent):
    user_id: int = Field(alias="userId")
    order_id: int = Field(alias="orderId")
    amount: Decimal


class OrderStatusUpdated(InboundEvent):
    user_id: int = Field(alias="userId")
    order_id: int = Field(alias="orderId")
    status: str | None = None


def load_payload(payload) -> dict:
    """Accept a mapping or its JSON encoding (str/bytes)."""
    if isinstance(payload, (bytes, bytearray)):
        payload = payload.decode("utf-8", errors="replace")
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise DecodeError(f"Payload is not valid JSON: {exc.msg}") from exc
    if not isinstance(payload, dict):
        raise DecodeError(f"Payload must be an object, got {type(payload).__name__}")
    return payload


def decode(model: type[InboundEvent], payload) -> InboundEvent:
    """Validate ``payload`` against ``model``.

    Raises:
        DecodeError: missing or non-coercible fields.
    """
    data = load_payload(payload)
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        fields = ", ".join(".".join(str(part) for part in error["loc"]) for error in exc.errors())
        raise DecodeError(f"Invalid {model.__name__} payload: {fields}", exc.errors()) from exc
