"""Handlers for the ``order-events`` topic."""

from mailroom.delivery.record import NotificationType
from mailroom.routing.events import OrderCreated, OrderStatusUpdated
from mailroom.routing.helpers import (
    format_amount,
    order_number,
    order_url,
    plain_text_body,
    resolve_user,
    send_literal,
    send_templated,
)
from mailroom.routing.outcome import RouteOutcome

# Order status (as published by the order service) → notification type
STATUS_NOTIFICATION_TYPES = {
    "SHIPPED": NotificationType.ORDER_SHIPPED,
    "DELIVERED": NotificationType.ORDER_DELIVERED,
    "CANCELLED": NotificationType.ORDER_CANCELLED,
}


def on_order_created(event: OrderCreated) -> RouteOutcome:
    """Send the order confirmation email."""
    user = resolve_user("ORDER_CREATED", event.user_id)
    if isinstance(user, RouteOutcome):
        return user

    number = order_number(event.order_id)
    return send_templated(
        "ORDER_CREATED",
        user,
        "order-confirmation-email",
        {
            "first_name": user.first_name,
            "order_number": number,
            "total_amount": format_amount(event.amount),
            "order_url": order_url(number),
        },
        NotificationType.ORDER_CONFIRMATION.value,
        order_id=event.order_id,
    )


def status_notification_type(status: str | None) -> NotificationType:
    if status is None:
        return NotificationType.ORDER_CONFIRMATION
    return STATUS_NOTIFICATION_TYPES.get(status.strip().upper(), NotificationType.ORDER_CONFIRMATION)


def on_order_status_updated(event: OrderStatusUpdated) -> RouteOutcome:
    user = resolve_user("ORDER_STATUS_UPDATED", event.user_id)
    if isinstance(user, RouteOutcome):
        return user

    number = order_number(event.order_id)
    if event.status:
        update = f"Your order {number} is now {event.status.strip().lower()}."
    else:
        update = f"Your order {number} status has been updated."

    body = plain_text_body(
        user.first_name,
        update,
        f"You can track your order at: {order_url(number)}",
    )
    return send_literal(
        "ORDER_STATUS_UPDATED",
        user,
        f"Order Status Update - {number}",
        body,
        status_notification_type(event.status).value,
        order_id=event.order_id,
    )
