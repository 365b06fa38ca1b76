"""Handlers for the ``notification-events`` topic.

Requests on this topic are told apart by the transport key rather than by a
field in the payload.
"""

from mailroom.delivery.record import NotificationType
from mailroom.routing.events import OrderRefunded, PasswordResetRequested, PaymentFailed, PaymentSucceeded
from mailroom.routing.helpers import (
    format_amount,
    order_number,
    plain_text_body,
    reset_url,
    resolve_user,
    send_literal,
    send_templated,
)
from mailroom.routing.outcome import RouteOutcome


def on_password_reset_requested(event: PasswordResetRequested) -> RouteOutcome:
    """Send the reset link; the token is kept on the record for correlation."""
    user = resolve_user("password-reset-requested", event.user_id)
    if isinstance(user, RouteOutcome):
        return user

    return send_templated(
        "password-reset-requested",
        user,
        "password-reset-email",
        {
            "first_name": user.first_name,
            "reset_token": event.reset_token,
            "reset_url": reset_url(event.reset_token),
        },
        NotificationType.PASSWORD_RESET.value,
        reset_token=event.reset_token,
    )


def on_payment_succeeded(event: PaymentSucceeded) -> RouteOutcome:
    user = resolve_user("order-payment-success", event.user_id)
    if isinstance(user, RouteOutcome):
        return user

    number = order_number(event.order_id)
    paragraphs = [f"Your payment for order {number} has been processed successfully."]
    if event.amount is not None:
        paragraphs.append(f"Amount charged: {format_amount(event.amount)}")
    paragraphs.append("Thank you for your purchase!")

    return send_literal(
        "order-payment-success",
        user,
        f"Payment Successful - {number}",
        plain_text_body(user.first_name, *paragraphs),
        NotificationType.PAYMENT_SUCCESS.value,
        order_id=event.order_id,
    )


def on_payment_failed(event: PaymentFailed) -> RouteOutcome:
    user = resolve_user("order-payment-failed", event.user_id)
    if isinstance(user, RouteOutcome):
        return user

    number = order_number(event.order_id)
    paragraphs = [f"Unfortunately, your payment for order {number} could not be processed."]
    if event.reason:
        paragraphs.append(f"Reason: {event.reason}")
    paragraphs.append("Please try again or contact our support team for assistance.")

    return send_literal(
        "order-payment-failed",
        user,
        f"Payment Failed - {number}",
        plain_text_body(user.first_name, *paragraphs),
        NotificationType.PAYMENT_FAILED.value,
        order_id=event.order_id,
    )


def on_order_refunded(event: OrderRefunded) -> RouteOutcome:
    user = resolve_user("order-refunded", event.user_id)
    if isinstance(user, RouteOutcome):
        return user

    number = order_number(event.order_id)
    body = plain_text_body(
        user.first_name,
        f"Your refund for order {number} has been processed successfully.",
        "The refund amount will be credited to your original payment method within 3-5 business days.",
    )
    return send_literal(
        "order-refunded",
        user,
        f"Refund Processed - {number}",
        body,
        NotificationType.ORDER_CANCELLED.value,
        order_id=event.order_id,
    )
