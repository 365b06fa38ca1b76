from mailroom.delivery.record import DeliveryStatus, NotificationType
from mailroom.routing.outcome import OutcomeStatus


def test_notification_types():
    assert {t.value for t in NotificationType} == {
        "USER_REGISTRATION",
        "PASSWORD_RESET",
        "ORDER_CONFIRMATION",
        "ORDER_SHIPPED",
        "ORDER_DELIVERED",
        "PAYMENT_SUCCESS",
        "PAYMENT_FAILED",
        "ORDER_CANCELLED",
        "WELCOME_EMAIL",
        "PROMOTIONAL",
    }


def test_delivery_statuses():
    assert [s.value for s in DeliveryStatus] == ["PENDING", "SENT", "FAILED", "RETRY"]


def test_outcome_statuses():
    assert "DISPATCHED" in {s.value for s in OutcomeStatus}
    assert "DECODE_ERROR" in {s.value for s in OutcomeStatus}
    assert "HANDLER_ERROR" in {s.value for s in OutcomeStatus}
