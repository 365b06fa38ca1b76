"""Integration tests for the JSON-lines event consumer."""

import io
import json

from consumer import consume, read_events
from mailroom.delivery.record import DeliveryRecord, DeliveryStatus, NotificationType
from protean import current_domain


def _line(topic, key, payload):
    return json.dumps({"topic": topic, "key": key, "payload": payload})


class TestReadEvents:
    def test_yields_triples(self):
        stream = io.StringIO(_line("order-events", "k1", {"orderId": 7}) + "\n")

        assert list(read_events(stream)) == [("order-events", "k1", {"orderId": 7})]

    def test_skips_blank_and_malformed_lines(self):
        stream = io.StringIO(
            "\n".join(
                [
                    "",
                    "{not json",
                    json.dumps({"key": "no-topic"}),
                    _line("user-events", None, {"eventType": "USER_REGISTERED"}),
                ]
            )
        )

        assert list(read_events(stream)) == [("user-events", None, {"eventType": "USER_REGISTERED"})]


class TestConsume:
    def test_routes_every_event(self, directory, provider):
        directory.add(42, "ann@example.com", "Ann")
        stream = io.StringIO(
            "\n".join(
                [
                    _line(
                        "order-events",
                        "order-7",
                        {"eventType": "ORDER_CREATED", "userId": 42, "orderId": 7, "amount": "19.99"},
                    ),
                    _line("notification-events", "order-payment-success", {"userId": 42, "orderId": 7}),
                    _line("user-events", "u", {"eventType": "USER_REGISTERED", "userId": 5, "email": "x@y.com"}),
                    _line("inventory-events", "i", {"eventType": "STOCK_LOW"}),
                    _line("order-events", "o", {"eventType": "ORDER_CREATED", "userId": 42}),
                ]
            )
        )

        summary = consume(stream, drain_timeout=5)

        assert summary == {"DISPATCHED": 2, "SKIPPED": 1, "UNROUTABLE": 1, "DECODE_ERROR": 1}
        records = current_domain.repository_for(DeliveryRecord).find_by_order(7)
        assert {r.notification_type for r in records} == {
            NotificationType.ORDER_CONFIRMATION.value,
            NotificationType.PAYMENT_SUCCESS.value,
        }
        assert all(r.status == DeliveryStatus.SENT.value for r in records)
        assert len(provider.sent_emails) == 2
