"""Integration tests for the Mailroom admin API via TestClient."""

from datetime import UTC, datetime, timedelta

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from mailroom.api.routes import router
from mailroom.deadletter.dead_letter import DeadLetter
from mailroom.delivery.dispatcher import NotificationDispatcher, set_dispatcher
from mailroom.delivery.record import DeliveryRecord, DeliveryStatus, NotificationType
from protean import current_domain
from protean.integrations.fastapi import register_exception_handlers


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(router)
    register_exception_handlers(app)
    return TestClient(app)


def _create_record(status=DeliveryStatus.PENDING, age=None, **overrides):
    defaults = {
        "recipient_email": "ann@example.com",
        "subject": "Order Confirmation - ORD-7",
        "content": "<p>Thanks</p>",
        "notification_type": NotificationType.ORDER_CONFIRMATION.value,
        "user_id": 42,
        "is_html": True,
        "order_id": 7,
    }
    defaults.update(overrides)
    record = DeliveryRecord.create(**defaults)
    if status == DeliveryStatus.SENT:
        record.mark_sent()
    elif status == DeliveryStatus.FAILED:
        record.mark_failed("SMTP relay refused")
    if age is not None:
        record.created_at = datetime.now(UTC) - age
    current_domain.repository_for(DeliveryRecord).add(record)
    return str(record.id)


def _saturate(provider):
    set_dispatcher(
        NotificationDispatcher(provider=provider, max_workers=0, queue_capacity=0, admission_timeout=0, inline=True)
    )


# ---------------------------------------------------------------
# Single record
# ---------------------------------------------------------------
class TestGetNotification:
    def test_returns_record(self, client):
        delivery_id = _create_record(status=DeliveryStatus.SENT)

        resp = client.get(f"/notifications/{delivery_id}")

        assert resp.status_code == 200
        data = resp.json()
        assert data["delivery_id"] == delivery_id
        assert data["status"] == "SENT"
        assert data["order_id"] == 7
        assert data["is_html"] is True
        assert data["sent_at"] is not None

    def test_unknown_record_is_404(self, client):
        resp = client.get("/notifications/does-not-exist")
        assert resp.status_code == 404


# ---------------------------------------------------------------
# History queries
# ---------------------------------------------------------------
class TestHistoryQueries:
    def test_user_history_is_paged(self, client):
        for hours in range(3):
            _create_record(age=timedelta(hours=hours))
        _create_record(user_id=99)

        resp = client.get("/notifications/user/42", params={"page": 0, "size": 2})

        assert resp.status_code == 200
        data = resp.json()
        assert len(data["notifications"]) == 2
        assert data["total_items"] == 3
        assert data["total_pages"] == 2
        assert data["has_next"] is True
        assert data["has_previous"] is False
        created = [n["created_at"] for n in data["notifications"]]
        assert created == sorted(created, reverse=True)

    def test_user_history_rejects_bad_page_size(self, client):
        assert client.get("/notifications/user/42", params={"size": 0}).status_code == 422

    def test_failed(self, client):
        failed_id = _create_record(status=DeliveryStatus.FAILED)
        _create_record(status=DeliveryStatus.SENT)

        data = client.get("/notifications/failed").json()

        assert [n["delivery_id"] for n in data["notifications"]] == [failed_id]
        assert data["notifications"][0]["error_message"] == "SMTP relay refused"

    def test_by_order(self, client):
        _create_record(order_id=7)
        _create_record(order_id=8)

        data = client.get("/notifications/order/7").json()

        assert len(data["notifications"]) == 1
        assert data["notifications"][0]["order_id"] == 7

    def test_by_recipient(self, client):
        _create_record(recipient_email="bob@example.com")

        data = client.get("/notifications/recipient/bob@example.com").json()

        assert len(data["notifications"]) == 1

    def test_by_type(self, client):
        _create_record(notification_type=NotificationType.ORDER_SHIPPED.value)
        _create_record()

        data = client.get("/notifications/type/ORDER_SHIPPED").json()

        assert [n["notification_type"] for n in data["notifications"]] == ["ORDER_SHIPPED"]

    def test_unknown_type_is_422(self, client):
        assert client.get("/notifications/type/CARRIER_PIGEON").status_code == 422


# ---------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------
class TestStatistics:
    def test_window_counts(self, client):
        _create_record(status=DeliveryStatus.SENT, age=timedelta(hours=1))
        _create_record(status=DeliveryStatus.FAILED, age=timedelta(days=3))
        _create_record(status=DeliveryStatus.SENT, age=timedelta(days=40))

        resp = client.get("/notifications/stats")

        assert resp.status_code == 200
        data = resp.json()
        assert data["last_24h"] == {"sent": 1, "failed": 0}
        assert data["last_7d"] == {"sent": 1, "failed": 1}
        assert data["last_30d"] == {"sent": 1, "failed": 1}
        assert data["by_type_last_30d"]["ORDER_CONFIRMATION"] == 2
        assert data["generated_at"]


# ---------------------------------------------------------------
# Retry
# ---------------------------------------------------------------
class TestRetry:
    def test_retry_failed_record(self, client, provider):
        failed_id = _create_record(status=DeliveryStatus.FAILED)

        resp = client.post(f"/notifications/{failed_id}/retry")

        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["message"] == "Notification retry initiated"
        new_id = data["delivery_id"]
        assert new_id != failed_id

        repo = current_domain.repository_for(DeliveryRecord)
        assert repo.get(failed_id).status == DeliveryStatus.RETRY.value
        new_record = repo.get(new_id)
        assert str(new_record.retry_of) == failed_id
        assert new_record.status == DeliveryStatus.SENT.value
        assert provider.sent_emails[0]["body"] == "<p>Thanks</p>"

    def test_retry_unknown_record(self, client):
        resp = client.post("/notifications/missing-id/retry")

        assert resp.status_code == 404
        assert resp.json() == {
            "success": False,
            "message": "Notification missing-id not found",
            "delivery_id": None,
        }

    def test_retry_record_that_did_not_fail(self, client):
        sent_id = _create_record(status=DeliveryStatus.SENT)

        resp = client.post(f"/notifications/{sent_id}/retry")

        assert resp.status_code == 400
        assert resp.json()["success"] is False
        assert resp.json()["message"] == "Notification is not in failed status"

    def test_second_retry_is_rejected(self, client):
        failed_id = _create_record(status=DeliveryStatus.FAILED)

        assert client.post(f"/notifications/{failed_id}/retry").status_code == 200
        assert client.post(f"/notifications/{failed_id}/retry").status_code == 400

    def test_retry_without_capacity(self, client, provider):
        failed_id = _create_record(status=DeliveryStatus.FAILED)
        _saturate(provider)

        resp = client.post(f"/notifications/{failed_id}/retry")

        assert resp.status_code == 503
        assert resp.json()["success"] is False
        record = current_domain.repository_for(DeliveryRecord).get(failed_id)
        assert record.status == DeliveryStatus.FAILED.value
        assert record.error_message == "SMTP relay refused"

        set_dispatcher(NotificationDispatcher(provider=provider, inline=True))
        assert client.post(f"/notifications/{failed_id}/retry").status_code == 200


# ---------------------------------------------------------------
# Test email
# ---------------------------------------------------------------
class TestSendTestEmail:
    def test_accepted(self, client, provider):
        resp = client.post(
            "/notifications/test",
            json={"recipient_email": "ops@example.com", "subject": "Smoke", "content": "Hello"},
        )

        assert resp.status_code == 202
        data = resp.json()
        assert data["status"] == "accepted"
        record = current_domain.repository_for(DeliveryRecord).get(data["delivery_id"])
        assert record.notification_type == NotificationType.PROMOTIONAL.value
        assert provider.sent_emails[0]["to"] == "ops@example.com"

    def test_invalid_email(self, client):
        resp = client.post(
            "/notifications/test",
            json={"recipient_email": "not-an-email", "subject": "Smoke", "content": "Hello"},
        )
        assert resp.status_code == 422

    def test_saturated(self, client, provider):
        _saturate(provider)

        resp = client.post(
            "/notifications/test",
            json={"recipient_email": "ops@example.com", "subject": "Smoke", "content": "Hello"},
        )

        assert resp.status_code == 503
        assert "error" in resp.json()


# ---------------------------------------------------------------
# Maintenance
# ---------------------------------------------------------------
class TestMaintenance:
    def test_stale_pending(self, client):
        stale_id = _create_record(age=timedelta(hours=1))
        _create_record()
        _create_record(status=DeliveryStatus.SENT, age=timedelta(hours=1))

        data = client.get("/notifications/maintenance/stale-pending", params={"older_than_minutes": 15}).json()

        assert data["older_than_minutes"] == 15
        assert [n["delivery_id"] for n in data["notifications"]] == [stale_id]

    def test_retention_count(self, client):
        _create_record(age=timedelta(days=120))
        _create_record(age=timedelta(days=5))

        data = client.get("/notifications/maintenance/retention", params={"older_than_days": 90}).json()

        assert data["older_than_days"] == 90
        assert data["count"] == 1
        assert data["cutoff"]

    def test_dead_letters(self, client):
        letter = DeadLetter.capture("order-events", "order-7", {"orderId": 7}, "decode", "Invalid payload")
        current_domain.repository_for(DeadLetter).add(letter)

        data = client.get("/notifications/dead-letters").json()

        assert len(data["dead_letters"]) == 1
        assert data["dead_letters"][0]["topic"] == "order-events"
        assert data["dead_letters"][0]["event_key"] == "order-7"
        assert data["dead_letters"][0]["reason"] == "Invalid payload"
