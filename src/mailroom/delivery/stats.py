"""Delivery statistics over rolling windows.

All windows of one report are computed against the same ``now`` so that a
window's counts are never smaller than those of a shorter window.
"""

from datetime import UTC, datetime, timedelta

from mailroom.delivery.record import DeliveryRecord, DeliveryStatus, NotificationType
from protean.utils.globals import current_domain

WINDOWS = {
    "last_24h": timedelta(hours=24),
    "last_7d": timedelta(days=7),
    "last_30d": timedelta(days=30),
}

# Statuses reported per window
REPORTED_STATUSES = (DeliveryStatus.SENT, DeliveryStatus.FAILED)


def count_by_status(window: timedelta, now: datetime | None = None) -> dict[str, int]:
    now = now or datetime.now(UTC)
    since = now - window
    repo = current_domain.repository_for(DeliveryRecord)
    return {status.value: repo.count_by_status_since(status.value, since) for status in REPORTED_STATUSES}


def count_by_type(window: timedelta, now: datetime | None = None) -> dict[str, int]:
    """Record counts per notification type created within ``window`` of ``now``."""
    now = now or datetime.now(UTC)
    since = now - window
    repo = current_domain.repository_for(DeliveryRecord)
    return {kind.value: repo.count_by_type_since(kind.value, since) for kind in NotificationType}


def delivery_statistics(now: datetime | None = None) -> dict:
    """Sent/failed counts for the last 24h, 7d and 30d, plus per-type counts for 30d."""
    now = now or datetime.now(UTC)

    report = {}
    for name, window in WINDOWS.items():
        counts = count_by_status(window, now)
        report[name] = {status.value.lower(): counts[status.value] for status in REPORTED_STATUSES}

    report["by_type_last_30d"] = count_by_type(WINDOWS["last_30d"], now)
    report["generated_at"] = now
    return report
