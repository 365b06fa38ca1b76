"""Repository for the DeliveryRecord aggregate.

Adds the audit queries the admin surface and the statistics need, and a
per-record read-modify-write helper. Updates to one record are serialised
through a striped lock table so concurrent dispatch workers never overwrite
each other's terminal writes, without serialising unrelated records.
"""

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from zlib import crc32

from mailroom.delivery.record import DeliveryRecord, DeliveryStatus
from mailroom.domain import mailroom

_LOCK_STRIPES = 64
_locks = [threading.Lock() for _ in range(_LOCK_STRIPES)]

DEFAULT_QUERY_LIMIT = 1000


@contextmanager
def record_lock(record_id):
    """Hold the row lock for a single delivery record."""
    lock = _locks[crc32(str(record_id).encode("utf-8")) % _LOCK_STRIPES]
    with lock:
        yield


@dataclass
class DeliveryPage:
    items: list = field(default_factory=list)
    page: int = 0
    size: int = 20
    total: int = 0

    @property
    def total_pages(self) -> int:
        if self.size <= 0:
            return 0
        return (self.total + self.size - 1) // self.size

    @property
    def has_next(self) -> bool:
        return self.page + 1 < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 0


@mailroom.repository(part_of=DeliveryRecord)
class DeliveryRecordRepository:
    """Persistence and audit queries for delivery records."""

    # -------------------------------------------------------------------
    # Row-level read-modify-write
    # -------------------------------------------------------------------
    def apply(self, record_id, mutation):
        """Load a record, apply ``mutation`` to it and persist it atomically.

        ``mutation`` may raise to abort; nothing is written in that case.
        """
        with record_lock(record_id):
            record = self.get(record_id)
            mutation(record)
            self.add(record)
            return record

    # -------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------
    def find_for_user(self, user_id: int, page: int = 0, size: int = 20) -> DeliveryPage:
        """Records for a user, newest first."""
        results = (
            self._dao.query.filter(user_id=user_id)
            .order_by("-created_at")
            .offset(page * size)
            .limit(size)
            .all()
        )
        return DeliveryPage(items=list(results.items), page=page, size=size, total=results.total)

    def find_by_status(self, status: str, limit: int = DEFAULT_QUERY_LIMIT) -> list[DeliveryRecord]:
        return self._dao.query.filter(status=status).order_by("-created_at").limit(limit).all().items

    def find_by_type(self, notification_type: str, limit: int = DEFAULT_QUERY_LIMIT) -> list[DeliveryRecord]:
        return (
            self._dao.query.filter(notification_type=notification_type)
            .order_by("-created_at")
            .limit(limit)
            .all()
            .items
        )

    def find_by_recipient(self, email: str, limit: int = DEFAULT_QUERY_LIMIT) -> list[DeliveryRecord]:
        return self._dao.query.filter(recipient_email=email).order_by("-created_at").limit(limit).all().items

    def find_by_order(self, order_id: int) -> list[DeliveryRecord]:
        return self._dao.query.filter(order_id=order_id).order_by("-created_at").all().items

    def find_by_status_created_before(self, status: str, before, limit: int = DEFAULT_QUERY_LIMIT):
        """Records in ``status`` created strictly before ``before`` (retention and sweep use)."""
        return (
            self._dao.query.filter(status=status, created_at__lt=before)
            .order_by("created_at")
            .limit(limit)
            .all()
            .items
        )

    def find_stale_pending(self, older_than, limit: int = DEFAULT_QUERY_LIMIT):
        """PENDING records whose attempt never reached a terminal write."""
        return self.find_by_status_created_before(DeliveryStatus.PENDING.value, older_than, limit=limit)

    # -------------------------------------------------------------------
    # Counts
    # -------------------------------------------------------------------
    def count_by_status_since(self, status: str, since) -> int:
        return self._dao.query.filter(status=status, created_at__gte=since).all().total

    def count_by_type_since(self, notification_type: str, since) -> int:
        return self._dao.query.filter(notification_type=notification_type, created_at__gte=since).all().total

    def count_created_before(self, before) -> int:
        return self._dao.query.filter(created_at__lt=before).all().total
