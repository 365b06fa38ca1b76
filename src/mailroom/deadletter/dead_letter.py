"""DeadLetter aggregate — inbound events that could not be decoded.

Kept so an operator can inspect and replay what upstream producers sent;
routing itself moves on to the next event.
"""

import json
from datetime import UTC, datetime

from mailroom.domain import mailroom
from protean.fields import DateTime, String, Text

PAYLOAD_MAX_LENGTH = 65536


@mailroom.aggregate
class DeadLetter:
    """An event that failed at a routing stage."""

    topic: String(required=True, max_length=255)
    event_key: String(max_length=255)
    payload: Text(sanitize=False)
    stage: String(required=True, max_length=50)
    reason: String(max_length=1000, sanitize=False)
    received_at: DateTime()

    @classmethod
    def capture(cls, topic, event_key, payload, stage, reason):
        if isinstance(payload, (bytes, bytearray)):
            raw = payload.decode("utf-8", errors="replace")
        elif isinstance(payload, str):
            raw = payload
        else:
            raw = json.dumps(payload, default=str)

        return cls(
            topic=topic,
            event_key=event_key,
            payload=raw[:PAYLOAD_MAX_LENGTH],
            stage=stage,
            reason=(reason or "")[:1000],
            received_at=datetime.now(UTC),
        )


@mailroom.repository(part_of=DeadLetter)
class DeadLetterRepository:
    def recent(self, limit: int = 100) -> list[DeadLetter]:
        """Most recently captured dead letters first."""
        return self._dao.query.order_by("-received_at").limit(limit).all().items

    def for_topic(self, topic: str, limit: int = 100) -> list[DeadLetter]:
        return self._dao.query.filter(topic=topic).order_by("-received_at").limit(limit).all().items
