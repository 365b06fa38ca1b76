"""Per-event routing outcome."""

from dataclasses import dataclass
from enum import Enum


class OutcomeStatus(Enum):
    DISPATCHED = "DISPATCHED"
    SKIPPED = "SKIPPED"
    UNROUTABLE = "UNROUTABLE"
    DECODE_ERROR = "DECODE_ERROR"
    TEMPLATE_ERROR = "TEMPLATE_ERROR"
    LOOKUP_ERROR = "LOOKUP_ERROR"
    DISPATCH_ERROR = "DISPATCH_ERROR"
    HANDLER_ERROR = "HANDLER_ERROR"


@dataclass(frozen=True)
class RouteOutcome:
    status: OutcomeStatus
    event: str | None = None
    delivery_id: str | None = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.status in (OutcomeStatus.DISPATCHED, OutcomeStatus.SKIPPED, OutcomeStatus.UNROUTABLE)

    @classmethod
    def dispatched(cls, event: str, delivery_id: str) -> "RouteOutcome":
        return cls(OutcomeStatus.DISPATCHED, event=event, delivery_id=delivery_id)

    @classmethod
    def failed(cls, status: OutcomeStatus, event: str | None, detail: str) -> "RouteOutcome":
        return cls(status, event=event, detail=detail)
