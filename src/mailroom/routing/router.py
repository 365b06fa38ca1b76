"""Event router — classifies inbound (topic, key, payload) events and invokes
the matching use-case handler.

Classification keys on the topic first. ``user-events`` and ``order-events``
carry the event type in the payload's ``eventType`` field, while
``notification-events`` are told apart by the transport key.

Nothing raised while processing an event escapes ``route``: every event ends
in a ``RouteOutcome`` and the next event is processed regardless.
"""

import threading
from collections import Counter
from collections.abc import Callable, Iterable
from dataclasses import dataclass

import structlog
from mailroom.deadletter.dead_letter import DeadLetter
from mailroom.routing import notification_requests, order_events, user_events
from mailroom.routing.events import (
    DecodeError,
    InboundEvent,
    NotificationRequestKey,
    OrderCreated,
    OrderEventType,
    OrderRefunded,
    OrderStatusUpdated,
    PasswordResetRequested,
    PaymentFailed,
    PaymentSucceeded,
    Topic,
    UserEvent,
    UserEventType,
    decode,
    load_payload,
)
from mailroom.routing.outcome import OutcomeStatus, RouteOutcome
from protean.utils.globals import current_domain

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Route:
    model: type[InboundEvent]
    handler: Callable[[InboundEvent], RouteOutcome]


# ---------------------------------------------------------------------------
# Route table
# ---------------------------------------------------------------------------
ROUTES: dict[Topic, dict[str, Route]] = {
    Topic.USER_EVENTS: {
        UserEventType.USER_REGISTERED.value: Route(UserEvent, user_events.on_user_registered),
        UserEventType.PASSWORD_CHANGED.value: Route(UserEvent, user_events.on_password_changed),
    },
    Topic.NOTIFICATION_EVENTS: {
        NotificationRequestKey.PASSWORD_RESET_REQUESTED.value: Route(
            PasswordResetRequested, notification_requests.on_password_reset_requested
        ),
        NotificationRequestKey.ORDER_PAYMENT_SUCCESS.value: Route(
            PaymentSucceeded, notification_requests.on_payment_succeeded
        ),
        NotificationRequestKey.ORDER_PAYMENT_FAILED.value: Route(
            PaymentFailed, notification_requests.on_payment_failed
        ),
        NotificationRequestKey.ORDER_REFUNDED.value: Route(OrderRefunded, notification_requests.on_order_refunded),
    },
    Topic.ORDER_EVENTS: {
        OrderEventType.ORDER_CREATED.value: Route(OrderCreated, order_events.on_order_created),
        OrderEventType.ORDER_STATUS_UPDATED.value: Route(OrderStatusUpdated, order_events.on_order_status_updated),
    },
}

# Topics classified by the transport key instead of the payload
KEY_CLASSIFIED_TOPICS = {Topic.NOTIFICATION_EVENTS}


class EventRouter:
    """Routes inbound events to use-case handlers and counts the outcomes."""

    def __init__(self, routes: dict[Topic, dict[str, Route]] | None = None, dead_letters: bool = True):
        self.routes = ROUTES if routes is None else routes
        self.dead_letters = dead_letters
        self.metrics: Counter = Counter()
        self._metrics_lock = threading.Lock()

    def route(self, topic: str, event_key: str | None, payload) -> RouteOutcome:
        """Process one event. Never raises."""
        try:
            outcome = self._route(topic, event_key, payload)
        except Exception as exc:
            logger.exception("Unexpected routing failure", topic=topic, event_key=event_key)
            outcome = RouteOutcome.failed(OutcomeStatus.HANDLER_ERROR, None, str(exc))

        with self._metrics_lock:
            self.metrics[outcome.status.value] += 1
        return outcome

    def route_many(self, events: Iterable[tuple]) -> list[RouteOutcome]:
        """Route ``(topic, key, payload)`` triples in order."""
        return [self.route(topic, key, payload) for topic, key, payload in events]

    def reset_metrics(self) -> None:
        with self._metrics_lock:
            self.metrics.clear()

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------
    def _route(self, topic: str, event_key: str | None, payload) -> RouteOutcome:
        try:
            topic_enum = Topic(topic)
        except ValueError:
            logger.info("Unhandled topic", topic=topic, event_key=event_key)
            return RouteOutcome(OutcomeStatus.UNROUTABLE, detail=f"unknown topic {topic}")

        try:
            event_type = self._classify(topic_enum, event_key, payload)
        except DecodeError as exc:
            return self._decode_failure(topic, event_key, payload, None, exc)

        route = self.routes.get(topic_enum, {}).get(event_type)
        if route is None:
            logger.info("Unhandled event type", topic=topic, event_type=event_type)
            return RouteOutcome(OutcomeStatus.UNROUTABLE, event=event_type, detail=f"unknown event type {event_type}")

        try:
            event = decode(route.model, payload)
        except DecodeError as exc:
            return self._decode_failure(topic, event_key, payload, event_type, exc)

        try:
            outcome = route.handler(event)
        except Exception as exc:
            logger.exception("Event handler failed", topic=topic, event_type=event_type)
            return RouteOutcome.failed(OutcomeStatus.HANDLER_ERROR, event_type, str(exc))

        logger.info(
            "Event routed",
            topic=topic,
            event_type=event_type,
            outcome=outcome.status.value,
            delivery_id=outcome.delivery_id,
        )
        return outcome

    def _classify(self, topic: Topic, event_key: str | None, payload) -> str:
        if topic in KEY_CLASSIFIED_TOPICS:
            if not event_key:
                raise DecodeError("Missing transport key")
            return event_key

        data = load_payload(payload)
        event_type = data.get("eventType")
        if event_type in (None, ""):
            raise DecodeError("Missing eventType")
        return str(event_type)

    def _decode_failure(self, topic, event_key, payload, event_type, exc: DecodeError) -> RouteOutcome:
        logger.warning(
            "Event could not be decoded",
            topic=topic,
            event_key=event_key,
            event_type=event_type,
            error=str(exc),
        )
        if self.dead_letters:
            self._record_dead_letter(topic, event_key, payload, str(exc))
        return RouteOutcome.failed(OutcomeStatus.DECODE_ERROR, event_type, str(exc))

    def _record_dead_letter(self, topic, event_key, payload, reason: str) -> None:
        try:
            letter = DeadLetter.capture(topic, event_key, payload, stage="decode", reason=reason)
            current_domain.repository_for(DeadLetter).add(letter)
        except Exception as exc:
            logger.error("Could not record dead letter", topic=topic, event_key=event_key, error=str(exc))
