"""Notification dispatcher: records an attempt and sends it on a worker.

``dispatch`` persists a PENDING record and returns its id as soon as the
attempt is queued; the actual provider call happens on a bounded thread pool.
Every accepted attempt ends with exactly one terminal write (SENT or FAILED),
performed in a ``finally`` block around the provider call.

Admission is bounded by ``workers + queue_capacity``. When every slot is taken
the caller waits up to ``admission_timeout`` seconds and is then
rejected with ``DispatchRejected``, so a slow provider pushes back on the
event consumer instead of piling up unbounded work.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait

import structlog
from mailroom.config import Settings, get_settings
from mailroom.delivery.record import DeliveryRecord
from mailroom.domain import mailroom
from mailroom.provider import DeliveryProvider, get_provider
from protean.utils.globals import current_domain

logger = structlog.get_logger(__name__)


class DispatchRejected(Exception):
    """No dispatch capacity became free within the admission timeout."""


class DispatchInitiationError(Exception):
    """The PENDING record could not be persisted, so the attempt does not exist."""


class NotificationDispatcher:
    """Creates delivery records and hands them to the provider asynchronously."""

    def __init__(
        self,
        provider: DeliveryProvider,
        domain=mailroom,
        max_workers: int = 8,
        queue_capacity: int = 100,
        admission_timeout: float = 5.0,
        inline: bool = False,
    ):
        self.provider = provider
        self.domain = domain
        self.admission_timeout = admission_timeout
        self.inline = inline

        self._slots = threading.BoundedSemaphore(max_workers + queue_capacity)
        self._executor = None if inline else ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="mailroom-dispatch"
        )
        self._in_flight: set[Future] = set()
        self._lock = threading.Lock()

    # -------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------
    def dispatch(
        self,
        recipient: str,
        subject: str,
        content: str,
        notification_type: str,
        user_id: int | None = None,
        *,
        is_html: bool = False,
        order_id: int | None = None,
        reset_token: str | None = None,
        retry_of: str | None = None,
    ) -> str:
        """Record a PENDING attempt and queue it for delivery.

        Returns:
            The id of the new delivery record.

        Raises:
            DispatchRejected: no capacity within the admission timeout.
            DispatchInitiationError: the PENDING record could not be stored.
        """
        self._admit()

        try:
            record = DeliveryRecord.create(
                recipient_email=recipient,
                subject=subject,
                content=content,
                notification_type=notification_type,
                user_id=user_id,
                is_html=is_html,
                order_id=order_id,
                reset_token=reset_token,
                retry_of=retry_of,
            )
            current_domain.repository_for(DeliveryRecord).add(record)
        except Exception as exc:
            self._slots.release()
            logger.error(
                "Could not record delivery attempt",
                recipient=recipient,
                notification_type=notification_type,
                error=str(exc),
            )
            raise DispatchInitiationError(str(exc)) from exc

        record_id = str(record.id)
        logger.info(
            "Delivery attempt recorded",
            delivery_id=record_id,
            recipient=recipient,
            notification_type=notification_type,
        )

        if self.inline:
            try:
                self._deliver(record_id)
            finally:
                self._slots.release()
        else:
            try:
                future = self._executor.submit(self._run_in_context, record_id)
            except RuntimeError as exc:
                # Pool already shut down; the attempt still gets its terminal write
                self._slots.release()
                repo = current_domain.repository_for(DeliveryRecord)
                self._finish(repo, record_id, f"Dispatcher unavailable: {exc}")
                return record_id
            with self._lock:
                self._in_flight.add(future)
            future.add_done_callback(self._forget)

        return record_id

    def drain(self, timeout: float | None = None) -> bool:
        """Wait for queued attempts to finish. Returns False on timeout."""
        with self._lock:
            pending = set(self._in_flight)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def shutdown(self, wait_for_pending: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait_for_pending)

    @property
    def in_flight(self) -> int:
        with self._lock:
            return sum(1 for future in self._in_flight if not future.done())

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------
    def _admit(self) -> None:
        if self.admission_timeout <= 0:
            admitted = self._slots.acquire(blocking=False)
        else:
            admitted = self._slots.acquire(timeout=self.admission_timeout)
        if not admitted:
            logger.warning("Dispatch capacity exhausted, rejecting attempt")
            raise DispatchRejected("Dispatch capacity exhausted")

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._in_flight.discard(future)

    def _run_in_context(self, record_id: str) -> None:
        try:
            with self.domain.domain_context():
                self._deliver(record_id)
        finally:
            self._slots.release()

    def _deliver(self, record_id: str) -> None:
        repo = current_domain.repository_for(DeliveryRecord)
        try:
            record = repo.get(record_id)
        except Exception as exc:
            # Left in PENDING; surfaces in the stale-pending audit
            logger.error("Failed to load delivery record for sending", delivery_id=record_id, error=str(exc))
            return

        error = None
        try:
            if record.is_html:
                self.provider.send_html(record.recipient_email, record.subject, record.content)
            else:
                self.provider.send_plain_text(record.recipient_email, record.subject, record.content)
        except Exception as exc:
            error = str(exc) or exc.__class__.__name__
        finally:
            self._finish(repo, record_id, error)

    def _finish(self, repo, record_id: str, error: str | None) -> None:
        try:
            if error is None:
                repo.apply(record_id, lambda record: record.mark_sent())
                logger.info("Email sent", delivery_id=record_id, provider=self.provider.name)
            else:
                repo.apply(record_id, lambda record: record.mark_failed(error))
                logger.warning("Email delivery failed", delivery_id=record_id, error=error)
        except Exception as exc:
            logger.error(
                "Could not persist delivery outcome",
                delivery_id=record_id,
                delivered=error is None,
                error=str(exc),
            )


# ---------------------------------------------------------------------------
# Process-wide dispatcher
# ---------------------------------------------------------------------------
_current_dispatcher: NotificationDispatcher | None = None


def build_dispatcher(settings: Settings, provider: DeliveryProvider | None = None) -> NotificationDispatcher:
    return NotificationDispatcher(
        provider=provider or get_provider(),
        max_workers=settings.dispatch_workers,
        queue_capacity=settings.dispatch_queue_capacity,
        admission_timeout=settings.dispatch_admission_timeout,
        inline=settings.dispatch_mode == "inline",
    )


def get_dispatcher() -> NotificationDispatcher:
    """Return the active dispatcher, building it from settings on first use."""
    global _current_dispatcher
    if _current_dispatcher is None:
        _current_dispatcher = build_dispatcher(get_settings())
    return _current_dispatcher


def set_dispatcher(dispatcher: NotificationDispatcher) -> None:
    global _current_dispatcher
    _current_dispatcher = dispatcher


def reset_dispatcher() -> None:
    """Shut down and forget the active dispatcher."""
    global _current_dispatcher
    if _current_dispatcher is not None:
        _current_dispatcher.shutdown()
    _current_dispatcher = None
