"""Mailroom bounded context — turns upstream domain events into email deliveries.

Consumes user, order and notification-request events, renders content,
dispatches through a single configured email provider, and tracks every
delivery attempt for audit and retry.
"""

import structlog
from protean.domain import Domain

mailroom = Domain(name="mailroom")

logger = structlog.get_logger(__name__)
