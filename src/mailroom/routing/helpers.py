"""Shared steps for the use-case handlers.

Provides the common pattern: look up the user → assemble content (template or
literal) → dispatch. Each step that can fail returns a ``RouteOutcome``
instead of raising, so the handler reads as a straight line.
"""

import structlog
from mailroom.config import get_settings
from mailroom.delivery.dispatcher import DispatchInitiationError, DispatchRejected, get_dispatcher
from mailroom.rendering import TemplateError, get_renderer
from mailroom.routing.outcome import OutcomeStatus, RouteOutcome
from mailroom.users import UserLookupError, UserProfile, get_user_directory

logger = structlog.get_logger(__name__)

SIGN_OFF = "Best regards,\n{company_name} Team"


def order_number(order_id: int) -> str:
    return f"ORD-{order_id}"


def order_url(number: str) -> str:
    return f"{get_settings().frontend_url}/orders/{number}"


def reset_url(token: str) -> str:
    return f"{get_settings().frontend_url}/reset-password?token={token}"


def format_amount(amount) -> str:
    return f"${amount}"


def plain_text_body(first_name: str, *paragraphs: str) -> str:
    """Greeting, paragraphs and the company sign-off as a plain-text email."""
    sign_off = SIGN_OFF.format(company_name=get_settings().company_name)
    return "\n\n".join([f"Hello {first_name},", *paragraphs, sign_off])


def resolve_user(event_name: str, user_id: int) -> UserProfile | RouteOutcome:
    """Look up the acting user; a miss or lookup failure becomes an outcome."""
    try:
        user = get_user_directory().lookup_user(user_id)
    except UserLookupError as exc:
        logger.warning("User lookup failed", event_name=event_name, user_id=user_id, error=str(exc))
        return RouteOutcome.failed(OutcomeStatus.LOOKUP_ERROR, event_name, str(exc))

    if user is None:
        logger.info("User not found, skipping notification", event_name=event_name, user_id=user_id)
        return RouteOutcome(OutcomeStatus.SKIPPED, event=event_name, detail=f"user {user_id} not found")

    return user


def send_templated(
    event_name: str,
    user: UserProfile,
    template_name: str,
    variables: dict,
    notification_type: str,
    **record_fields,
) -> RouteOutcome:
    """Render ``template_name`` and dispatch the HTML result to ``user``.

    ``company_name`` is supplied to every template from settings.
    """
    try:
        rendered = get_renderer().render(template_name, {"company_name": get_settings().company_name, **variables})
    except TemplateError as exc:
        logger.warning(
            "Template rendering failed",
            event_name=event_name,
            template=template_name,
            error=str(exc),
        )
        return RouteOutcome.failed(OutcomeStatus.TEMPLATE_ERROR, event_name, str(exc))

    return _dispatch(
        event_name,
        user,
        rendered.subject,
        rendered.body,
        notification_type,
        is_html=rendered.is_html,
        **record_fields,
    )


def send_literal(
    event_name: str,
    user: UserProfile,
    subject: str,
    body: str,
    notification_type: str,
    **record_fields,
) -> RouteOutcome:
    """Dispatch a plain-text message to ``user``."""
    return _dispatch(event_name, user, subject, body, notification_type, is_html=False, **record_fields)


def _dispatch(event_name, user, subject, body, notification_type, **record_fields) -> RouteOutcome:
    try:
        delivery_id = get_dispatcher().dispatch(
            user.email,
            subject,
            body,
            notification_type,
            user.user_id,
            **record_fields,
        )
    except (DispatchRejected, DispatchInitiationError) as exc:
        logger.error("Could not dispatch notification", event_name=event_name, user_id=user.user_id, error=str(exc))
        return RouteOutcome.failed(OutcomeStatus.DISPATCH_ERROR, event_name, str(exc))

    return RouteOutcome.dispatched(event_name, delivery_id)
