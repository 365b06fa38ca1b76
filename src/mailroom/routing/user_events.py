"""Handlers for the ``user-events`` topic.

USER_REGISTERED sends the welcome email; PASSWORD_CHANGED sends a plain-text
security notice.
"""

from mailroom.delivery.record import NotificationType
from mailroom.routing.events import UserEvent
from mailroom.routing.helpers import plain_text_body, resolve_user, send_literal, send_templated
from mailroom.routing.outcome import RouteOutcome


def on_user_registered(event: UserEvent) -> RouteOutcome:
    """Send the welcome email to a newly registered user."""
    user = resolve_user("USER_REGISTERED", event.user_id)
    if isinstance(user, RouteOutcome):
        return user

    return send_templated(
        "USER_REGISTERED",
        user,
        "welcome-email",
        {"first_name": user.first_name},
        NotificationType.USER_REGISTRATION.value,
    )


def on_password_changed(event: UserEvent) -> RouteOutcome:
    user = resolve_user("PASSWORD_CHANGED", event.user_id)
    if isinstance(user, RouteOutcome):
        return user

    body = plain_text_body(
        user.first_name,
        "Your password has been changed successfully. If you did not make this change, "
        "please contact our support team immediately.",
    )
    return send_literal(
        "PASSWORD_CHANGED",
        user,
        "Password Changed Successfully",
        body,
        NotificationType.PASSWORD_RESET.value,
    )
