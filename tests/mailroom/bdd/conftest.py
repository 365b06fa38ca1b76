"""Shared BDD fixtures and step definitions for delivery scenarios."""

import pytest
from mailroom.delivery.record import DeliveryRecord
from mailroom.routing.router import EventRouter
from protean import current_domain
from pytest_bdd import given, parsers, then, when


@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


@pytest.fixture()
def context():
    """Outcomes and record ids collected while a scenario runs."""
    return {}


def _repo():
    return current_domain.repository_for(DeliveryRecord)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a user {user_id:d} named "{first_name}" with email "{email}"'))
def known_user(directory, user_id, first_name, email):
    directory.add(user_id, email, first_name)


@given(parsers.cfparse('the email provider rejects messages with "{reason}"'))
def provider_rejects(provider, reason):
    provider.configure(should_succeed=False, failure_reason=reason)


@given("the email provider accepts messages")
def provider_accepts(provider):
    provider.configure(should_succeed=True)


# ---------------------------------------------------------------------------
# Event steps (usable as Given or When)
# ---------------------------------------------------------------------------
def _route_order_event(context, event_type, user_id, order_id, amount):
    outcome = EventRouter().route(
        "order-events",
        f"order-{order_id}",
        {"eventType": event_type, "userId": user_id, "orderId": order_id, "amount": amount},
    )
    context["outcome"] = outcome
    context["delivery_id"] = outcome.delivery_id


_ORDER_EVENT = (
    'an "{event_type}" order event arrives for user {user_id:d} and order {order_id:d} with amount "{amount}"'
)

given(parsers.cfparse(_ORDER_EVENT))(_route_order_event)
when(parsers.cfparse(_ORDER_EVENT))(_route_order_event)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the event outcome is "{status}"'))
def outcome_is(context, status):
    assert context["outcome"].status.value == status


@then(parsers.cfparse('the delivery record has type "{notification_type}" and order {order_id:d}'))
def record_type_and_order(context, notification_type, order_id):
    record = _repo().get(context["delivery_id"])
    assert record.notification_type == notification_type
    assert record.order_id == order_id


@then(parsers.cfparse('the delivery record status is "{status}"'))
def record_status(context, status):
    assert _repo().get(context["delivery_id"]).status == status


@then(parsers.cfparse('the delivery record error is "{message}"'))
def record_error(context, message):
    assert _repo().get(context["delivery_id"]).error_message == message


@then(parsers.cfparse('{count:d} email was sent to "{email}"'))
def emails_sent(provider, count, email):
    assert [m["to"] for m in provider.sent_emails] == [email] * count


@then("no delivery record exists")
def no_records():
    assert _repo()._dao.query.all().total == 0


@then(parsers.cfparse('the retry is refused with "{message}"'))
def retry_refused(error, message):
    assert error["exc"] is not None
    assert message in str(error["exc"])
