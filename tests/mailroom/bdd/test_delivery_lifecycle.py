"""BDD tests for the delivery lifecycle."""

from mailroom.delivery.record import DeliveryRecord
from mailroom.delivery.retry import retry_delivery
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import parsers, scenarios, then, when

scenarios("features/delivery_lifecycle.feature")


@when("the failed delivery is retried")
def retry_failed(context):
    context["original_id"] = context["delivery_id"]
    context["new_id"] = retry_delivery(context["delivery_id"])


@when("the delivery is retried")
def retry_any(context, error):
    try:
        retry_delivery(context["delivery_id"])
    except ValidationError as exc:
        error["exc"] = exc


@then(parsers.cfparse('the original delivery record status is "{status}"'))
def original_status(context, status):
    assert current_domain.repository_for(DeliveryRecord).get(context["original_id"]).status == status


@then(parsers.cfparse('the new delivery record status is "{status}"'))
def new_status(context, status):
    assert current_domain.repository_for(DeliveryRecord).get(context["new_id"]).status == status


@then("the new delivery record is linked to the original")
def linked(context):
    record = current_domain.repository_for(DeliveryRecord).get(context["new_id"])
    assert str(record.retry_of) == context["original_id"]
