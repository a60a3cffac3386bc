"""BDD tests for the order lifecycle: placement, payment, fulfillment and expiry."""

from datetime import timedelta

from ordering.order.order import Order
from ordering.order.sweeper import ExpirationSweeper
from protean import current_domain
from pytest_bdd import given, parsers, scenarios, then, when

scenarios("features/order_lifecycle.feature")


def _lines(menu_item_id, quantity):
    return [{"menu_item_id": menu_item_id, "quantity": quantity}]


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse('"{user_id}" placed an order for {quantity:d} units of "{menu_item_id}"'),
    target_fixture="order",
)
def _(lifecycle, user_id, quantity, menu_item_id):
    return lifecycle.create_order(user_id, "vendor-001", _lines(menu_item_id, quantity), "yape")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('"{user_id}" orders {quantity:d} units of "{menu_item_id}"'))
def _(lifecycle, attempt, user_id, quantity, menu_item_id):
    attempt(lifecycle.create_order, user_id, "vendor-001", _lines(menu_item_id, quantity), "yape")


@when("the order is paid")
def _(lifecycle, order):
    lifecycle.mark_paid(order["id"], payment_id="pay-001")


@when("the vendor marks the order ready")
def _(lifecycle, attempt, order):
    attempt(lifecycle.mark_ready, order["id"], requesting_vendor_id="vendor-001")


@when("the vendor completes the order")
def _(lifecycle, attempt, order):
    attempt(lifecycle.mark_completed, order["id"], requesting_vendor_id="vendor-001")


@when(parsers.cfparse('"{user_id}" cancels the order'))
def _(lifecycle, attempt, order, user_id):
    attempt(lifecycle.cancel, order["id"], requesting_user_id=user_id)


@when(parsers.cfparse("{minutes:d} minutes pass"))
def _(clock, minutes):
    clock.advance(minutes=minutes)


@when("the expiration sweep runs")
def _(lifecycle, clock):
    ExpirationSweeper(lifecycle=lifecycle, clock=clock, window=timedelta(minutes=5)).run_once()


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _(order, status):
    assert current_domain.repository_for(Order).get(order["id"]).status == status


@then(parsers.cfparse('the cancellation reason is "{reason}"'))
def _(order, reason):
    assert current_domain.repository_for(Order).get(order["id"]).cancellation_reason == reason
