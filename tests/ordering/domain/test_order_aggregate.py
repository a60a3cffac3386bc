"""Tests for the Order aggregate: placement, totals and the status state machine."""

from datetime import UTC, datetime
from decimal import Decimal

import pytest
from ordering.errors import Forbidden, IllegalTransition
from ordering.order.events import (
    OrderCancelled,
    OrderCompleted,
    OrderPaid,
    OrderPlaced,
    OrderReadyForPickup,
    PaymentPendingRecorded,
)
from ordering.order.order import CancellationActor, Order, OrderStatus
from protean.exceptions import ValidationError

PLACED_AT = datetime(2030, 5, 14, 15, 0, tzinfo=UTC)
PICKUP_TIME = datetime(2030, 5, 14, 17, 30, tzinfo=UTC)


def _make_order(**overrides):
    defaults = {
        "user_id": "user-001",
        "user_name": "Ana Quispe",
        "vendor_id": "vendor-001",
        "vendor_name": "Cafe Central",
        "lines_data": [
            {"menu_item_id": "menu-001", "item_name": "Lomo Saltado", "quantity": 2, "price_label": "S/ 12.50"},
            {"menu_item_id": "menu-002", "item_name": "Chicha Morada", "quantity": 1, "price_label": "3.00"},
        ],
        "payment_method": "YAPE",
        "pickup_code": "ORD-00042",
        "pickup_time": PICKUP_TIME,
        "placed_at": PLACED_AT,
    }
    defaults.update(overrides)
    return Order.place(**defaults)


def _make_paid_order():
    order = _make_order()
    order.mark_paid(payment_id="pay-001")
    return order


class TestOrderPlacement:
    def test_new_order_is_pending_payment(self):
        order = _make_order()
        assert order.status == OrderStatus.PENDING_PAYMENT.value
        assert order.is_pending_payment

    def test_pickup_date_follows_pickup_time(self):
        order = _make_order()
        assert order.pickup_date == PICKUP_TIME.date()
        assert order.created_at == PLACED_AT

    def test_lines_keep_label_and_parsed_price(self):
        order = _make_order()
        first, second = order.ordered_lines
        assert first.price_label == "S/ 12.50"
        assert first.unit_price == "12.50"
        assert first.position == 0
        assert second.unit_price == "3.00"
        assert second.position == 1

    def test_unparseable_price_is_kept_without_amount(self):
        order = _make_order(
            lines_data=[{"menu_item_id": "menu-003", "item_name": "Special", "quantity": 1, "price_label": "Ask"}]
        )
        line = order.lines[0]
        assert line.price_label == "Ask"
        assert line.unit_price is None

    def test_placement_raises_order_placed(self):
        order = _make_order()
        assert len(order._events) == 1
        event = order._events[0]
        assert isinstance(event, OrderPlaced)
        assert event.pickup_code == "ORD-00042"
        assert event.payment_method == "YAPE"

    def test_line_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            _make_order(lines_data=[{"menu_item_id": "menu-001", "item_name": "Lomo", "quantity": 0}])


class TestOrderTotals:
    def test_total_sums_line_subtotals(self):
        assert _make_order().total_amount() == Decimal("28.00")

    def test_total_rounds_each_line_to_cents(self):
        order = _make_order(
            lines_data=[{"menu_item_id": "m", "item_name": "Tea", "quantity": 3, "price_label": "1.335"}]
        )
        # 1.335 is captured as 1.34
        assert order.total_amount() == Decimal("4.02")

    def test_total_fails_on_unparseable_price(self):
        order = _make_order(
            lines_data=[
                {"menu_item_id": "menu-001", "item_name": "Lomo", "quantity": 1, "price_label": "12.50"},
                {"menu_item_id": "menu-003", "item_name": "Special", "quantity": 1, "price_label": "Ask"},
            ]
        )
        with pytest.raises(ValidationError) as exc:
            order.total_amount()
        assert "Special" in exc.value.messages["price"][0]


class TestOrderPayment:
    def test_mark_paid(self):
        order = _make_order()
        order.mark_paid(payment_id="pay-001")
        assert order.status == OrderStatus.PAID.value
        assert order.payment_id == "pay-001"
        assert isinstance(order._events[-1], OrderPaid)

    def test_mark_paid_twice_fails(self):
        order = _make_paid_order()
        with pytest.raises(IllegalTransition) as exc:
            order.mark_paid()
        assert exc.value.current == OrderStatus.PAID.value
        assert exc.value.messages == {"status": ["Cannot transition from Paid to Paid"]}

    def test_record_payment_pending_keeps_status(self):
        order = _make_order()
        order.record_payment_pending("pay-777")
        assert order.status == OrderStatus.PENDING_PAYMENT.value
        assert order.payment_id == "pay-777"
        assert isinstance(order._events[-1], PaymentPendingRecorded)

    def test_cancelled_order_cannot_be_paid(self):
        order = _make_order()
        order.cancel("Changed my mind", CancellationActor.USER.value)
        with pytest.raises(IllegalTransition):
            order.mark_paid()


class TestOrderFulfillment:
    def test_full_happy_path(self):
        order = _make_paid_order()
        order.mark_ready()
        assert order.status == OrderStatus.READY_FOR_PICKUP.value
        order.complete()
        assert order.status == OrderStatus.COMPLETED.value
        assert [type(e) for e in order._events][-2:] == [OrderReadyForPickup, OrderCompleted]

    def test_unpaid_order_cannot_be_ready(self):
        with pytest.raises(IllegalTransition):
            _make_order().mark_ready()

    def test_paid_order_cannot_skip_to_completed(self):
        with pytest.raises(IllegalTransition):
            _make_paid_order().complete()

    def test_other_vendor_is_forbidden(self):
        order = _make_paid_order()
        with pytest.raises(Forbidden):
            order.mark_ready(requesting_vendor_id="vendor-002")
        assert order.status == OrderStatus.PAID.value

    def test_owning_vendor_may_transition(self):
        order = _make_paid_order()
        order.mark_ready(requesting_vendor_id="vendor-001")
        order.complete(requesting_vendor_id="vendor-001")
        assert order.status == OrderStatus.COMPLETED.value


class TestOrderCancellation:
    def test_cancel_records_reason_and_actor(self):
        order = _make_order()
        order.cancel("Payment window expired", CancellationActor.SWEEPER.value)
        assert order.status == OrderStatus.CANCELLED.value
        assert order.cancellation_reason == "Payment window expired"
        assert order.cancelled_by == "Sweeper"
        assert isinstance(order._events[-1], OrderCancelled)

    def test_cancel_twice_fails(self):
        order = _make_order()
        order.cancel("first", CancellationActor.USER.value)
        with pytest.raises(IllegalTransition):
            order.cancel("second", CancellationActor.USER.value)
        assert order.cancellation_reason == "first"

    def test_paid_order_cannot_be_cancelled(self):
        with pytest.raises(IllegalTransition):
            _make_paid_order().cancel("too late", CancellationActor.USER.value)

    @pytest.mark.parametrize(
        "status",
        [OrderStatus.COMPLETED, OrderStatus.CANCELLED],
    )
    def test_terminal_states_accept_nothing(self, status):
        order = _make_order()
        order.status = status.value
        for target in OrderStatus:
            with pytest.raises(IllegalTransition):
                order._assert_can_transition(target)

    def test_ownership_check(self):
        order = _make_order()
        order.assert_owned_by("user-001")
        with pytest.raises(Forbidden) as exc:
            order.assert_owned_by("user-002")
        assert exc.value.messages == {"order": ["You can only cancel your own orders"]}
