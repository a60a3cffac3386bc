"""Application tests for the expiration sweeper."""

import time
from datetime import timedelta

import pytest
from ordering.domain import ordering
from ordering.order.lifecycle import EXPIRED_REASON
from ordering.order.order import CancellationActor, Order, OrderStatus
from ordering.order.repository import OrderRepository
from ordering.order.sweeper import ExpirationSweeper
from protean import current_domain
from protean.exceptions import ObjectNotFoundError

WINDOW = timedelta(minutes=5)


@pytest.fixture()
def sweeper(lifecycle, clock):
    return ExpirationSweeper(lifecycle=lifecycle, clock=clock, window=WINDOW, interval=0.01)


@pytest.fixture()
def place(directory, lifecycle, stocked):
    stocked("menu-001", 10)

    def _place(quantity=1):
        lines = [{"menu_item_id": "menu-001", "quantity": quantity}]
        return lifecycle.create_order("user-001", "vendor-001", lines, "yape")

    return _place


class TestRunOnce:
    def test_nothing_to_do(self, sweeper):
        assert sweeper.run_once() == 0

    def test_fresh_orders_survive(self, sweeper, place, clock):
        order = place()
        clock.advance(minutes=4)
        assert sweeper.run_once() == 0
        assert current_domain.repository_for(Order).get(order["id"]).status == OrderStatus.PENDING_PAYMENT.value

    def test_expired_order_is_cancelled(self, sweeper, place, clock, units_left):
        order = place(quantity=3)
        clock.advance(minutes=6)

        assert sweeper.run_once() == 1

        stored = current_domain.repository_for(Order).get(order["id"])
        assert stored.status == OrderStatus.CANCELLED.value
        assert stored.cancellation_reason == EXPIRED_REASON
        assert stored.cancelled_by == CancellationActor.SWEEPER.value
        assert units_left("menu-001") == 10

    def test_only_orders_older_than_window(self, sweeper, place, clock):
        old = place()
        clock.advance(minutes=4)
        young = place()
        clock.advance(minutes=2)

        assert sweeper.run_once() == 1
        repo = current_domain.repository_for(Order)
        assert repo.get(old["id"]).status == OrderStatus.CANCELLED.value
        assert repo.get(young["id"]).status == OrderStatus.PENDING_PAYMENT.value

    def test_paid_orders_are_left_alone(self, sweeper, place, clock, lifecycle, units_left):
        order = place(quantity=2)
        lifecycle.mark_paid(order["id"])
        clock.advance(minutes=30)

        assert sweeper.run_once() == 0
        assert current_domain.repository_for(Order).get(order["id"]).status == OrderStatus.PAID.value
        assert units_left("menu-001") == 8

    def test_second_run_is_idle(self, sweeper, place, clock, units_left):
        place(quantity=2)
        clock.advance(minutes=10)
        assert sweeper.run_once() == 1
        assert sweeper.run_once() == 0
        assert units_left("menu-001") == 10

    def test_one_failure_does_not_stop_the_sweep(self, sweeper, place, clock, lifecycle, monkeypatch):
        first = place()
        second = place()
        clock.advance(minutes=10)

        original = lifecycle.cancel_automatically

        def flaky(order_id, **kwargs):
            if order_id == first["id"]:
                raise RuntimeError("ledger offline")
            return original(order_id, **kwargs)

        monkeypatch.setattr(lifecycle, "cancel_automatically", flaky)

        assert sweeper.run_once() == 1
        repo = current_domain.repository_for(Order)
        assert repo.get(first["id"]).status == OrderStatus.PENDING_PAYMENT.value
        assert repo.get(second["id"]).status == OrderStatus.CANCELLED.value

    def test_order_paid_after_selection_is_skipped(self, sweeper, place, clock, lifecycle, units_left, monkeypatch):
        first = place()
        second = place()
        clock.advance(minutes=10)

        original = OrderRepository.find_pending_created_before

        def select_then_pay(repo, cutoff):
            candidates = original(repo, cutoff)
            lifecycle.mark_paid(first["id"], payment_id="pay-race")
            return candidates

        monkeypatch.setattr(OrderRepository, "find_pending_created_before", select_then_pay)

        assert sweeper.run_once() == 1
        repo = current_domain.repository_for(Order)
        assert repo.get(first["id"]).status == OrderStatus.PAID.value
        assert repo.get(second["id"]).status == OrderStatus.CANCELLED.value
        assert units_left("menu-001") == 9

    def test_vanished_order_is_skipped(self, sweeper, place, clock, lifecycle, monkeypatch):
        first = place()
        second = place()
        clock.advance(minutes=10)

        original = lifecycle.cancel_automatically

        def missing(order_id, **kwargs):
            if order_id == first["id"]:
                raise ObjectNotFoundError(f"`Order` object with identifier {order_id} does not exist.")
            return original(order_id, **kwargs)

        monkeypatch.setattr(lifecycle, "cancel_automatically", missing)

        assert sweeper.run_once() == 1
        assert current_domain.repository_for(Order).get(second["id"]).status == OrderStatus.CANCELLED.value

    def test_zero_window_expires_everything_placed_before_now(self, place, clock, lifecycle):
        order = place()
        clock.advance(seconds=1)
        sweeper = ExpirationSweeper(lifecycle=lifecycle, clock=clock, window=timedelta(0))

        assert sweeper.window == timedelta(0)
        assert sweeper.run_once() == 1
        assert current_domain.repository_for(Order).get(order["id"]).status == OrderStatus.CANCELLED.value


class TestBackgroundLoop:
    def test_start_and_stop(self, place, clock, lifecycle):
        order = place()
        clock.advance(minutes=10)
        sweeper = ExpirationSweeper(domain=ordering, lifecycle=lifecycle, clock=clock, window=WINDOW, interval=0.01)

        sweeper.start()
        try:
            assert sweeper.running
            deadline = time.monotonic() + 2
            while time.monotonic() < deadline:
                if current_domain.repository_for(Order).get(order["id"]).status == OrderStatus.CANCELLED.value:
                    break
                time.sleep(0.01)
        finally:
            sweeper.stop()

        assert not sweeper.running
        assert current_domain.repository_for(Order).get(order["id"]).status == OrderStatus.CANCELLED.value

    def test_start_is_idempotent(self, sweeper):
        sweeper.start()
        thread = sweeper._thread
        sweeper.start()
        assert sweeper._thread is thread
        sweeper.stop()
