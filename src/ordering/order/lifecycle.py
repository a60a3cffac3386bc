"""Order lifecycle engine: the entry point for every order transition.

Each operation takes the order's critical section (and, when stock moves, the
critical sections of the affected ledger keys) before dispatching its command,
and keeps them until the command's unit of work has committed. Two transitions
on the same order therefore serialize: the second one sees the status the
first one wrote and fails on the state machine instead of acting twice.
"""

import json
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.order.cancellation import CancelOrder
from ordering.order.creation import PlaceOrder, reservation_date
from ordering.order.fulfillment import CompleteOrder, MarkOrderReady
from ordering.order.order import CancellationActor, Order
from ordering.order.payment import MarkOrderPaid
from ordering.order.queries import get_order, orders_for_user, orders_for_vendor
from ordering.stock.ledger import StockLedger, stock_key
from ordering.utils.clock import utc_now
from ordering.utils.locks import KeyedLock, order_locks
from ordering.utils.logging import get_logger

logger = get_logger(__name__)

EXPIRED_REASON = "Payment window expired"
USER_REASON = "Cancelled by user"


class OrderLifecycle:
    def __init__(
        self,
        ledger: StockLedger | None = None,
        locks: KeyedLock = order_locks,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.ledger = ledger or StockLedger()
        self.locks = locks
        self.clock = clock

    # -------------------------------------------------------------------
    # Critical sections
    # -------------------------------------------------------------------
    @contextmanager
    def transition(self, order_id, with_stock: bool = False) -> Iterator[None]:
        """Hold the order's critical section, plus its stock keys when ``with_stock`` is set."""
        with self.locks.hold(str(order_id)):
            if not with_stock:
                yield
                return
            # Lines and pickup date never change after placement, so the keys are stable
            order = current_domain.repository_for(Order).get(order_id)
            keys = [stock_key(line.menu_item_id, order.pickup_date) for line in order.lines]
            with self.ledger.hold(keys):
                yield

    def _dispatch(self, command) -> dict:
        order_id = current_domain.process(command, asynchronous=False)
        return get_order(order_id)

    # -------------------------------------------------------------------
    # Placement
    # -------------------------------------------------------------------
    def create_order(self, user_id, vendor_id, lines, payment_method) -> dict:
        """Reserve stock for every line and place the order, atomically.

        ``lines`` is a list of ``{"menu_item_id": ..., "quantity": ...}`` dicts.
        """
        if not isinstance(lines, list):
            raise ValidationError({"lines": ["Order must contain at least one item"]})

        placed_at = self.clock()
        stock_date = reservation_date(placed_at)
        keys = [
            stock_key(line["menu_item_id"], stock_date)
            for line in lines
            if isinstance(line, dict) and line.get("menu_item_id")
        ]

        with self.ledger.hold(keys):
            order_id = current_domain.process(
                PlaceOrder(
                    user_id=user_id,
                    vendor_id=vendor_id,
                    lines=json.dumps(lines),
                    payment_method=payment_method,
                    placed_at=placed_at,
                ),
                asynchronous=False,
            )
        return get_order(order_id)

    # -------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------
    def mark_paid(self, order_id, payment_id=None) -> dict:
        with self.transition(order_id):
            snapshot = self._dispatch(MarkOrderPaid(order_id=order_id, payment_id=payment_id))
        logger.info("order_paid", order_id=str(order_id), payment_id=payment_id)
        return snapshot

    pay_order = mark_paid

    def mark_ready(self, order_id, requesting_vendor_id=None) -> dict:
        with self.transition(order_id):
            snapshot = self._dispatch(MarkOrderReady(order_id=order_id, requesting_vendor_id=requesting_vendor_id))
        logger.info("order_ready_for_pickup", order_id=str(order_id))
        return snapshot

    def mark_completed(self, order_id, requesting_vendor_id=None) -> dict:
        with self.transition(order_id):
            snapshot = self._dispatch(CompleteOrder(order_id=order_id, requesting_vendor_id=requesting_vendor_id))
        logger.info("order_completed", order_id=str(order_id))
        return snapshot

    def cancel(self, order_id, requesting_user_id=None) -> dict:
        with self.transition(order_id, with_stock=True):
            return self._dispatch(
                CancelOrder(
                    order_id=order_id,
                    requesting_user_id=requesting_user_id,
                    reason=USER_REASON,
                    cancelled_by=CancellationActor.USER.value,
                )
            )

    cancel_order = cancel

    def cancel_automatically(
        self,
        order_id,
        reason: str = EXPIRED_REASON,
        cancelled_by: str = CancellationActor.SWEEPER.value,
    ) -> dict:
        """Cancel without an ownership check. Used by the sweeper and the payment provider."""
        with self.transition(order_id, with_stock=True):
            return self._dispatch(
                CancelOrder(
                    order_id=order_id,
                    reason=reason,
                    cancelled_by=cancelled_by,
                )
            )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def get_order(self, order_id) -> dict:
        return get_order(order_id)

    def orders_for_user(self, user_id) -> list[dict]:
        return orders_for_user(user_id)

    def orders_for_vendor(self, vendor_id) -> list[dict]:
        return orders_for_vendor(vendor_id)

