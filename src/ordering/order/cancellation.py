"""Order cancellation and stock return.

Only unpaid orders can be cancelled. The status transition happens first, so
a second cancellation fails on the state machine before touching the ledger
and each reserved unit is returned at most once. Returning stock is best
effort: a line the ledger refuses to release is logged and the cancellation
stands. Stock rows are written in the cancellation's unit of work, so a
storage failure while committing rolls the status change back with them and
the order stays cancellable.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order
from ordering.stock.ledger import StockLedger
from ordering.utils.logging import get_logger

logger = get_logger(__name__)


@ordering.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    requesting_user_id = Identifier()
    reason = String(required=True, max_length=500)
    cancelled_by = String(required=True, max_length=50)


def cancel_and_release(order, reason, cancelled_by, ledger=None):
    """Cancel ``order``, persist it and return its units to the ledger."""
    order.cancel(reason=reason, cancelled_by=cancelled_by)
    current_domain.repository_for(Order).add(order)

    ledger = ledger or StockLedger()
    released = 0
    for line in order.ordered_lines:
        try:
            ledger.release(line.menu_item_id, order.pickup_date, line.quantity)
            released += 1
        except Exception as exc:
            logger.warning(
                "stock_release_failed",
                order_id=str(order.id),
                menu_item_id=str(line.menu_item_id),
                quantity=line.quantity,
                error=str(exc),
            )

    logger.info(
        "order_cancelled",
        order_id=str(order.id),
        cancelled_by=cancelled_by,
        released_lines=released,
        total_lines=len(order.lines),
    )
    return order


@ordering.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        order = current_domain.repository_for(Order).get(command.order_id)
        if command.requesting_user_id:
            order.assert_owned_by(command.requesting_user_id)
        cancel_and_release(order, reason=command.reason, cancelled_by=command.cancelled_by)
        return str(order.id)
