"""Asynchronous payment settlement driven by provider notifications.

The bridge has already matched the notification to an order and holds its
critical section. This handler asks the provider for the authoritative status
and applies it: approved settles the order, rejected or cancelled cancels it
and returns its stock. Repeated deliveries find the order already settled and
change nothing.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.gateway import get_gateway
from ordering.order.cancellation import cancel_and_release
from ordering.order.order import CancellationActor, Order, OrderStatus
from ordering.utils.logging import get_logger

logger = get_logger(__name__)


@ordering.command(part_of="Order")
class SettlePayment:
    order_id = Identifier(required=True)
    payment_id = String(required=True, max_length=255)


@ordering.command_handler(part_of=Order)
class PaymentSettlementHandler:
    @handle(SettlePayment)
    def settle_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        result = get_gateway().get_payment(command.payment_id)
        status = OrderStatus(order.status)

        if result.approved:
            if status != OrderStatus.PENDING_PAYMENT:
                logger.info(
                    "payment_notification_ignored",
                    order_id=str(order.id),
                    status=order.status,
                    payment_status=result.status,
                )
                return "ignored"
            order.mark_paid(payment_id=command.payment_id)
            repo.add(order)
            return "paid"

        if result.rejected:
            if status != OrderStatus.PENDING_PAYMENT:
                # Cancelled already, or settled: refunds are not handled here
                logger.info(
                    "payment_notification_ignored",
                    order_id=str(order.id),
                    status=order.status,
                    payment_status=result.status,
                )
                return "ignored"
            cancel_and_release(
                order,
                reason=f"Payment {result.status} by provider ({result.status_detail or 'no detail'})",
                cancelled_by=CancellationActor.PAYMENT_PROVIDER.value,
            )
            return "cancelled"

        logger.info("payment_notification_pending", order_id=str(order.id), payment_status=result.status)
        return "pending"
