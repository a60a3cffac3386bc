"""Payment reconciliation bridge.

Turns the two ways a payment settles into lifecycle transitions:

- ``charge_order``: the client hands over a wallet token and the order total
  is charged right away, under the order's critical section so the expiration
  sweep cannot cancel an order that is being paid.
- ``handle_notification``: the provider reports a payment asynchronously.
  Deliveries are at-least-once and may refer to orders this service does not
  know, so every outcome (including failures) is logged and acknowledged.
"""

from protean.utils.globals import current_domain

from ordering.order.lifecycle import OrderLifecycle
from ordering.order.order import Order
from ordering.order.queries import get_order
from ordering.payment.checkout import ChargeOrder
from ordering.payment.webhook import SettlePayment
from ordering.utils.logging import get_logger, order_context

logger = get_logger(__name__)


class PaymentBridge:
    def __init__(self, lifecycle: OrderLifecycle | None = None) -> None:
        self.lifecycle = lifecycle or OrderLifecycle()

    def charge_order(self, order_id, token, payer_email=None) -> dict:
        with self.lifecycle.transition(order_id):
            outcome = current_domain.process(
                ChargeOrder(order_id=order_id, token=token, payer_email=payer_email),
                asynchronous=False,
            )
        return {**outcome, "order": get_order(order_id)}

    def _match(self, payment_id, preference_id):
        repo = current_domain.repository_for(Order)
        order = repo.find_by_payment_id(payment_id) if payment_id else None
        if order is None and preference_id:
            order = repo.find_by_preference_id(preference_id)
        return order

    def handle_notification(self, payment_id=None, preference_id=None) -> str:
        """Apply a provider notification. Never raises; returns what happened."""
        try:
            order = self._match(payment_id, preference_id)
            if order is None:
                logger.warning("payment_notification_unmatched", payment_id=payment_id, preference_id=preference_id)
                return "unmatched"
            if not payment_id:
                logger.warning("payment_notification_without_payment_id", order_id=str(order.id))
                return "ignored"

            with order_context(order.id, payment_id=str(payment_id)):
                with self.lifecycle.transition(order.id, with_stock=True):
                    outcome = current_domain.process(
                        SettlePayment(order_id=str(order.id), payment_id=str(payment_id)),
                        asynchronous=False,
                    )
                logger.info("payment_notification_processed", outcome=outcome)
            return outcome
        except Exception:
            logger.exception("payment_notification_failed", payment_id=payment_id, preference_id=preference_id)
            return "failed"
