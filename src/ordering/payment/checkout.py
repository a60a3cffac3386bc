"""Synchronous payment: charge the order total and settle the order on approval.

The order total is computed from the prices captured on its lines. Nothing is
sent to the provider unless every line has a usable price and the total sits
within the configured bounds. A declined charge leaves the order payable; the
user may retry with a new token or let the order expire.
"""

from uuid import uuid4

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.errors import PaymentRejected
from ordering.gateway import get_gateway
from ordering.order.order import Order, OrderStatus
from ordering.utils.logging import get_logger
from ordering.utils.settings import get_settings

logger = get_logger(__name__)

_REJECTION_MESSAGES = {
    "cc_rejected_other_reason": "The payment was rejected. Check that your Yape token is valid and try again.",
    "cc_rejected_insufficient_amount": "The payment was rejected due to insufficient funds.",
    "cc_rejected_bad_filled_security_code": "The Yape approval code is incorrect.",
}


def rejection_message(status_detail: str | None) -> str:
    """User-facing explanation for a declined payment."""
    if not status_detail:
        return "The payment was rejected by the provider."
    return _REJECTION_MESSAGES.get(status_detail, f"The payment was rejected by the provider: {status_detail}")


@ordering.command(part_of="Order")
class ChargeOrder:
    order_id = Identifier(required=True)
    token = String(required=True, max_length=500)
    payer_email = String(max_length=255)


def _chargeable_total(order):
    # Raises ValidationError on any line whose price could not be parsed
    total = order.total_amount()
    settings = get_settings()
    if total < settings.payment_min_amount or total > settings.payment_max_amount:
        raise ValidationError(
            {
                "amount": [
                    f"Order total {total} must be between {settings.payment_min_amount} "
                    f"and {settings.payment_max_amount}"
                ]
            }
        )
    return total


@ordering.command_handler(part_of=Order)
class ChargeOrderHandler:
    @handle(ChargeOrder)
    def charge_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order._assert_can_transition(OrderStatus.PAID)
        total = _chargeable_total(order)

        result = get_gateway().charge(
            amount=total,
            token=command.token,
            description=f"Order #{order.pickup_code}",
            payer_email=command.payer_email,
            idempotency_key=f"{order.id}-{uuid4().hex}",
        )
        logger.info(
            "order_charge_settled",
            order_id=str(order.id),
            amount=total,
            payer_email=command.payer_email,
            payment_id=result.payment_id,
            status=result.status,
            status_detail=result.status_detail,
        )

        if result.approved:
            order.mark_paid(payment_id=result.payment_id)
            repo.add(order)
        elif result.pending and result.payment_id:
            order.record_payment_pending(result.payment_id)
            repo.add(order)
        elif result.rejected:
            raise PaymentRejected(
                rejection_message(result.status_detail),
                status_detail=result.status_detail,
                payment_id=result.payment_id,
            )

        return {
            "order_id": str(order.id),
            "payment_id": result.payment_id,
            "status": result.status,
            "status_detail": result.status_detail,
            "amount": str(total),
        }
