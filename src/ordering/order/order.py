"""Order aggregate (CQRS): a pickup order and the menu lines it reserved.

State Machine:
    PENDING_PAYMENT → PAID → READY_FOR_PICKUP → COMPLETED
    PENDING_PAYMENT → CANCELLED

COMPLETED and CANCELLED are terminal. Stock is reserved before the order is
placed and returned only by the transition into CANCELLED, so each reserved
unit goes back to the ledger at most once.
"""

import json
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Date, DateTime, HasMany, Identifier, Integer, String

from ordering.domain import ordering
from ordering.errors import Forbidden, IllegalTransition
from ordering.order.events import (
    OrderCancelled,
    OrderCompleted,
    OrderPaid,
    OrderPlaced,
    OrderReadyForPickup,
    PaymentPendingRecorded,
)
from ordering.utils.money import to_cents, try_parse_price


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING_PAYMENT = "Pending_Payment"
    PAID = "Paid"
    READY_FOR_PICKUP = "Ready_For_Pickup"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class CancellationActor(Enum):
    USER = "User"
    SWEEPER = "Sweeper"
    PAYMENT_PROVIDER = "Payment_Provider"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING_PAYMENT: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.READY_FOR_PICKUP},
    OrderStatus.READY_FOR_PICKUP: {OrderStatus.COMPLETED},
    OrderStatus.COMPLETED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderLine:
    """A menu item and quantity, with the price captured when the order was placed.

    ``price_label`` keeps the catalog's display string verbatim. ``unit_price``
    holds its parsed amount in cents precision, or nothing when the label could
    not be parsed; such an order can be reserved and cancelled but never charged.
    """

    menu_item_id = Identifier(required=True)
    item_name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    price_label = String(max_length=50)
    unit_price = String(max_length=20)
    position = Integer(default=0)

    def amount(self) -> Decimal:
        if not self.unit_price:
            raise ValidationError(
                {"price": [f"Invalid price format for {self.item_name}: {self.price_label or 'missing'}"]}
            )
        return Decimal(self.unit_price)

    def subtotal(self) -> Decimal:
        return to_cents(self.amount() * self.quantity)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    user_id = Identifier(required=True)
    user_name = String(max_length=255)
    vendor_id = Identifier(required=True)
    vendor_name = String(max_length=255)
    status = String(
        choices=OrderStatus,
        default=OrderStatus.PENDING_PAYMENT.value,
    )
    lines = HasMany(OrderLine)
    pickup_code = String(required=True, max_length=20, unique=True)
    pickup_date = Date(required=True)
    pickup_time = DateTime(required=True)
    payment_method = String(required=True, max_length=50)
    payment_id = String(max_length=255)
    preference_id = String(max_length=255)
    cancellation_reason = String(max_length=500)
    cancelled_by = String(max_length=50)
    created_at = DateTime(required=True)
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        user_id,
        vendor_id,
        lines_data,
        payment_method,
        pickup_code,
        pickup_time,
        placed_at,
        user_name=None,
        vendor_name=None,
    ):
        """Create an order in PENDING_PAYMENT for stock that was already reserved.

        Args:
            lines_data: List of dicts with menu_item_id, item_name, quantity
                        and price_label (the catalog's display price).
            pickup_time: Aware datetime at which the order can be collected;
                         its local date is the ledger date of the reservation.
            placed_at: Reservation timestamp, used by the expiration sweep.
        """
        lines = []
        for position, line in enumerate(lines_data):
            unit_price = try_parse_price(line.get("price_label"))
            lines.append(
                OrderLine(
                    menu_item_id=str(line["menu_item_id"]),
                    item_name=line["item_name"],
                    quantity=line["quantity"],
                    price_label=line.get("price_label"),
                    unit_price=str(unit_price) if unit_price is not None else None,
                    position=position,
                )
            )

        order = cls(
            user_id=str(user_id),
            user_name=user_name,
            vendor_id=str(vendor_id),
            vendor_name=vendor_name,
            status=OrderStatus.PENDING_PAYMENT.value,
            lines=lines,
            pickup_code=pickup_code,
            pickup_date=pickup_time.date(),
            pickup_time=pickup_time,
            payment_method=payment_method,
            created_at=placed_at,
            updated_at=placed_at,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                user_id=str(user_id),
                vendor_id=str(vendor_id),
                lines=json.dumps(
                    [
                        {
                            "menu_item_id": str(line.menu_item_id),
                            "item_name": line.item_name,
                            "quantity": line.quantity,
                            "unit_price": line.unit_price,
                        }
                        for line in lines
                    ]
                ),
                pickup_code=pickup_code,
                pickup_date=order.pickup_date,
                pickup_time=pickup_time,
                payment_method=payment_method,
                placed_at=placed_at,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        """Validate that the current state allows transition to target."""
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise IllegalTransition(current.value, target_status.value)

    def assert_owned_by(self, user_id):
        if str(user_id) != str(self.user_id):
            raise Forbidden({"order": ["You can only cancel your own orders"]})

    def _assert_vendor(self, requesting_vendor_id):
        if requesting_vendor_id is not None and str(requesting_vendor_id) != str(self.vendor_id):
            raise Forbidden({"order": ["This order belongs to another vendor"]})

    @property
    def is_pending_payment(self):
        return self.status == OrderStatus.PENDING_PAYMENT.value

    @property
    def ordered_lines(self):
        return sorted(self.lines, key=lambda line: line.position or 0)

    def total_amount(self) -> Decimal:
        """Sum of line subtotals, each rounded to cents. Fails on any unparseable price."""
        return to_cents(sum((line.subtotal() for line in self.ordered_lines), Decimal("0")))

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def mark_paid(self, payment_id=None):
        self._assert_can_transition(OrderStatus.PAID)
        now = datetime.now(UTC)
        self.status = OrderStatus.PAID.value
        if payment_id:
            self.payment_id = payment_id
        self.updated_at = now

        self.raise_(
            OrderPaid(
                order_id=str(self.id),
                payment_id=self.payment_id,
                paid_at=now,
            )
        )

    def record_payment_pending(self, payment_id):
        """Remember a charge the provider has not settled, so its webhook finds this order."""
        self._assert_can_transition(OrderStatus.PAID)
        now = datetime.now(UTC)
        self.payment_id = payment_id
        self.updated_at = now

        self.raise_(
            PaymentPendingRecorded(
                order_id=str(self.id),
                payment_id=payment_id,
                recorded_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Fulfillment
    # -------------------------------------------------------------------
    def mark_ready(self, requesting_vendor_id=None):
        self._assert_vendor(requesting_vendor_id)
        self._assert_can_transition(OrderStatus.READY_FOR_PICKUP)
        now = datetime.now(UTC)
        self.status = OrderStatus.READY_FOR_PICKUP.value
        self.updated_at = now

        self.raise_(
            OrderReadyForPickup(
                order_id=str(self.id),
                vendor_id=str(self.vendor_id),
                pickup_code=self.pickup_code,
                ready_at=now,
            )
        )

    def complete(self, requesting_vendor_id=None):
        self._assert_vendor(requesting_vendor_id)
        self._assert_can_transition(OrderStatus.COMPLETED)
        now = datetime.now(UTC)
        self.status = OrderStatus.COMPLETED.value
        self.updated_at = now

        self.raise_(
            OrderCompleted(
                order_id=str(self.id),
                completed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def cancel(self, reason, cancelled_by):
        """Cancel an unpaid order. The caller returns the reserved stock."""
        self._assert_can_transition(OrderStatus.CANCELLED)
        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.cancellation_reason = reason
        self.cancelled_by = cancelled_by
        self.updated_at = now

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                reason=reason,
                cancelled_by=cancelled_by,
                cancelled_at=now,
            )
        )
