"""Domain events for the Order aggregate.

Every lifecycle transition records an immutable fact. Together with the stock
events they form the audit trail of what happened to an order and its units.
"""

from protean.fields import Date, DateTime, Identifier, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A user reserved stock and an order was created awaiting payment."""

    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    lines = Text(required=True)  # JSON: list of line dicts
    pickup_code = String(required=True)
    pickup_date = Date(required=True)
    pickup_time = DateTime(required=True)
    payment_method = String(required=True)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentPendingRecorded:
    """The provider accepted a charge that has not settled yet."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_id = String(required=True)
    recorded_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderPaid:
    __version__ = 1

    order_id = Identifier(required=True)
    payment_id = String()
    paid_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderReadyForPickup:
    __version__ = 1

    order_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    pickup_code = String(required=True)
    ready_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCompleted:
    """The user collected the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    completed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    """An unpaid order was cancelled by its owner, the sweeper or the payment provider."""

    __version__ = 1

    order_id = Identifier(required=True)
    reason = String(required=True)
    cancelled_by = String(required=True)
    cancelled_at = DateTime(required=True)
