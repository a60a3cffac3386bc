"""Error taxonomy for the ordering core.

Every error extends one of Protean's exceptions so the FastAPI integration
maps the base classes to HTTP status codes. Protean only keeps a ``messages``
dictionary on ``ValidationError``; the other ordering errors carry one
through ``DomainFailure`` so callers can read them the same way. The API
layer adds mappings for the specific subclasses.
"""

from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError


class DomainFailure:
    """Mixin that keeps the ``{field: [message]}`` dictionary on the exception."""

    def __init__(self, messages):
        self.messages = messages
        super().__init__(messages)


class NotFound(DomainFailure, ObjectNotFoundError):
    """A referenced user, vendor or menu item does not exist."""


class StockNotConfigured(DomainFailure, ObjectNotFoundError):
    """No stock entry exists for the menu item on the requested date."""

    def __init__(self, menu_item_id, stock_date):
        self.menu_item_id = menu_item_id
        self.stock_date = stock_date
        super().__init__(
            {"stock": [f"Stock is not configured for menu item {menu_item_id} on {stock_date.isoformat()}"]}
        )


class StockUnavailable(ValidationError):
    """The stock entry is flagged unavailable."""

    def __init__(self, menu_item_id, stock_date):
        self.menu_item_id = menu_item_id
        self.stock_date = stock_date
        super().__init__({"stock": [f"Menu item {menu_item_id} is not available on {stock_date.isoformat()}"]})


class InsufficientStock(ValidationError):
    def __init__(self, menu_item_id, available, requested):
        self.menu_item_id = menu_item_id
        self.available = available
        self.requested = requested
        super().__init__(
            {
                "stock": [
                    f"Insufficient stock for menu item {menu_item_id}. Available: {available}, requested: {requested}"
                ]
            }
        )


class IllegalTransition(DomainFailure, InvalidOperationError):
    """An order status precondition was violated."""

    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__({"status": [f"Cannot transition from {current} to {requested}"]})


class Forbidden(DomainFailure, InvalidOperationError):
    """The caller does not own the order or does not manage its vendor."""


class PaymentRejected(DomainFailure, InvalidOperationError):
    """The payment provider declined the charge. The order stays payable."""

    def __init__(self, reason, status_detail=None, payment_id=None):
        self.reason = reason
        self.status_detail = status_detail
        self.payment_id = payment_id
        super().__init__({"payment": [reason]})


class PaymentProviderError(DomainFailure, InvalidOperationError):
    """The payment provider could not be reached or returned an error."""

    def __init__(self, reason, status_code=None):
        self.reason = reason
        self.status_code = status_code
        super().__init__({"payment": [reason]})
