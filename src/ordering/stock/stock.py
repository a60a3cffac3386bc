"""StockEntry aggregate (CQRS): remaining units of one menu item on one date.

Exactly one entry exists per (menu_item_id, stock_date). The availability
flag normally mirrors ``remaining_units > 0`` but vendors may force it off
while units remain. Reservations and releases only touch the flag when the
count crosses zero, so a manual override survives ordinary traffic.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, Date, DateTime, Identifier, Integer

from ordering.domain import ordering
from ordering.errors import InsufficientStock, StockUnavailable
from ordering.stock.events import StockConfigured, StockDepleted, StockReleased, StockReserved


@ordering.aggregate
class StockEntry:
    menu_item_id = Identifier(required=True)
    stock_date = Date(required=True)
    remaining_units = Integer(default=0)
    is_available = Boolean(default=False)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def remaining_units_cannot_be_negative(self):
        if self.remaining_units is not None and self.remaining_units < 0:
            raise ValidationError({"remaining_units": ["Remaining units cannot be negative"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, menu_item_id, stock_date, stock=None, is_available=None):
        """Create the entry for a menu item and date.

        Without a stock figure the entry starts empty and unavailable. Without
        an explicit flag, availability follows the stock figure.
        """
        units = 0 if stock is None else stock
        _ensure_non_negative(units)
        available = (units > 0) if is_available is None else is_available

        now = datetime.now(UTC)
        entry = cls(
            menu_item_id=menu_item_id,
            stock_date=stock_date,
            remaining_units=units,
            is_available=available,
            created_at=now,
            updated_at=now,
        )
        entry._record_configuration(now)
        return entry

    # -------------------------------------------------------------------
    # Administration
    # -------------------------------------------------------------------
    def configure(self, stock=None, is_available=None):
        """Overwrite the supplied fields; omitted fields keep their value."""
        if stock is not None:
            _ensure_non_negative(stock)
            self.remaining_units = stock
        if is_available is not None:
            self.is_available = is_available

        now = datetime.now(UTC)
        self.updated_at = now
        self._record_configuration(now)

    def _record_configuration(self, now):
        self.raise_(
            StockConfigured(
                stock_entry_id=str(self.id),
                menu_item_id=str(self.menu_item_id),
                stock_date=self.stock_date,
                remaining_units=self.remaining_units,
                is_available=self.is_available,
                configured_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Ledger movements
    # -------------------------------------------------------------------
    def reserve(self, quantity):
        """Take ``quantity`` units. The entry becomes unavailable when it reaches zero."""
        _ensure_positive(quantity)
        if not self.is_available:
            raise StockUnavailable(self.menu_item_id, self.stock_date)
        if self.remaining_units < quantity:
            raise InsufficientStock(self.menu_item_id, self.remaining_units, quantity)

        previous = self.remaining_units
        self.remaining_units = previous - quantity
        now = datetime.now(UTC)
        self.updated_at = now

        self.raise_(
            StockReserved(
                stock_entry_id=str(self.id),
                menu_item_id=str(self.menu_item_id),
                stock_date=self.stock_date,
                quantity=quantity,
                previous_units=previous,
                remaining_units=self.remaining_units,
                reserved_at=now,
            )
        )

        if self.remaining_units == 0:
            self.is_available = False
            self.raise_(
                StockDepleted(
                    stock_entry_id=str(self.id),
                    menu_item_id=str(self.menu_item_id),
                    stock_date=self.stock_date,
                    depleted_at=now,
                )
            )

    def release(self, quantity):
        """Return ``quantity`` units. An entry emptied by reservations becomes available again."""
        _ensure_positive(quantity)

        previous = self.remaining_units
        self.remaining_units = previous + quantity
        if previous == 0 and self.remaining_units > 0:
            self.is_available = True

        now = datetime.now(UTC)
        self.updated_at = now

        self.raise_(
            StockReleased(
                stock_entry_id=str(self.id),
                menu_item_id=str(self.menu_item_id),
                stock_date=self.stock_date,
                quantity=quantity,
                previous_units=previous,
                remaining_units=self.remaining_units,
                released_at=now,
            )
        )


def _ensure_positive(quantity):
    if quantity is None or quantity < 1:
        raise ValidationError({"quantity": ["Quantity must be at least 1"]})


def _ensure_non_negative(stock):
    if stock < 0:
        raise ValidationError({"stock": ["Stock cannot be negative"]})
