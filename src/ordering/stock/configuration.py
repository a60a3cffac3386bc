"""Stock administration: vendors and admins set the units available per date."""

from datetime import date, datetime

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Date, Identifier, Integer
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.stock.ledger import StockLedger, stock_key
from ordering.stock.stock import StockEntry
from ordering.utils.settings import get_settings


@ordering.command(part_of="StockEntry")
class ConfigureStock:
    menu_item_id = Identifier(required=True)
    stock_date = Date(required=True)
    stock = Integer()
    is_available = Boolean()


@ordering.command_handler(part_of=StockEntry)
class StockConfigurationHandler:
    @handle(ConfigureStock)
    def configure_stock(self, command):
        today = datetime.now(get_settings().timezone).date()
        if command.stock_date < today:
            raise ValidationError({"stock_date": ["Stock cannot be configured for a past date"]})

        entry = StockLedger().configure(
            menu_item_id=command.menu_item_id,
            stock_date=command.stock_date,
            stock=command.stock,
            is_available=command.is_available,
        )
        return {
            "stock_entry_id": str(entry.id),
            "menu_item_id": str(entry.menu_item_id),
            "stock_date": entry.stock_date.isoformat(),
            "remaining_units": entry.remaining_units,
            "is_available": entry.is_available,
        }


def configure_stock(menu_item_id, stock_date: date, stock=None, is_available=None, ledger: StockLedger | None = None):
    """Upsert stock for a menu item and date, serialized with reservations on the same key."""
    ledger = ledger or StockLedger()
    with ledger.hold([stock_key(menu_item_id, stock_date)]):
        return current_domain.process(
            ConfigureStock(
                menu_item_id=str(menu_item_id),
                stock_date=stock_date,
                stock=stock,
                is_available=is_available,
            ),
            asynchronous=False,
        )
