"""Domain events for the StockEntry aggregate."""

from protean.fields import Boolean, Date, DateTime, Identifier, Integer

from ordering.domain import ordering


@ordering.event(part_of="StockEntry")
class StockConfigured:
    """Stock for a menu item and date was set or corrected by a vendor or admin."""

    __version__ = 1

    stock_entry_id = Identifier(required=True)
    menu_item_id = Identifier(required=True)
    stock_date = Date(required=True)
    remaining_units = Integer(required=True)
    is_available = Boolean(required=True)
    configured_at = DateTime(required=True)


@ordering.event(part_of="StockEntry")
class StockReserved:
    """Units were taken from the ledger for an order."""

    __version__ = 1

    stock_entry_id = Identifier(required=True)
    menu_item_id = Identifier(required=True)
    stock_date = Date(required=True)
    quantity = Integer(required=True)
    previous_units = Integer(required=True)
    remaining_units = Integer(required=True)
    reserved_at = DateTime(required=True)


@ordering.event(part_of="StockEntry")
class StockReleased:
    """Units were returned to the ledger, typically by a cancelled order."""

    __version__ = 1

    stock_entry_id = Identifier(required=True)
    menu_item_id = Identifier(required=True)
    stock_date = Date(required=True)
    quantity = Integer(required=True)
    previous_units = Integer(required=True)
    remaining_units = Integer(required=True)
    released_at = DateTime(required=True)


@ordering.event(part_of="StockEntry")
class StockDepleted:
    """The last unit was reserved and the entry is no longer available."""

    __version__ = 1

    stock_entry_id = Identifier(required=True)
    menu_item_id = Identifier(required=True)
    stock_date = Date(required=True)
    depleted_at = DateTime(required=True)
