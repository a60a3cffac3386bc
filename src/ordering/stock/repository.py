"""Indexed lookups for stock entries."""

from ordering.domain import ordering
from ordering.stock.stock import StockEntry


@ordering.repository(part_of=StockEntry)
class StockEntryRepository:
    def find_for(self, menu_item_id, stock_date) -> StockEntry | None:
        """Return the entry for a menu item on a date, or None if it was never configured."""
        entries = self._dao.query.filter(menu_item_id=str(menu_item_id), stock_date=stock_date).all().items
        return entries[0] if entries else None
