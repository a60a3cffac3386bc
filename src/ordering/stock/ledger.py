"""Stock ledger: atomic reserve and release against per-date stock entries.

Every mutation runs inside the critical section of its (menu_item_id, date)
key. Callers that need several movements to commit together, like order
creation and cancellation, take the same keys up front with ``hold()`` and
dispatch their command inside it; the locks are reentrant, so the ledger
methods called from the handler pass straight through.
"""

from datetime import date

from protean.utils.globals import current_domain

from ordering.errors import StockNotConfigured
from ordering.stock.stock import StockEntry
from ordering.utils.locks import KeyedLock, stock_locks
from ordering.utils.logging import get_logger

logger = get_logger(__name__)


def stock_key(menu_item_id, stock_date: date) -> tuple[str, str]:
    return (str(menu_item_id), stock_date.isoformat())


class StockLedger:
    def __init__(self, locks: KeyedLock = stock_locks) -> None:
        self.locks = locks

    @property
    def _repo(self):
        return current_domain.repository_for(StockEntry)

    def hold(self, keys):
        """Hold the critical sections of several (menu_item_id, date) keys."""
        return self.locks.hold(*keys)

    def find(self, menu_item_id, stock_date: date) -> StockEntry | None:
        return self._repo.find_for(menu_item_id, stock_date)

    def _get(self, menu_item_id, stock_date: date) -> StockEntry:
        entry = self.find(menu_item_id, stock_date)
        if entry is None:
            raise StockNotConfigured(menu_item_id, stock_date)
        return entry

    def reserve(self, menu_item_id, stock_date: date, quantity: int) -> StockEntry:
        with self.locks.hold(stock_key(menu_item_id, stock_date)):
            entry = self._get(menu_item_id, stock_date)
            entry.reserve(quantity)
            self._repo.add(entry)

        logger.info(
            "stock_reserved",
            menu_item_id=str(menu_item_id),
            stock_date=stock_date.isoformat(),
            quantity=quantity,
            remaining_units=entry.remaining_units,
        )
        return entry

    def release(self, menu_item_id, stock_date: date, quantity: int) -> StockEntry:
        with self.locks.hold(stock_key(menu_item_id, stock_date)):
            entry = self._get(menu_item_id, stock_date)
            entry.release(quantity)
            self._repo.add(entry)

        logger.info(
            "stock_released",
            menu_item_id=str(menu_item_id),
            stock_date=stock_date.isoformat(),
            quantity=quantity,
            remaining_units=entry.remaining_units,
        )
        return entry

    def reserve_all(self, lines, stock_date: date) -> None:
        """Reserve every (menu_item_id, quantity) line or none of them.

        When a line fails, the lines already reserved in this call are released
        in reverse order before the original error propagates.
        """
        reserved = []
        try:
            for menu_item_id, quantity in lines:
                self.reserve(menu_item_id, stock_date, quantity)
                reserved.append((menu_item_id, quantity))
        except Exception:
            for menu_item_id, quantity in reversed(reserved):
                try:
                    self.release(menu_item_id, stock_date, quantity)
                except Exception:
                    logger.exception(
                        "stock_compensation_failed",
                        menu_item_id=str(menu_item_id),
                        stock_date=stock_date.isoformat(),
                        quantity=quantity,
                    )
            logger.info(
                "stock_reservation_rolled_back",
                stock_date=stock_date.isoformat(),
                released_lines=len(reserved),
            )
            raise

    def configure(self, menu_item_id, stock_date: date, stock: int | None = None, is_available: bool | None = None):
        """Create or update the entry; only the supplied fields change on an existing entry."""
        with self.locks.hold(stock_key(menu_item_id, stock_date)):
            entry = self.find(menu_item_id, stock_date)
            if entry is None:
                entry = StockEntry.create(
                    menu_item_id=str(menu_item_id),
                    stock_date=stock_date,
                    stock=stock,
                    is_available=is_available,
                )
            else:
                entry.configure(stock=stock, is_available=is_available)
            self._repo.add(entry)

        logger.info(
            "stock_configured",
            menu_item_id=str(menu_item_id),
            stock_date=stock_date.isoformat(),
            remaining_units=entry.remaining_units,
            is_available=entry.is_available,
        )
        return entry
