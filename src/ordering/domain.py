"""Ordering bounded context: dated menu stock, order lifecycle and payment reconciliation.

Vendors publish stock per menu item and calendar date. Users reserve against
that stock, pay through an external provider and pick the order up at the
vendor's closing time. Unpaid orders are cancelled by a background sweeper
and their stock is returned to the ledger.
"""

from protean.domain import Domain

from ordering.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

ordering = Domain(name="ordering")
