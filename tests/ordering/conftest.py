from datetime import UTC, datetime, time, timedelta

import pytest
from protean.integrations.pytest import DomainFixture

from ordering.directory import reset_directory, set_directory
from ordering.directory.fake_adapter import InMemoryDirectory
from ordering.gateway import reset_gateway, set_gateway
from ordering.gateway.fake_adapter import FakeGateway
from ordering.order.creation import reservation_date
from ordering.order.lifecycle import OrderLifecycle
from ordering.stock.ledger import StockLedger
from ordering.utils.settings import get_settings


class FrozenClock:
    """A clock that only moves when told to."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    get_settings.cache_clear()
    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield

    reset_gateway()
    reset_directory()


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------
@pytest.fixture()
def directory():
    directory = InMemoryDirectory()
    directory.add_user("user-001", first_name="Ana", last_name="Quispe", email="ana@campus.edu")
    directory.add_user("user-002", first_name="Luis", last_name="Rojas")
    directory.add_vendor("vendor-001", name="Cafe Central", closing_time=time(17, 30))
    directory.add_vendor("vendor-002", name="Snack Bar")
    directory.add_menu_item("menu-001", "vendor-001", name="Lomo Saltado", price="S/ 12.50")
    directory.add_menu_item("menu-002", "vendor-001", name="Chicha Morada", price="3.00")
    directory.add_menu_item("menu-003", "vendor-001", name="Special of the Day", price="Ask the cashier")
    directory.add_menu_item("menu-101", "vendor-002", name="Empanada", price="$4.20")
    set_directory(directory)
    return directory


@pytest.fixture()
def gateway():
    gateway = FakeGateway()
    set_gateway(gateway)
    return gateway


@pytest.fixture()
def clock():
    return FrozenClock(datetime(2030, 5, 14, 15, 0, tzinfo=UTC))


@pytest.fixture()
def stock_date(clock):
    return reservation_date(clock())


@pytest.fixture()
def ledger():
    return StockLedger()


@pytest.fixture()
def lifecycle(ledger, clock):
    return OrderLifecycle(ledger=ledger, clock=clock)


@pytest.fixture()
def stocked(ledger, stock_date):
    """Configure stock for the test date: ``stocked("menu-001", 10)``."""

    def _configure(menu_item_id, units, is_available=None):
        return ledger.configure(menu_item_id, stock_date, stock=units, is_available=is_available)

    return _configure


@pytest.fixture()
def units_left(ledger, stock_date):
    def _units(menu_item_id):
        return ledger.find(menu_item_id, stock_date).remaining_units

    return _units
