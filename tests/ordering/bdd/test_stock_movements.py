"""BDD tests for stock reservation and release."""

from pytest_bdd import parsers, scenarios, when

scenarios("features/stock_ledger.feature")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('{quantity:d} units of "{menu_item_id}" are reserved'))
def _(ledger, stock_date, attempt, menu_item_id, quantity):
    attempt(ledger.reserve, menu_item_id, stock_date, quantity)


@when(parsers.cfparse('{quantity:d} units of "{menu_item_id}" are released'))
def _(ledger, stock_date, attempt, menu_item_id, quantity):
    attempt(ledger.release, menu_item_id, stock_date, quantity)


@when(
    parsers.cfparse(
        '{first_qty:d} units of "{first_item}" and {second_qty:d} units of "{second_item}" are reserved together'
    )
)
def _(ledger, stock_date, attempt, first_item, first_qty, second_item, second_qty):
    attempt(ledger.reserve_all, [(first_item, first_qty), (second_item, second_qty)], stock_date)
