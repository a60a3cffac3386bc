"""Shared BDD fixtures and step definitions for the Ordering domain."""

import pytest
from ordering.errors import Forbidden, IllegalTransition
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then


@pytest.fixture()
def error():
    """Container for the error raised by the last When step."""
    return {"exc": None}


@pytest.fixture()
def attempt(error):
    """Run an action, capturing a domain refusal in ``error`` instead of raising it."""

    def _attempt(action, *args, **kwargs):
        try:
            return action(*args, **kwargs)
        except (ValidationError, IllegalTransition, Forbidden) as exc:
            error["exc"] = exc
            return None

    return _attempt


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("the campus directory")
def _(directory):
    pass


@given(parsers.cfparse('"{menu_item_id}" has {units:d} units in stock'))
def _(stocked, menu_item_id, units):
    stocked(menu_item_id, units)


@given(parsers.cfparse('"{menu_item_id}" has {units:d} units in stock but is switched off'))
def _(stocked, menu_item_id, units):
    stocked(menu_item_id, units, is_available=False)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('"{menu_item_id}" has {units:d} units left'))
def _(units_left, menu_item_id, units):
    assert units_left(menu_item_id) == units


@then(parsers.cfparse('"{menu_item_id}" is available'))
def _(ledger, stock_date, menu_item_id):
    assert ledger.find(menu_item_id, stock_date).is_available is True


@then(parsers.cfparse('"{menu_item_id}" is not available'))
def _(ledger, stock_date, menu_item_id):
    assert ledger.find(menu_item_id, stock_date).is_available is False


@then("the action is refused")
def _(error):
    assert error["exc"] is not None


@then(parsers.cfparse('the action is refused with "{message}"'))
def _(error, message):
    assert error["exc"] is not None
    assert any(message in text for texts in error["exc"].messages.values() for text in texts)
