"""Tests for stock decrement and the inventory store."""

from unittest.mock import MagicMock

from conftest import make_submission
from storefront_orders.errors import StoreError
from storefront_orders.inventory import decrement_stock
from storefront_orders.schemas import StockLevel


def test_decrement_reduces_stock(store):
    warnings = decrement_stock(store, make_submission(lines=[("P1", 2, 150.0), ("P2", 4, 320.0)]))
    assert warnings == []
    assert store.get_product("P1").quantity == 3
    assert store.get_product("P2").quantity == 6


def test_conditional_decrement_never_goes_negative(store):
    assert store.decrement("P1", 6) is False
    assert store.get_product("P1").quantity == 5
    assert store.decrement("P1", 5) is True
    assert store.get_product("P1").quantity == 0


def test_oversold_line_is_a_warning(store):
    store.update("P1", 1)

    warnings = decrement_stock(store, make_submission(lines=[("P1", 2, 150.0), ("P2", 1, 320.0)]))

    assert [(w.kind, w.product_id) for w in warnings] == [("oversold", "P1")]
    assert store.get_product("P1").quantity == 1
    assert store.get_product("P2").quantity == 9


def test_failing_line_does_not_stop_others():
    inventory = MagicMock()
    inventory.decrement.side_effect = [StoreError("deadlock"), True]

    warnings = decrement_stock(inventory, make_submission(lines=[("P1", 1, 1.0), ("P2", 1, 1.0)]))

    assert inventory.decrement.call_count == 2
    assert len(warnings) == 1
    assert warnings[0].kind == "stock_decrement"
    assert warnings[0].product_id == "P1"


def test_fetch_returns_only_requested_active_products(store):
    levels = store.fetch(["P1", "P9", "MISSING"])
    assert [(level.id, level.quantity) for level in levels] == [("P1", 5)]


def test_fetch_with_no_ids(store):
    assert store.fetch([]) == []


def test_warnings_report_stock_seen_at_validation():
    inventory = MagicMock()
    inventory.decrement.return_value = False
    observed = {"P1": StockLevel(id="P1", name="Maize Flour 2kg", quantity=5)}

    warnings = decrement_stock(inventory, make_submission(), observed)

    assert warnings[0].kind == "oversold"
    assert "5 seen at validation" in warnings[0].detail
