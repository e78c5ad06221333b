"""Tests for the StockValidator."""

from unittest.mock import MagicMock

import pytest

from conftest import make_submission
from storefront_orders.errors import ShortfallError, StoreUnavailableError
from storefront_orders.validator import StockValidator


def test_validate_passes_when_stock_covers_order(store):
    levels = StockValidator(store).validate(make_submission(lines=[("P1", 5, 150.0), ("P2", 1, 320.0)]))
    assert levels["P1"].quantity == 5
    assert levels["P2"].quantity == 10


def test_validate_uses_one_batched_read():
    inventory = MagicMock()
    inventory.fetch.return_value = []
    with pytest.raises(ShortfallError):
        StockValidator(inventory).validate(make_submission(lines=[("P1", 1, 1.0), ("P2", 1, 1.0)]))
    inventory.fetch.assert_called_once_with(["P1", "P2"])


def test_shortfall_is_itemized(store):
    with pytest.raises(ShortfallError) as exc_info:
        StockValidator(store).validate(make_submission(lines=[("P1", 10, 150.0), ("P2", 1, 320.0)]))

    (shortfall,) = exc_info.value.shortfalls
    assert shortfall.product_id == "P1"
    assert shortfall.product_name == "Maize Flour 2kg"
    assert (shortfall.available, shortfall.requested) == (5, 10)
    assert "5 available, 10 requested" in str(exc_info.value)


def test_unknown_product_counts_as_zero(store):
    with pytest.raises(ShortfallError) as exc_info:
        StockValidator(store).validate(make_submission(lines=[("NOPE", 1, 5.0)]))
    shortfall = exc_info.value.shortfalls[0]
    assert shortfall.available == 0
    assert shortfall.product_name == "Product NOPE"


def test_archived_product_is_unavailable(store):
    with pytest.raises(ShortfallError):
        StockValidator(store).validate(make_submission(lines=[("P9", 1, 10.0)]))


def test_repeated_lines_are_checked_together(store):
    with pytest.raises(ShortfallError) as exc_info:
        StockValidator(store).validate(make_submission(lines=[("P1", 3, 150.0), ("P1", 3, 150.0)]))
    assert exc_info.value.shortfalls[0].requested == 6


def test_read_failure_is_transient_not_shortfall():
    inventory = MagicMock()
    inventory.fetch.side_effect = StoreUnavailableError("connection reset")
    with pytest.raises(StoreUnavailableError):
        StockValidator(inventory).validate(make_submission())


def test_validation_has_no_side_effects(store):
    StockValidator(store).validate(make_submission())
    assert store.get_product("P1").quantity == 5
