"""Tests for the OrderRecorder."""

from unittest.mock import MagicMock

import pytest

from storefront_orders.errors import PersistenceError, StoreError
from storefront_orders.recorder import OrderRecorder


def test_record_writes_header_and_items(store, submission):
    header, warning = OrderRecorder(store).record(submission)

    assert warning is None
    assert header.id is not None
    detail = store.get_order(submission.order_code)
    assert detail.header.total_amount == 300.0
    assert [(item.product_id, item.quantity) for item in detail.items] == [("P1", 2)]


def test_header_failure_is_fatal_and_skips_items(submission):
    orders = MagicMock()
    orders.insert_header.side_effect = PersistenceError("disk full")

    with pytest.raises(PersistenceError):
        OrderRecorder(orders).record(submission)
    orders.insert_items.assert_not_called()


def test_item_failure_keeps_header(store, submission, mocker, log_messages):
    mocker.patch.object(store, "insert_items", side_effect=StoreError("items table locked"))

    header, warning = OrderRecorder(store).record(submission)

    assert warning.kind == "line_items"
    assert warning.order_code == submission.order_code
    detail = store.get_order(submission.order_code)
    assert detail.header.id == header.id
    assert detail.items == []
    assert any("needs reconciliation" in message for message in log_messages)


def test_items_written_in_one_call(submission):
    orders = MagicMock()
    orders.insert_header.return_value = 42

    OrderRecorder(orders).record(submission)

    orders.insert_items.assert_called_once()
    order_id, items = orders.insert_items.call_args.args
    assert order_id == 42
    assert len(items) == len(submission.items)
