"""Test fixtures for the order service tests."""

from unittest.mock import MagicMock

import pytest
from loguru import logger

from storefront_orders.dispatcher import NotificationDispatcher
from storefront_orders.orchestrator import OrderSubmissionOrchestrator
from storefront_orders.schemas import OrderSubmission, Product
from storefront_orders.store import SqlStore


def make_submission(lines=None, **overrides):
    """Build a valid OrderSubmission from ``(product_id, quantity, price)`` tuples."""
    lines = lines or [("P1", 2, 150.0)]
    items = [
        {
            "product_id": product_id,
            "product_name": f"Product {product_id}",
            "sku": f"SKU-{product_id}",
            "quantity": quantity,
            "price": price,
            "price_type": "retail",
            "subtotal": round(quantity * price, 2),
        }
        for product_id, quantity, price in lines
    ]
    data = {
        "order_code": "ORD-1718000000000-TEST1",
        "customer": {"first_name": "Jane", "last_name": "Wanjiru", "phone": "+254700000000", "email": "jane@example.com"},
        "shipping_address": {"line1": "12 Moi Avenue", "city": "Nairobi", "notes": "Gate B"},
        "items": items,
        "total_amount": round(sum(item["subtotal"] for item in items), 2),
        "payment_method": "mpesa",
    }
    data.update(overrides)
    return OrderSubmission(**data)


@pytest.fixture
def submission():
    """A one-line order for two units of P1."""
    return make_submission()


@pytest.fixture
def store(tmp_path):
    """SQLite backed store seeded with P1 (5 in stock), P2 (10) and archived P9."""
    store = SqlStore(f"sqlite:///{tmp_path / 'orders.db'}")
    store.create_schema()
    store.add_products(
        [
            Product(id="P1", name="Maize Flour 2kg", sku="MF-2KG", retail_price=150.0, wholesale_price=130.0, quantity=5),
            Product(id="P2", name="Cooking Oil 1L", sku="CO-1L", retail_price=320.0, wholesale_price=300.0, quantity=10),
            Product(
                id="P9",
                name="Old Stock",
                sku="OLD-1",
                retail_price=10.0,
                wholesale_price=8.0,
                quantity=50,
                status="archived",
            ),
        ]
    )
    return store


@pytest.fixture
def dispatcher():
    """Dispatcher whose channel records deliveries instead of sending them."""
    return NotificationDispatcher(channel=MagicMock(), currency="KES")


@pytest.fixture
def orchestrator(store, dispatcher):
    return OrderSubmissionOrchestrator(store, store, dispatcher)


@pytest.fixture
def log_messages():
    """Capture loguru messages emitted during a test."""
    messages = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
