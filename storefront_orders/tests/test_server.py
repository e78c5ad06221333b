"""Tests for the order service HTTP API."""

from http import HTTPStatus

import pytest
from fastapi.testclient import TestClient

from storefront_orders.config import Settings
from storefront_orders.errors import PersistenceError
from storefront_orders.schemas import Product
from storefront_orders.server import app, state


@pytest.fixture
def test_client(tmp_path):
    """Client against a pipeline backed by a fresh SQLite file and no notification endpoint."""
    state.configure(Settings(database_url=f"sqlite:///{tmp_path / 'api.db'}"))
    state.store.add_products(
        [Product(id="P1", name="Maize Flour 2kg", sku="MF-2KG", retail_price=150.0, wholesale_price=130.0, quantity=5)]
    )
    yield TestClient(app)
    state.store = None
    state.orchestrator = None


@pytest.fixture
def order_body():
    return {
        "customer": {"first_name": "Jane", "phone": "+254700000000"},
        "shipping_address": {"line1": "12 Moi Avenue", "city": "Nairobi"},
        "items": [
            {
                "product_id": "P1",
                "product_name": "Maize Flour 2kg",
                "sku": "MF-2KG",
                "quantity": 2,
                "price": 150.0,
                "price_type": "retail",
                "subtotal": 300.0,
            }
        ],
        "total_amount": 300.0,
        "payment_method": "cash",
    }


def test_health_check(test_client):
    response = test_client.get("/health")
    assert response.status_code == HTTPStatus.OK
    assert response.json() == {"status": "healthy"}


def test_readiness_check(test_client):
    response = test_client.get("/health/ready")
    assert response.json() == {"status": "ready", "database": True}


def test_create_order_success(test_client, order_body):
    response = test_client.post("/orders", json=order_body)

    assert response.status_code == HTTPStatus.CREATED
    body = response.json()
    assert body["status"] == "success"
    assert body["order_code"].startswith("ORD-")
    assert state.store.get_product("P1").quantity == 3


def test_create_order_keeps_caller_code(test_client, order_body):
    order_body["order_code"] = "ORD-1718000000000-ABCDE"
    response = test_client.post("/orders", json=order_body)
    assert response.json()["order_code"] == "ORD-1718000000000-ABCDE"


def test_create_order_rejected(test_client, order_body):
    order_body["items"][0].update(quantity=10, subtotal=1500.0)
    order_body["total_amount"] = 1500.0

    response = test_client.post("/orders", json=order_body)

    assert response.status_code == HTTPStatus.CONFLICT
    body = response.json()
    assert body["status"] == "rejected"
    assert "5 available, 10 requested" in body["error"]
    assert body["shortfalls"][0]["product_id"] == "P1"


def test_create_order_invalid_payload(test_client, order_body):
    del order_body["customer"]["phone"]
    response = test_client.post("/orders", json=order_body)
    assert response.status_code == HTTPStatus.UNPROCESSABLE_ENTITY


def test_create_order_store_down(test_client, order_body, mocker):
    mocker.patch.object(state.store, "insert_header", side_effect=PersistenceError("db down"))
    response = test_client.post("/orders", json=order_body)

    assert response.status_code == HTTPStatus.SERVICE_UNAVAILABLE
    assert response.json()["status"] == "error"
    assert state.store.get_product("P1").quantity == 5


def test_get_order(test_client, order_body):
    order_code = test_client.post("/orders", json=order_body).json()["order_code"]

    response = test_client.get(f"/orders/{order_code}")

    assert response.status_code == HTTPStatus.OK
    body = response.json()
    assert body["header"]["order_code"] == order_code
    assert body["header"]["status"] == "pending"
    assert body["items"][0]["subtotal"] == 300.0


def test_get_unknown_order(test_client):
    response = test_client.get("/orders/ORD-0-NONE0")
    assert response.status_code == HTTPStatus.NOT_FOUND
