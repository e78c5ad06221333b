"""Pydantic models for order submissions, stored orders and stock levels."""

import secrets
import string
import time
from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

PriceType = Literal["retail", "wholesale"]
OrderStatus = Literal["pending", "processing", "completed", "cancelled"]

# Allowed drift between client-computed amounts and quantity * price.
AMOUNT_TOLERANCE = 0.01

_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_order_code() -> str:
    """Generate an order code of the form ``ORD-<epoch millis>-<5 chars>``."""
    suffix = "".join(secrets.choice(_CODE_ALPHABET) for _ in range(5))
    return f"ORD-{int(time.time() * 1000)}-{suffix}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Customer(BaseModel):
    """Customer contact details captured at checkout.

    Attributes:
        first_name (str): Required given name.
        last_name (str | None): Optional family name.
        phone (str): Required contact phone number.
        email (str | None): Optional email address.
    """

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone: str = Field(..., min_length=5, max_length=20)
    email: Optional[EmailStr] = None

    @field_validator("first_name", "phone")
    def strip_required(cls, v):
        """Reject values that are only whitespace."""
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name or ''}".strip()


class ShippingAddress(BaseModel):
    """Where the order should be delivered."""

    line1: str = Field(..., min_length=1, max_length=200)
    city: str = Field(..., min_length=1, max_length=100)
    notes: Optional[str] = Field(None, max_length=500)


class OrderLine(BaseModel):
    """One cart line as submitted by the checkout UI.

    Product name and SKU are snapshots taken when the cart was built, so the
    stored order stays readable after later catalog edits.
    """

    product_id: str = Field(..., min_length=1)
    product_name: str = Field(..., min_length=1)
    sku: str = Field(..., min_length=1, max_length=50)
    quantity: int = Field(..., ge=1)
    price: float = Field(..., ge=0, description="Unit price for the selected price type")
    price_type: PriceType = "retail"
    subtotal: float = Field(..., ge=0)

    @model_validator(mode="after")
    def check_subtotal(self):
        if abs(self.quantity * self.price - self.subtotal) > AMOUNT_TOLERANCE:
            raise ValueError(
                f"subtotal {self.subtotal} does not match {self.quantity} x {self.price} for {self.product_id}"
            )
        return self


class OrderSubmission(BaseModel):
    """A cart snapshot submitted for checkout.

    Attributes:
        order_code (str): Correlation and idempotency key, generated when omitted.
        customer (Customer): Who placed the order.
        shipping_address (ShippingAddress): Delivery address.
        items (list[OrderLine]): At least one cart line.
        total_amount (float): Sum of line subtotals.
        payment_method (str): Free-form label such as ``cash`` or ``mpesa``.
    """

    order_code: str = Field(default_factory=generate_order_code, min_length=5, max_length=64)
    customer: Customer
    shipping_address: ShippingAddress
    items: list[OrderLine] = Field(..., min_length=1, description="At least one item required")
    total_amount: float = Field(..., ge=0)
    payment_method: str = Field("cash", min_length=1, max_length=50)

    @model_validator(mode="after")
    def check_total(self):
        computed = sum(item.subtotal for item in self.items)
        if abs(computed - self.total_amount) > AMOUNT_TOLERANCE:
            raise ValueError(f"total_amount {self.total_amount} does not match item subtotals {computed:.2f}")
        return self

    def requested_quantities(self) -> dict[str, int]:
        """Quantities per product, summing repeated lines for the same product."""
        requested: dict[str, int] = {}
        for item in self.items:
            requested[item.product_id] = requested.get(item.product_id, 0) + item.quantity
        return requested

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "order_code": "ORD-1718000000000-AB12C",
                "customer": {"first_name": "Jane", "last_name": "Wanjiru", "phone": "+254700000000"},
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
                "payment_method": "mpesa",
            }
        }
    )


class StockLevel(BaseModel):
    """Result row of the batched inventory read."""

    id: str
    name: str
    quantity: int


class Shortfall(BaseModel):
    """A product that cannot cover the requested quantity."""

    product_id: str
    product_name: str
    available: int
    requested: int

    def describe(self) -> str:
        return f"{self.product_name}: {self.available} available, {self.requested} requested"


class Product(BaseModel):
    """Catalog product as held by the inventory store."""

    id: str
    name: str
    sku: str
    category: Optional[str] = None
    retail_price: float = Field(..., ge=0)
    wholesale_price: float = Field(..., ge=0)
    quantity: int = Field(0, ge=0)
    min_stock_level: int = Field(0, ge=0)
    selling_mode: Literal["retail", "wholesale", "both"] = "both"
    status: Literal["active", "archived"] = "active"


class OrderHeader(BaseModel):
    """The authoritative record that an order was placed."""

    id: Optional[int] = None
    order_code: str
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    shipping_line1: str
    shipping_city: str
    shipping_notes: Optional[str] = None
    total_amount: float
    payment_method: str
    status: OrderStatus = "pending"
    created_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def from_submission(cls, submission: OrderSubmission, created_at: Optional[datetime] = None) -> "OrderHeader":
        return cls(
            order_code=submission.order_code,
            customer_name=submission.customer.full_name,
            customer_phone=submission.customer.phone,
            customer_email=submission.customer.email,
            shipping_line1=submission.shipping_address.line1,
            shipping_city=submission.shipping_address.city,
            shipping_notes=submission.shipping_address.notes,
            total_amount=submission.total_amount,
            payment_method=submission.payment_method,
            created_at=created_at or utcnow(),
        )


class OrderLineItem(BaseModel):
    """A stored order line with a snapshot of the product."""

    product_id: str
    product_name: str
    sku: str
    quantity: int
    unit_price: float
    price_type: PriceType
    subtotal: float

    @classmethod
    def from_line(cls, line: OrderLine) -> "OrderLineItem":
        return cls(
            product_id=line.product_id,
            product_name=line.product_name,
            sku=line.sku,
            quantity=line.quantity,
            unit_price=line.price,
            price_type=line.price_type,
            subtotal=round(line.quantity * line.price, 2),
        )


class OrderDetail(BaseModel):
    """Header plus line items, as returned by order lookups."""

    header: OrderHeader
    items: list[OrderLineItem]

    def matches(self, submission: OrderSubmission) -> bool:
        """Whether this stored order is the same order as ``submission``.

        Compares phone, total and, when line items were recorded, the
        quantities per product.
        """
        if self.header.customer_phone != submission.customer.phone:
            return False
        if abs(self.header.total_amount - submission.total_amount) > AMOUNT_TOLERANCE:
            return False
        if not self.items:
            return True
        stored: dict[str, int] = {}
        for item in self.items:
            stored[item.product_id] = stored.get(item.product_id, 0) + item.quantity
        return stored == submission.requested_quantities()
