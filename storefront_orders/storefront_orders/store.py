"""Inventory and order tables.

The pipeline talks to the stores through the ``InventoryStore`` and
``OrderStore`` protocols; ``SqlStore`` implements both on top of SQLAlchemy.
"""

from datetime import datetime
from typing import Optional, Protocol

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, create_engine, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship, sessionmaker

from .errors import DuplicateOrderError, PersistenceError, StoreError, StoreUnavailableError
from .logger import component_logger
from .schemas import OrderDetail, OrderHeader, OrderLineItem, Product, StockLevel

logger = component_logger("store")


class InventoryStore(Protocol):
    """Product quantities consumed by the pipeline."""

    def fetch(self, product_ids: list[str]) -> list[StockLevel]:
        """Read current stock for exactly ``product_ids`` in one query."""
        ...

    def update(self, product_id: str, quantity: int) -> None:
        """Overwrite the quantity of a product."""
        ...

    def decrement(self, product_id: str, quantity: int) -> bool:
        """Atomically subtract ``quantity`` if enough stock remains.

        Returns:
            bool: False when the product is missing or has less than ``quantity``.
        """
        ...


class OrderStore(Protocol):
    """Order headers and line items."""

    def insert_header(self, header: OrderHeader) -> int:
        ...

    def insert_items(self, order_id: int, items: list[OrderLineItem]) -> None:
        ...

    def get_order(self, order_code: str) -> Optional[OrderDetail]:
        ...


class Base(DeclarativeBase):
    pass


class ProductRow(Base):
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    sku: Mapped[str] = mapped_column(String(50), index=True)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    retail_price: Mapped[float] = mapped_column(Float)
    wholesale_price: Mapped[float] = mapped_column(Float)
    quantity: Mapped[int] = mapped_column(Integer, default=0)
    min_stock_level: Mapped[int] = mapped_column(Integer, default=0)
    selling_mode: Mapped[str] = mapped_column(String(16), default="both")
    status: Mapped[str] = mapped_column(String(16), default="active")


class OrderRow(Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_code: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    customer_name: Mapped[str] = mapped_column(String(255))
    customer_phone: Mapped[str] = mapped_column(String(20))
    customer_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    shipping_line1: Mapped[str] = mapped_column(String(200))
    shipping_city: Mapped[str] = mapped_column(String(100))
    shipping_notes: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    total_amount: Mapped[float] = mapped_column(Float)
    payment_method: Mapped[str] = mapped_column(String(50))
    status: Mapped[str] = mapped_column(String(16), default="pending")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    items = relationship("OrderItemRow", back_populates="order", order_by="OrderItemRow.id")


class OrderItemRow(Base):
    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id"), index=True)
    product_id: Mapped[str] = mapped_column(String(64))
    product_name: Mapped[str] = mapped_column(String(255))
    sku: Mapped[str] = mapped_column(String(50))
    quantity: Mapped[int] = mapped_column(Integer)
    unit_price: Mapped[float] = mapped_column(Float)
    price_type: Mapped[str] = mapped_column(String(16))
    subtotal: Mapped[float] = mapped_column(Float)

    order = relationship("OrderRow", back_populates="items")


class SqlStore:
    """SQLAlchemy implementation of ``InventoryStore`` and ``OrderStore``.

    Every method runs in its own short transaction; nothing is held open
    between pipeline steps.
    """

    def __init__(self, database_url: str, **engine_kwargs):
        self.engine = create_engine(database_url, **engine_kwargs)
        self._session = sessionmaker(bind=self.engine, expire_on_commit=False)

    def create_schema(self) -> None:
        Base.metadata.create_all(self.engine)

    def ping(self) -> bool:
        """Check that the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database ping failed: {e}")
            return False

    # Inventory

    def add_products(self, products: list[Product]) -> None:
        with self._session.begin() as session:
            session.add_all(ProductRow(**product.model_dump()) for product in products)

    def get_product(self, product_id: str) -> Optional[Product]:
        with self._session() as session:
            row = session.get(ProductRow, product_id)
            if row is None:
                return None
            return Product.model_validate(row, from_attributes=True)

    def fetch(self, product_ids: list[str]) -> list[StockLevel]:
        if not product_ids:
            return []
        try:
            with self._session() as session:
                rows = session.execute(
                    select(ProductRow.id, ProductRow.name, ProductRow.quantity).where(
                        ProductRow.id.in_(product_ids), ProductRow.status == "active"
                    )
                ).all()
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Could not read stock levels: {e}") from e
        return [StockLevel(id=row.id, name=row.name, quantity=row.quantity) for row in rows]

    def update(self, product_id: str, quantity: int) -> None:
        try:
            with self._session.begin() as session:
                session.execute(update(ProductRow).where(ProductRow.id == product_id).values(quantity=quantity))
        except SQLAlchemyError as e:
            raise StoreError(f"Could not update stock for {product_id}: {e}") from e

    def decrement(self, product_id: str, quantity: int) -> bool:
        try:
            with self._session.begin() as session:
                result = session.execute(
                    update(ProductRow)
                    .where(ProductRow.id == product_id, ProductRow.quantity >= quantity)
                    .values(quantity=ProductRow.quantity - quantity)
                )
                return result.rowcount == 1
        except SQLAlchemyError as e:
            raise StoreError(f"Could not decrement stock for {product_id}: {e}") from e

    # Orders

    def insert_header(self, header: OrderHeader) -> int:
        row = OrderRow(**header.model_dump(exclude={"id"}))
        try:
            with self._session.begin() as session:
                session.add(row)
        except IntegrityError as e:
            raise DuplicateOrderError(header.order_code) from e
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not record order {header.order_code}: {e}") from e
        return row.id

    def insert_items(self, order_id: int, items: list[OrderLineItem]) -> None:
        try:
            with self._session.begin() as session:
                session.add_all(OrderItemRow(order_id=order_id, **item.model_dump()) for item in items)
        except SQLAlchemyError as e:
            raise StoreError(f"Could not record items for order {order_id}: {e}") from e

    def get_order(self, order_code: str) -> Optional[OrderDetail]:
        try:
            with self._session() as session:
                row = session.scalars(select(OrderRow).where(OrderRow.order_code == order_code)).one_or_none()
                if row is None:
                    return None
                return OrderDetail(
                    header=OrderHeader.model_validate(row, from_attributes=True),
                    items=[OrderLineItem.model_validate(item, from_attributes=True) for item in row.items],
                )
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Could not read order {order_code}: {e}") from e
