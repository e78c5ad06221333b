"""Exceptions raised inside the order submission pipeline."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .schemas import Shortfall


class OrderPipelineError(Exception):
    """Base class for pipeline errors."""


class ShortfallError(OrderPipelineError):
    """One or more lines ask for more than is in stock. Not retryable."""

    def __init__(self, shortfalls: list["Shortfall"]):
        self.shortfalls = shortfalls
        super().__init__("Insufficient stock: " + "; ".join(s.describe() for s in shortfalls))


class StoreError(OrderPipelineError):
    """Base class for failures talking to the inventory or order tables."""


class StoreUnavailableError(StoreError):
    """The batched stock read failed. Retryable by the caller."""


class PersistenceError(StoreError):
    """The order header could not be written. Nothing was committed."""


class DuplicateOrderError(PersistenceError):
    """An order with the same ``order_code`` already exists."""

    def __init__(self, order_code: str):
        self.order_code = order_code
        super().__init__(f"Order {order_code} already exists")


class NotificationDeliveryError(OrderPipelineError):
    """A notification channel failed to deliver a payload."""
