"""Durable recording of order headers and line items."""

from datetime import datetime
from typing import Optional

from .errors import StoreError
from .logger import component_logger
from .outcome import DegradedWriteWarning
from .schemas import OrderHeader, OrderLineItem, OrderSubmission
from .store import OrderStore

logger = component_logger("recorder")


class OrderRecorder:
    """Writes the header, then the items.

    The header is the source of truth that an order exists. The items are
    secondary: they can be rebuilt from the submitted cart, so their failure
    is reported as a warning and never undoes the header.
    """

    def __init__(self, orders: OrderStore):
        self.orders = orders

    def record(
        self, submission: OrderSubmission, created_at: Optional[datetime] = None
    ) -> tuple[OrderHeader, Optional[DegradedWriteWarning]]:
        """Persist an order.

        Args:
            submission (OrderSubmission): The validated submission.
            created_at (datetime, optional): Timestamp stored on the header.

        Returns:
            tuple: The stored header and a warning if the item write failed.

        Raises:
            PersistenceError: If the header could not be written.
        """
        header = OrderHeader.from_submission(submission, created_at)
        header.id = self.orders.insert_header(header)
        logger.info(f"Order header recorded: {header.order_code} (id={header.id})")

        items = [OrderLineItem.from_line(line) for line in submission.items]
        try:
            self.orders.insert_items(header.id, items)
        except StoreError as e:
            logger.warning(f"Line items for order {header.order_code} not recorded, needs reconciliation: {e}")
            return header, DegradedWriteWarning(kind="line_items", order_code=header.order_code, detail=str(e))

        logger.debug(f"{len(items)} line item(s) recorded for order {header.order_code}")
        return header, None
