"""Stock decrement after an order is recorded."""

from typing import Optional

from .errors import StoreError
from .logger import component_logger
from .outcome import DegradedWriteWarning
from .schemas import OrderSubmission, StockLevel
from .store import InventoryStore

logger = component_logger("inventory")


def decrement_stock(
    inventory: InventoryStore,
    submission: OrderSubmission,
    observed: Optional[dict[str, StockLevel]] = None,
) -> list[DegradedWriteWarning]:
    """Take ordered quantities out of stock, one product at a time.

    Each decrement is a conditional update, so stock never goes below zero.
    A failing product is logged and skipped; the other products are still
    decremented.

    Args:
        inventory (InventoryStore): Store holding product quantities.
        submission (OrderSubmission): The recorded submission.
        observed (dict[str, StockLevel], optional): Stock seen at validation,
            reported alongside failures for reconciliation.

    Returns:
        list[DegradedWriteWarning]: One entry per product that was not decremented.
    """
    observed = observed or {}
    warnings = []
    for product_id, quantity in submission.requested_quantities().items():
        level = observed.get(product_id)
        seen = f", {level.quantity} seen at validation" if level else ""
        try:
            applied = inventory.decrement(product_id, quantity)
        except StoreError as e:
            logger.warning(f"Stock decrement failed for {product_id} on order {submission.order_code}{seen}: {e}")
            warnings.append(
                DegradedWriteWarning(
                    kind="stock_decrement",
                    order_code=submission.order_code,
                    product_id=product_id,
                    detail=f"{e}{seen}",
                )
            )
            continue

        if not applied:
            logger.warning(
                f"Stock for {product_id} drained before order {submission.order_code} could take {quantity}{seen}"
            )
            warnings.append(
                DegradedWriteWarning(
                    kind="oversold",
                    order_code=submission.order_code,
                    product_id=product_id,
                    detail=f"less than {quantity} left at decrement time{seen}",
                )
            )
        else:
            logger.debug(f"Stock for {product_id} reduced by {quantity}")
    return warnings
