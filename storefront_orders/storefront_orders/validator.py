"""Stock validation against live inventory."""

from .errors import ShortfallError
from .logger import component_logger
from .schemas import OrderSubmission, Shortfall, StockLevel
from .store import InventoryStore

logger = component_logger("validator")


class StockValidator:
    """Gate a submission on current stock.

    The check is all or nothing: one short line rejects the whole cart.
    """

    def __init__(self, inventory: InventoryStore):
        self.inventory = inventory

    def validate(self, submission: OrderSubmission) -> dict[str, StockLevel]:
        """Check every requested quantity against the inventory store.

        Args:
            submission (OrderSubmission): The cart snapshot being checked out.

        Returns:
            dict[str, StockLevel]: Stock observed for each requested product.

        Raises:
            StoreUnavailableError: If the batched read fails.
            ShortfallError: If any product cannot cover its requested quantity.
        """
        requested = submission.requested_quantities()
        names = {item.product_id: item.product_name for item in submission.items}

        levels = {level.id: level for level in self.inventory.fetch(list(requested))}

        shortfalls = []
        for product_id, quantity in requested.items():
            level = levels.get(product_id)
            available = level.quantity if level else 0
            if available < quantity:
                shortfalls.append(
                    Shortfall(
                        product_id=product_id,
                        product_name=level.name if level else names[product_id],
                        available=available,
                        requested=quantity,
                    )
                )

        if shortfalls:
            logger.info(f"Order {submission.order_code} rejected: {len(shortfalls)} line(s) short")
            raise ShortfallError(shortfalls)

        logger.debug(f"Stock validated for order {submission.order_code}")
        return levels
