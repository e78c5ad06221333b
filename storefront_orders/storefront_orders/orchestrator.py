"""Sequences validation, recording, stock decrement and notification."""

from .dispatcher import NotificationDispatcher
from .errors import DuplicateOrderError, PersistenceError, ShortfallError, StoreError, StoreUnavailableError
from .inventory import decrement_stock
from .logger import component_logger
from .outcome import PipelineState, PipelineWarning, SubmissionOutcome
from .recorder import OrderRecorder
from .schemas import OrderDetail, OrderSubmission, utcnow
from .store import InventoryStore, OrderStore
from .validator import StockValidator

logger = component_logger("orchestrator")


class OrderSubmissionOrchestrator:
    """Runs one submission through the pipeline.

    States move ``validating -> recording -> decrementing -> notifying -> done``.
    Only a failed validation or a failed header insert ends in ``aborted``;
    anything that goes wrong after the header is committed becomes a warning
    on a successful outcome.

    Attributes:
        inventory: Store holding product quantities.
        orders: Store holding order headers and items.
        dispatcher: Notification dispatcher, best effort.
    """

    def __init__(self, inventory: InventoryStore, orders: OrderStore, dispatcher: NotificationDispatcher):
        self.inventory = inventory
        self.orders = orders
        self.dispatcher = dispatcher
        self.validator = StockValidator(inventory)
        self.recorder = OrderRecorder(orders)

    def submit(self, submission: OrderSubmission) -> SubmissionOutcome:
        """Submit an order.

        Args:
            submission (OrderSubmission): The cart snapshot to check out.

        Returns:
            SubmissionOutcome: ``success`` with the order code, ``rejected`` with
            itemized shortfalls, or ``error`` for transient and persistence failures.
        """
        order_code = submission.order_code
        log = logger.bind(order_code=order_code)
        state = PipelineState.VALIDATING
        log.info(f"Submitting order {order_code} with {len(submission.items)} line(s)")

        try:
            existing = self.orders.get_order(order_code)
            if existing is not None:
                return self._replay(log, submission, existing)
            observed = self.validator.validate(submission)
        except ShortfallError as e:
            log.info(f"Order {order_code} rejected: {e}")
            return SubmissionOutcome.rejected(e.shortfalls, str(e))
        except StoreUnavailableError as e:
            log.error(f"Order {order_code} aborted in {state.value}: {e}")
            return SubmissionOutcome.failed("Order service is temporarily unavailable, please try again")

        state = PipelineState.RECORDING
        warnings: list[PipelineWarning] = []
        created_at = utcnow()
        log.debug(f"Order {order_code} entering {state.value}")
        try:
            _, item_warning = self.recorder.record(submission, created_at)
        except DuplicateOrderError as e:
            return self._after_duplicate_insert(log, submission, e)
        except PersistenceError as e:
            log.error(f"Order {order_code} aborted in {state.value}: {e}")
            return SubmissionOutcome.failed("Could not save the order, please try again")
        if item_warning:
            warnings.append(item_warning)

        log.debug(f"Order {order_code} entering {PipelineState.DECREMENTING.value}")
        warnings.extend(decrement_stock(self.inventory, submission, observed))

        log.debug(f"Order {order_code} entering {PipelineState.NOTIFYING.value}")
        notification_failure = self.dispatcher.dispatch(submission, created_at)
        if notification_failure:
            warnings.append(notification_failure)

        if any(w.category == "degraded_write" for w in warnings):
            log.warning(f"Order {order_code} placed with {len(warnings)} warning(s)")
        else:
            log.info(f"Order {order_code} placed")
        return SubmissionOutcome.success(order_code, warnings)

    def _replay(self, log, submission: OrderSubmission, existing: OrderDetail) -> SubmissionOutcome:
        """Answer a resubmission of an already recorded order code."""
        order_code = submission.order_code
        if not existing.matches(submission):
            log.error(f"Order code {order_code} is already used by a different order")
            return SubmissionOutcome.failed(f"Order code {order_code} is already used by a different order")
        log.info(f"Order {order_code} already recorded, replaying success")
        return SubmissionOutcome.success(order_code, [], replayed=True)

    def _after_duplicate_insert(self, log, submission: OrderSubmission, error: DuplicateOrderError) -> SubmissionOutcome:
        """Resolve a uniqueness violation on the header insert.

        Only a header that is really there, and is the same order, counts as
        recorded; anything else is a persistence failure.
        """
        order_code = submission.order_code
        try:
            existing = self.orders.get_order(order_code)
        except StoreError as e:
            log.error(f"Order {order_code} aborted in recording: {error}; lookup failed: {e}")
            return SubmissionOutcome.failed("Could not save the order, please try again")
        if existing is None:
            log.error(f"Order {order_code} aborted in recording: {error}, no header found")
            return SubmissionOutcome.failed("Could not save the order, please try again")
        log.info(f"Order {order_code} was recorded concurrently")
        return self._replay(log, submission, existing)

    def lookup(self, order_code: str):
        """Fetch a recorded order by code, or None."""
        try:
            return self.orders.get_order(order_code)
        except StoreError as e:
            logger.error(f"Order lookup failed for {order_code}: {e}")
            raise
