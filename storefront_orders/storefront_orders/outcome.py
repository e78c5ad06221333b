"""Result of one order submission, plus its non-fatal warnings."""

from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

from .schemas import Shortfall


class PipelineState(str, Enum):
    """Steps of the submission state machine."""

    VALIDATING = "validating"
    RECORDING = "recording"
    DECREMENTING = "decrementing"
    NOTIFYING = "notifying"
    DONE = "done"
    ABORTED = "aborted"


class SubmissionStatus(str, Enum):
    SUCCESS = "success"
    REJECTED = "rejected"
    ERROR = "error"


class DegradedWriteWarning(BaseModel):
    """A write that failed after the order header was committed.

    Attributes:
        kind: ``line_items`` when the item insert failed, ``stock_decrement`` when a
            decrement raised, ``oversold`` when stock was drained before the decrement.
        order_code: Order the warning belongs to.
        product_id: Affected product, for stock warnings.
        detail: Human readable reason.
    """

    category: Literal["degraded_write"] = "degraded_write"
    kind: Literal["line_items", "stock_decrement", "oversold"]
    order_code: str
    product_id: Optional[str] = None
    detail: str


class NotificationFailure(BaseModel):
    """A fulfillment notification that was skipped or could not be delivered."""

    category: Literal["notification"] = "notification"
    order_code: str
    skipped: bool = False
    detail: str


PipelineWarning = Union[DegradedWriteWarning, NotificationFailure]


class SubmissionOutcome(BaseModel):
    """What the caller gets back from the orchestrator.

    ``status`` is the only field that drives the customer-visible result;
    ``warnings`` is a side channel for operators.
    """

    status: SubmissionStatus
    state: PipelineState
    order_code: Optional[str] = None
    error: Optional[str] = None
    shortfalls: list[Shortfall] = Field(default_factory=list)
    warnings: list[PipelineWarning] = Field(default_factory=list)
    replayed: bool = False

    @classmethod
    def success(cls, order_code: str, warnings: list[PipelineWarning], replayed: bool = False) -> "SubmissionOutcome":
        return cls(
            status=SubmissionStatus.SUCCESS,
            state=PipelineState.DONE,
            order_code=order_code,
            warnings=warnings,
            replayed=replayed,
        )

    @classmethod
    def rejected(cls, shortfalls: list[Shortfall], message: str) -> "SubmissionOutcome":
        return cls(
            status=SubmissionStatus.REJECTED,
            state=PipelineState.ABORTED,
            error=message,
            shortfalls=shortfalls,
        )

    @classmethod
    def failed(cls, message: str) -> "SubmissionOutcome":
        return cls(status=SubmissionStatus.ERROR, state=PipelineState.ABORTED, error=message)

    @property
    def ok(self) -> bool:
        return self.status is SubmissionStatus.SUCCESS
