"""FastAPI entry point for order submission."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, FastAPI, HTTPException
from fastapi.responses import JSONResponse

from .config import Settings
from .dispatcher import NotificationDispatcher
from .errors import StoreError
from .logger import logger
from .orchestrator import OrderSubmissionOrchestrator
from .outcome import SubmissionStatus
from .schemas import OrderDetail, OrderSubmission
from .store import SqlStore

STATUS_CODES = {
    SubmissionStatus.SUCCESS: 201,
    SubmissionStatus.REJECTED: 409,
    SubmissionStatus.ERROR: 503,
}


class ServiceState:
    """Holds the store and orchestrator built from settings."""

    def __init__(self) -> None:
        self.store: Optional[SqlStore] = None
        self.orchestrator: Optional[OrderSubmissionOrchestrator] = None

    def configure(self, settings: Settings) -> None:
        """Wire the pipeline from settings and make sure the tables exist."""
        self.store = SqlStore(settings.database_url)
        self.store.create_schema()
        dispatcher = NotificationDispatcher.from_settings(settings)
        self.orchestrator = OrderSubmissionOrchestrator(self.store, self.store, dispatcher)
        logger.info(f"Order pipeline configured (currency={settings.currency}, mode={settings.notification_mode})")

    def require_orchestrator(self) -> OrderSubmissionOrchestrator:
        if self.orchestrator is None:
            raise HTTPException(status_code=503, detail="Service unavailable")
        return self.orchestrator


state = ServiceState()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the pipeline on startup unless a test already did."""
    if state.orchestrator is None:
        state.configure(Settings.from_env())
    yield
    logger.info("Shutting down order service...")


app = FastAPI(title="Storefront Order Service", lifespan=lifespan)
router = APIRouter()


@router.get("/health")
def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy"}


@router.get("/health/ready")
def readiness_check():
    """Check if the order tables are reachable.

    Returns:
        dict: Service readiness status and database connection status.
    """
    db_ok = state.store is not None and state.store.ping()
    return {"status": "ready" if db_ok else "not_ready", "database": db_ok}


@router.post("/orders")
def create_order(submission: OrderSubmission):
    """Submit a cart for checkout.

    Args:
        submission (OrderSubmission): The cart snapshot and customer details.

    Returns:
        JSONResponse: 201 with the order code, 409 with itemized shortfalls,
        or 503 when the order could not be stored.
    """
    orchestrator = state.require_orchestrator()
    outcome = orchestrator.submit(submission)

    if outcome.status is SubmissionStatus.SUCCESS:
        body = {"status": "success", "order_code": outcome.order_code}
    elif outcome.status is SubmissionStatus.REJECTED:
        body = {
            "status": "rejected",
            "error": outcome.error,
            "shortfalls": [s.model_dump() for s in outcome.shortfalls],
        }
    else:
        body = {"status": "error", "error": outcome.error}
    return JSONResponse(status_code=STATUS_CODES[outcome.status], content=body)


@router.get("/orders/{order_code}", response_model=OrderDetail)
def get_order(order_code: str):
    """Look up a recorded order by its code.

    Raises:
        HTTPException: 404 if unknown, 503 if the store cannot be read.
    """
    orchestrator = state.require_orchestrator()
    try:
        detail = orchestrator.lookup(order_code)
    except StoreError:
        raise HTTPException(status_code=503, detail="Order store unavailable")
    if detail is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return detail


app.include_router(router)
