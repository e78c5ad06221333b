"""Runtime configuration read from the environment."""

import os
from typing import Literal, Optional

from pydantic import BaseModel, Field


class Settings(BaseModel):
    """Service settings.

    Attributes:
        database_url: SQLAlchemy URL of the inventory and order tables.
        notification_webhook_url: Fulfillment agent webhook; unset disables webhook delivery.
        notification_transport: Which channel carries notifications.
        notification_mode: ``full`` payload or ``minimal`` reference payload.
        kafka_bootstrap_servers: Brokers for the kafka transport; unset disables it.
        notification_topic: Kafka topic for order notifications.
        notification_timeout: Seconds to wait on a single delivery.
        currency: Currency label included in notifications.
    """

    database_url: str = "sqlite:///./storefront.db"
    notification_webhook_url: Optional[str] = None
    notification_transport: Literal["webhook", "kafka"] = "webhook"
    notification_mode: Literal["full", "minimal"] = "full"
    kafka_bootstrap_servers: Optional[str] = None
    notification_topic: str = "orders.created"
    notification_timeout: float = Field(5.0, gt=0)
    currency: str = "KES"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, ignoring empty values."""
        env = {
            "database_url": os.getenv("DATABASE_URL"),
            "notification_webhook_url": os.getenv("NOTIFICATION_WEBHOOK_URL"),
            "notification_transport": os.getenv("NOTIFICATION_TRANSPORT"),
            "notification_mode": os.getenv("NOTIFICATION_MODE"),
            "kafka_bootstrap_servers": os.getenv("KAFKA_BOOTSTRAP_SERVERS"),
            "notification_topic": os.getenv("NOTIFICATION_TOPIC"),
            "notification_timeout": os.getenv("NOTIFICATION_TIMEOUT"),
            "currency": os.getenv("CURRENCY"),
        }
        return cls(**{key: value for key, value in env.items() if value})
