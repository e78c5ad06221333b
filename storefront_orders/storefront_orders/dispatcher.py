"""Fire-and-forget order notifications to the fulfillment agent."""

import json
from datetime import datetime
from typing import Literal, Optional, Protocol

import requests
from confluent_kafka import KafkaException, Producer

from .config import Settings
from .errors import NotificationDeliveryError
from .logger import component_logger
from .outcome import NotificationFailure
from .schemas import OrderSubmission

logger = component_logger("dispatcher")

PayloadMode = Literal["full", "minimal"]


class NotificationChannel(Protocol):
    """Protocol defining the interface for notification channels."""

    def deliver(self, order_code: str, payload: dict) -> None:
        """Deliver one payload.

        Raises:
            NotificationDeliveryError: If the payload could not be handed over.
        """
        ...


class WebhookChannel:
    """POSTs the payload as JSON to the fulfillment agent's webhook."""

    def __init__(self, url: str, timeout: float = 5.0):
        self.url = url
        self.timeout = timeout

    def deliver(self, order_code: str, payload: dict) -> None:
        try:
            response = requests.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise NotificationDeliveryError(f"Webhook delivery failed: {e}") from e
        logger.info(f"Webhook accepted order {order_code} ({response.status_code})")


class KafkaChannel:
    """Publishes the payload to a Kafka topic keyed by order code.

    Messages with the same key land on the same partition, so every event
    for an order is consumed in order.

    Attributes:
        _producer: The underlying Kafka producer instance.
    """

    def __init__(self, bootstrap_servers: str, topic: str = "orders.created", timeout: float = 5.0):
        """Initialize the Kafka producer with the given bootstrap servers.

        Args:
            bootstrap_servers (str): Comma-separated list of Kafka broker addresses.
            topic (str): Topic the fulfillment agent consumes.
            timeout (float): Seconds before an undelivered message is reported failed.
        """
        self.topic = topic
        self._producer = Producer(
            {
                "bootstrap.servers": bootstrap_servers,
                "message.timeout.ms": int(timeout * 1000),
                "partitioner": "consistent_random",
                "acks": "all",
            }
        )

    @property
    def producer(self):
        return self._producer

    def _delivery_callback(self, err, msg):
        """Log the broker's delivery report for a message."""
        if err:
            logger.bind(topic=msg.topic(), key=msg.key()).error(f"Notification failed delivery: {err}")
        else:
            logger.debug(f"Notification delivered to {msg.topic()} [p:{msg.partition()}]")

    def deliver(self, order_code: str, payload: dict) -> None:
        try:
            self._producer.produce(
                topic=self.topic,
                key=order_code.encode("utf-8"),
                value=json.dumps(payload).encode("utf-8"),
                on_delivery=self._delivery_callback,
            )
            self._producer.poll(0)
        except BufferError as e:
            logger.warning("Producer buffer full, flushing...")
            self._producer.flush(1)
            raise NotificationDeliveryError(f"Producer queue full: {e}") from e
        except KafkaException as e:
            raise NotificationDeliveryError(f"Kafka produce failed: {e}") from e


def build_payload(
    submission: OrderSubmission, created_at: datetime, currency: str, mode: PayloadMode = "full"
) -> dict:
    """Build the notification body for a recorded order.

    In ``minimal`` mode only reference fields are sent and the agent looks
    the order up by ``order_code``.
    """
    if mode == "minimal":
        return {
            "order_code": submission.order_code,
            "customer_phone": submission.customer.phone,
            "total_amount": submission.total_amount,
            "item_count": sum(item.quantity for item in submission.items),
        }

    customer = submission.customer
    return {
        "order_code": submission.order_code,
        "customer": {"name": customer.full_name, "phone": customer.phone, "email": customer.email},
        "shipping_address": submission.shipping_address.model_dump(),
        "items": [
            {
                "product_id": item.product_id,
                "product_name": item.product_name,
                "sku": item.sku,
                "quantity": item.quantity,
                "price": item.price,
                "price_type": item.price_type,
                "subtotal": round(item.quantity * item.price, 2),
            }
            for item in submission.items
        ],
        "total_amount": submission.total_amount,
        "payment_method": submission.payment_method,
        "currency": currency,
        "created_at": created_at.isoformat(),
    }


class NotificationDispatcher:
    """Sends one notification per order and never raises.

    With no channel configured every dispatch is a logged no-op.
    """

    def __init__(self, channel: Optional[NotificationChannel] = None, mode: PayloadMode = "full", currency: str = "KES"):
        self.channel = channel
        self.mode = mode
        self.currency = currency

    @classmethod
    def from_settings(cls, settings: Settings) -> "NotificationDispatcher":
        """Pick the channel described by the settings.

        A transport without its endpoint falls back to the no-op policy.
        """
        channel: Optional[NotificationChannel] = None
        if settings.notification_transport == "kafka" and settings.kafka_bootstrap_servers:
            channel = KafkaChannel(
                settings.kafka_bootstrap_servers, settings.notification_topic, settings.notification_timeout
            )
        elif settings.notification_transport == "webhook" and settings.notification_webhook_url:
            channel = WebhookChannel(settings.notification_webhook_url, settings.notification_timeout)
        else:
            logger.info(f"No {settings.notification_transport} endpoint configured, notifications disabled")
        return cls(channel, mode=settings.notification_mode, currency=settings.currency)

    def dispatch(self, submission: OrderSubmission, created_at: datetime) -> Optional[NotificationFailure]:
        """Notify the fulfillment agent about a recorded order.

        Returns:
            NotificationFailure | None: Set when the notification was skipped or failed.
        """
        order_code = submission.order_code
        if self.channel is None:
            logger.info(f"Order {order_code} accepted locally, no notification channel configured")
            return NotificationFailure(order_code=order_code, skipped=True, detail="no notification channel configured")

        try:
            payload = build_payload(submission, created_at, self.currency, self.mode)
            self.channel.deliver(order_code, payload)
        except NotificationDeliveryError as e:
            logger.error(f"Notification for order {order_code} not delivered: {e}")
            return NotificationFailure(order_code=order_code, detail=str(e))
        except Exception as e:
            logger.exception(f"Unexpected error notifying about order {order_code}")
            return NotificationFailure(order_code=order_code, detail=f"unexpected error: {e}")

        logger.info(f"Notification sent for order {order_code} ({self.mode} payload)")
        return None
