"""Logger module for logging messages."""

import os

from logging_utils import get_component_logger, setup_service_logger

SERVICE_NAME = "order-service"

logger = setup_service_logger(
    SERVICE_NAME,
    log_level=os.getenv("LOG_LEVEL", "INFO"),
    log_file=os.getenv("LOG_FILE") or None,
)


def component_logger(component: str):
    """Logger for one pipeline component, e.g. ``component_logger("recorder")``."""
    return get_component_logger(SERVICE_NAME, component)


__all__ = ["logger", "component_logger"]
