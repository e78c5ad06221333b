"""Logging configuration shared by the storefront services."""

import sys
from typing import Optional

from loguru import logger as loguru_logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>{extra[service]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[service]} | {name}:{function}:{line} - {message}"


def setup_service_logger(
    service_name: str,
    log_level: str = "INFO",
    log_file: Optional[str] = None,
):
    """Configure the process-wide logger for a service.

    Existing handlers are replaced, so this should run once at import time of
    the service's ``logger`` module.

    Args:
        service_name: Name of the service (e.g., 'order-service')
        log_level: Logging level (default: INFO)
        log_file: Optional path to a rotating log file

    Returns:
        logger: loguru logger bound with the service name
    """
    loguru_logger.remove()
    loguru_logger.configure(extra={"service": service_name})

    loguru_logger.add(
        sys.stderr,
        level=log_level,
        format=CONSOLE_FORMAT,
        colorize=True,
        backtrace=True,
        diagnose=False,
    )

    if log_file:
        loguru_logger.add(
            log_file,
            level=log_level,
            format=FILE_FORMAT,
            rotation="10 MB",
            retention="1 week",
            compression="gz",
        )

    return loguru_logger.bind(service=service_name)


def get_component_logger(service_name: str, component: str):
    """Get a logger tagged with a component of a service.

    Unlike ``setup_service_logger`` this does not touch the handlers.

    Args:
        service_name: Name of the service
        component: Component name, e.g. 'dispatcher'

    Returns:
        logger: loguru logger bound with ``service`` and ``component``
    """
    return loguru_logger.bind(service=f"{service_name}.{component}", component=component)
