"""
Service Logger Setup

Usage:
    from core.logger import setup_service_logger

    logger = setup_service_logger("order_service")
    logger.info("Order service started")
"""

import logging
import sys
from typing import Optional

from core.config import get_settings

_configured = set()


def setup_service_logger(service_name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Configure and return the logger for a service.

    Handlers are attached once per service name; module loggers created with
    ``logging.getLogger(__name__)`` propagate to the root logger configured here.

    Args:
        service_name: Logger name, usually the service package name
        level: Log level override (defaults to LOG_LEVEL from settings)

    Returns:
        Configured logger instance
    """
    config = get_settings().logging
    log_level = getattr(logging, (level or config.log_level).upper(), logging.INFO)

    logger = logging.getLogger(service_name)
    logger.setLevel(log_level)

    if service_name in _configured:
        return logger

    formatter = logging.Formatter(config.log_format)
    root = logging.getLogger()
    root.setLevel(log_level)

    if config.enable_console and not any(
        isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        for h in root.handlers
    ):
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(formatter)
        root.addHandler(console)

    if config.log_file:
        file_handler = logging.FileHandler(config.log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    _configured.add(service_name)
    logger.debug(f"Logger configured for {service_name} ({config.environment})")
    return logger
