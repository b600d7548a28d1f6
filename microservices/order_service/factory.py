"""
Order Service Factory

Factory for creating OrderService with real dependencies.
This is the ONLY module that imports concrete implementations.
"""

import logging
from typing import Optional

from core.config import AppConfig, get_settings
from core.document_store import DocumentStore, get_document_store
from microservices.payment_service.factory import create_payment_service
from microservices.shipment_service.factory import create_shipment_service

from .order_repository import OrderRepository, OrderStatusLogRepository
from .order_service import OrderService
from .status_logger import StatusLogger

logger = logging.getLogger(__name__)


def create_order_service(
    store: Optional[DocumentStore] = None,
    config: Optional[AppConfig] = None,
) -> OrderService:
    """
    Create OrderService with all real dependencies

    Payment and shipment services run in-process on the same store, so
    transactions and shipments created by order workflows are visible to
    their own APIs immediately.

    Args:
        store: Optional document store (process-wide store if not provided)
        config: Optional app config (global settings if not provided)

    Returns:
        Fully initialized OrderService instance
    """
    if config is None:
        config = get_settings()
    if store is None:
        store = get_document_store(config.store)

    repository = OrderRepository(store)
    status_logger = StatusLogger(OrderStatusLogRepository(store))

    service = OrderService(
        repository=repository,
        status_logger=status_logger,
        payment_service=create_payment_service(store=store, config=config),
        shipment_service=create_shipment_service(store=store, config=config),
    )
    logger.info("OrderService wired with payment and shipment services")
    return service


__all__ = ["create_order_service"]
