"""
Shipment Service Factory

Factory for creating ShipmentService with real dependencies.
This is the ONLY module that imports concrete implementations.
"""

import logging
from typing import Optional

from core.config import AppConfig, get_settings
from core.document_store import DocumentStore, get_document_store

from .shipment_repository import ShipmentRepository
from .shipment_service import ShipmentService

logger = logging.getLogger(__name__)


def create_shipment_service(
    store: Optional[DocumentStore] = None,
    config: Optional[AppConfig] = None,
) -> ShipmentService:
    """
    Create ShipmentService with all real dependencies

    Args:
        store: Optional document store (process-wide store if not provided)
        config: Optional app config (global settings if not provided)

    Returns:
        Fully initialized ShipmentService instance
    """
    if config is None:
        config = get_settings()
    if store is None:
        store = get_document_store(config.store)

    repository = ShipmentRepository(store)
    return ShipmentService(repository=repository, display_timezone=config.display_timezone)


__all__ = ["create_shipment_service"]
