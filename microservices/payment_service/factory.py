"""
Payment Service Factory

Factory for creating PaymentService with real dependencies.
This is the ONLY module that imports concrete implementations.
"""

import logging
from typing import Optional

from core.config import AppConfig, get_settings
from core.document_store import DocumentStore, get_document_store

from .payment_repository import PaymentRepository
from .payment_service import PaymentService

logger = logging.getLogger(__name__)


def create_payment_service(
    store: Optional[DocumentStore] = None,
    config: Optional[AppConfig] = None,
) -> PaymentService:
    """
    Create PaymentService with all real dependencies

    Args:
        store: Optional document store (process-wide store if not provided)
        config: Optional app config (global settings if not provided)

    Returns:
        Fully initialized PaymentService instance
    """
    if config is None:
        config = get_settings()
    if store is None:
        store = get_document_store(config.store)

    repository = PaymentRepository(store)
    return PaymentService(repository=repository, display_timezone=config.display_timezone)


__all__ = ["create_payment_service"]
