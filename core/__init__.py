#!/usr/bin/env python3
"""
Core Module for the B2B Ordering Services

Shared infrastructure used by the order, payment and shipment services.

COMPONENTS:
    - config/: Dataclass configuration loaded from environment / .env files
    - logger.py: Service logger setup
    - document_store/: DocumentStore protocol with in-memory and PostgreSQL backends
    - identifiers.py: Order / transaction / tracking / shipment number generation
    - service_result.py: Response envelope, error codes and side-effect records

USAGE:
    from core.document_store import get_document_store
    from core.logger import setup_service_logger

    store = get_document_store()
    logger = setup_service_logger("order_service")
"""

__version__ = "1.0.0"
