"""
Document Store Package

Usage:
    from core.document_store import get_document_store, where, OrderBy

    store = get_document_store()
    order_id = await store.insert("orders", {"status": "pending"})
    pending = await store.query("orders", [where("status", "==", "pending")],
                                OrderBy("created_at", descending=True))
"""

import logging
from typing import Optional

from .base import (
    SERVER_TIMESTAMP,
    SUPPORTED_OPERATORS,
    Document,
    DocumentStore,
    OrderBy,
    QueryFilter,
    to_document,
    where,
)
from .errors import (
    DocumentNotFoundError,
    StoreError,
    StoreTimeoutError,
    StoreUnavailableError,
)
from .memory_store import InMemoryDocumentStore
from .timeout_store import TimeoutDocumentStore

logger = logging.getLogger(__name__)

# Shared instance per process; all services use the same store
_document_store: Optional[DocumentStore] = None


def create_document_store(config=None) -> DocumentStore:
    """
    Build a store from StoreConfig (defaults to global settings).

    The postgres backend is imported lazily so the memory backend works
    without a database driver loaded.
    """
    if config is None:
        from core.config import get_settings
        config = get_settings().store

    if config.backend == "postgres":
        from .postgres_store import PostgresDocumentStore
        inner = PostgresDocumentStore(config)
    elif config.backend == "memory":
        inner = InMemoryDocumentStore()
    else:
        raise ValueError(f"Unknown STORE_BACKEND: {config.backend}")

    logger.info(f"Document store backend: {config.backend} (timeout {config.timeout_seconds}s)")
    return TimeoutDocumentStore(inner, timeout_seconds=config.timeout_seconds)


def get_document_store(config=None) -> DocumentStore:
    """Get or create the process-wide document store"""
    global _document_store
    if _document_store is None:
        _document_store = create_document_store(config)
    return _document_store


async def close_document_store() -> None:
    """Close and forget the process-wide document store"""
    global _document_store
    if _document_store is not None:
        await _document_store.close()
        _document_store = None


__all__ = [
    "SERVER_TIMESTAMP",
    "SUPPORTED_OPERATORS",
    "Document",
    "DocumentStore",
    "OrderBy",
    "QueryFilter",
    "to_document",
    "where",
    "DocumentNotFoundError",
    "StoreError",
    "StoreTimeoutError",
    "StoreUnavailableError",
    "InMemoryDocumentStore",
    "TimeoutDocumentStore",
    "create_document_store",
    "get_document_store",
    "close_document_store",
]
