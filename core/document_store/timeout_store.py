"""
Timeout guard for document stores

Wraps any DocumentStore so every call is bounded by ``timeout_seconds``.
An expired call raises StoreTimeoutError instead of hanging the caller.
"""

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

from .base import Document, DocumentStore, OrderBy, QueryFilter
from .errors import StoreTimeoutError

logger = logging.getLogger(__name__)


class TimeoutDocumentStore:
    """DocumentStore decorator imposing a per-call timeout"""

    def __init__(self, inner: DocumentStore, timeout_seconds: float):
        self.inner = inner
        self.timeout_seconds = timeout_seconds

    async def _bounded(self, operation: str, collection: str, awaitable):
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            logger.error(f"Store {operation} on {collection} timed out after {self.timeout_seconds}s")
            raise StoreTimeoutError(
                f"{operation} on {collection} exceeded {self.timeout_seconds}s"
            ) from e

    async def insert(self, collection: str, document: Document) -> str:
        return await self._bounded("insert", collection, self.inner.insert(collection, document))

    async def update(self, collection: str, document_id: str, partial: Document) -> None:
        await self._bounded("update", collection, self.inner.update(collection, document_id, partial))

    async def get(self, collection: str, document_id: str) -> Optional[Document]:
        return await self._bounded("get", collection, self.inner.get(collection, document_id))

    async def query(
        self,
        collection: str,
        filters: Sequence[QueryFilter] = (),
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> List[Document]:
        return await self._bounded(
            "query", collection, self.inner.query(collection, filters, order_by, limit)
        )

    async def delete(self, collection: str, document_id: str) -> bool:
        return await self._bounded("delete", collection, self.inner.delete(collection, document_id))

    async def batch_update(self, collection: str, updates: Sequence[Tuple[str, Document]]) -> None:
        await self._bounded("batch_update", collection, self.inner.batch_update(collection, updates))

    async def close(self) -> None:
        await self.inner.close()
