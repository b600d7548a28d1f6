"""
Document store mocks for component testing

Stores that stall or refuse calls, used to exercise timeout and
unavailability handling without a database.
"""
import asyncio
from typing import Iterable, Optional

from core.document_store import InMemoryDocumentStore, StoreUnavailableError


class SlowDocumentStore(InMemoryDocumentStore):
    """In-memory store that sleeps before the selected operations"""

    def __init__(self, delay: float = 1.0, slow_operations: Iterable[str] = ("get", "query")):
        super().__init__()
        self.delay = delay
        self.slow_operations = set(slow_operations)

    async def _maybe_sleep(self, operation: str):
        if operation in self.slow_operations:
            await asyncio.sleep(self.delay)

    async def insert(self, collection, document):
        await self._maybe_sleep("insert")
        return await super().insert(collection, document)

    async def update(self, collection, document_id, partial):
        await self._maybe_sleep("update")
        await super().update(collection, document_id, partial)

    async def get(self, collection, document_id):
        await self._maybe_sleep("get")
        return await super().get(collection, document_id)

    async def query(self, collection, filters=(), order_by=None, limit=None):
        await self._maybe_sleep("query")
        return await super().query(collection, filters, order_by, limit)


class UnavailableDocumentStore(InMemoryDocumentStore):
    """In-memory store whose writes to one collection fail"""

    def __init__(self, failing_collection: Optional[str] = None):
        super().__init__()
        self.failing_collection = failing_collection

    def _check(self, collection: str):
        if self.failing_collection is None or collection == self.failing_collection:
            raise StoreUnavailableError(f"{collection} unavailable")

    async def insert(self, collection, document):
        self._check(collection)
        return await super().insert(collection, document)

    async def update(self, collection, document_id, partial):
        self._check(collection)
        await super().update(collection, document_id, partial)
