"""
In-Memory Document Store

Dict-backed DocumentStore for development and tests. Documents are deep
copied on the way in and out so callers never share state with the store.
"""

import asyncio
import copy
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from .base import SERVER_TIMESTAMP, Document, OrderBy, QueryFilter
from .errors import DocumentNotFoundError

logger = logging.getLogger(__name__)


class InMemoryDocumentStore:
    """DocumentStore implementation backed by nested dicts"""

    def __init__(self):
        self._collections: Dict[str, Dict[str, Document]] = {}
        self._lock = asyncio.Lock()
        self._last_stamp: Optional[datetime] = None

    def _now(self) -> datetime:
        # Strictly increasing so created_at ordering is total
        now = datetime.now(timezone.utc)
        if self._last_stamp is not None and now <= self._last_stamp:
            now = self._last_stamp + timedelta(microseconds=1)
        self._last_stamp = now
        return now

    def _collection(self, name: str) -> Dict[str, Document]:
        return self._collections.setdefault(name, {})

    @staticmethod
    def _resolve(partial: Document, now: datetime) -> Document:
        return {
            key: (now if value is SERVER_TIMESTAMP else copy.deepcopy(value))
            for key, value in partial.items()
        }

    async def insert(self, collection: str, document: Document) -> str:
        async with self._lock:
            document_id = uuid.uuid4().hex[:20]
            now = self._now()
            stored = self._resolve(document, now)
            stored.pop("id", None)
            stored["created_at"] = now
            stored["updated_at"] = now
            self._collection(collection)[document_id] = stored
            return document_id

    async def update(self, collection: str, document_id: str, partial: Document) -> None:
        async with self._lock:
            docs = self._collection(collection)
            if document_id not in docs:
                raise DocumentNotFoundError(collection, document_id)
            now = self._now()
            changes = self._resolve(partial, now)
            changes.pop("id", None)
            changes.pop("created_at", None)
            changes["updated_at"] = now
            docs[document_id].update(changes)

    async def get(self, collection: str, document_id: str) -> Optional[Document]:
        stored = self._collection(collection).get(document_id)
        if stored is None:
            return None
        return {"id": document_id, **copy.deepcopy(stored)}

    async def query(
        self,
        collection: str,
        filters: Sequence[QueryFilter] = (),
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> List[Document]:
        results = [
            {"id": document_id, **copy.deepcopy(stored)}
            for document_id, stored in self._collection(collection).items()
            if all(f.matches(stored) for f in filters)
        ]

        if order_by:
            present = [doc for doc in results if doc.get(order_by.field) is not None]
            missing = [doc for doc in results if doc.get(order_by.field) is None]
            present.sort(key=lambda doc: doc[order_by.field], reverse=order_by.descending)
            results = present + missing

        if limit is not None:
            results = results[:limit]
        return results

    async def delete(self, collection: str, document_id: str) -> bool:
        async with self._lock:
            return self._collection(collection).pop(document_id, None) is not None

    async def batch_update(self, collection: str, updates: Sequence[Tuple[str, Document]]) -> None:
        async with self._lock:
            docs = self._collection(collection)
            for document_id, _ in updates:
                if document_id not in docs:
                    raise DocumentNotFoundError(collection, document_id)
            now = self._now()
            for document_id, partial in updates:
                changes = self._resolve(partial, now)
                changes.pop("id", None)
                changes.pop("created_at", None)
                changes["updated_at"] = now
                docs[document_id].update(changes)

    async def close(self) -> None:
        logger.debug("InMemoryDocumentStore closed")

    # Test helpers

    def count(self, collection: str) -> int:
        return len(self._collection(collection))

    def clear(self) -> None:
        self._collections.clear()
