"""
Document Store Protocol

Minimal contract the order/payment/shipment services need from a document
database: insert, partial update, get, field-filtered ordered query, delete
and a single-round-trip batch update. Atomicity is per document only.
"""

import operator
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

from pydantic_core import to_jsonable_python


class _ServerTimestamp:
    """Sentinel resolved to the store's current time at write time"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()

Document = Dict[str, Any]


_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}

SUPPORTED_OPERATORS = tuple(_OPERATORS)


@dataclass(frozen=True)
class QueryFilter:
    """Equality or range predicate on a single top-level field"""
    field: str
    op: str
    value: Any

    def __post_init__(self):
        if self.op not in _OPERATORS:
            raise ValueError(f"Unsupported query operator: {self.op}")

    def matches(self, document: Document) -> bool:
        if self.field not in document or document[self.field] is None:
            # Missing fields only satisfy inequality
            return self.op == "!=" and self.value is not None
        try:
            return _OPERATORS[self.op](document[self.field], self.value)
        except TypeError:
            return False


@dataclass(frozen=True)
class OrderBy:
    """Single-field ordering"""
    field: str
    descending: bool = False


def where(field: str, op: str, value: Any) -> QueryFilter:
    """Shorthand for building a QueryFilter"""
    return QueryFilter(field=field, op=op, value=value)


@runtime_checkable
class DocumentStore(Protocol):
    """
    Interface for the document database.

    Every returned document carries its id under ``"id"`` plus the
    store-stamped ``created_at`` / ``updated_at`` datetimes.
    """

    async def insert(self, collection: str, document: Document) -> str:
        """Insert a document, stamp created_at/updated_at, return its id"""
        ...

    async def update(self, collection: str, document_id: str, partial: Document) -> None:
        """Merge fields into a document; raises DocumentNotFoundError"""
        ...

    async def get(self, collection: str, document_id: str) -> Optional[Document]:
        """Fetch one document or None"""
        ...

    async def query(
        self,
        collection: str,
        filters: Sequence[QueryFilter] = (),
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> List[Document]:
        """Return documents matching every filter"""
        ...

    async def delete(self, collection: str, document_id: str) -> bool:
        """Delete a document; False when it did not exist"""
        ...

    async def batch_update(self, collection: str, updates: Sequence[Tuple[str, Document]]) -> None:
        """Apply several partial updates in one round trip; raises DocumentNotFoundError"""
        ...

    async def close(self) -> None:
        """Release connections"""
        ...


def to_document(fields: Dict[str, Any]) -> Document:
    """
    Convert model values (Decimal, Enum, date, nested models) to JSON-safe
    values, leaving SERVER_TIMESTAMP in place for the store to resolve.
    """
    return {
        key: value if value is SERVER_TIMESTAMP else to_jsonable_python(value)
        for key, value in fields.items()
    }
