"""
PostgreSQL Document Store

DocumentStore backed by asyncpg. Each collection is a table in the
configured schema holding the document body as JSONB next to the
store-stamped timestamp columns:

    CREATE TABLE "<schema>"."<collection>" (
        id TEXT PRIMARY KEY,
        data JSONB NOT NULL,
        created_at TIMESTAMPTZ NOT NULL,
        updated_at TIMESTAMPTZ NOT NULL
    )

Tables are created on first use.
"""

import asyncio
import json
import logging
import re
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, List, Optional, Sequence, Set, Tuple

import asyncpg
from pydantic_core import to_jsonable_python

from core.config import StoreConfig
from .base import SERVER_TIMESTAMP, Document, OrderBy, QueryFilter
from .errors import DocumentNotFoundError, StoreError, StoreUnavailableError

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")
_TIMESTAMP_COLUMNS = ("created_at", "updated_at")


def _check_identifier(name: str) -> str:
    if not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid collection or field name: {name!r}")
    return name


class PostgresDocumentStore:
    """DocumentStore implementation on PostgreSQL JSONB tables"""

    def __init__(self, config: StoreConfig, pool: Optional[asyncpg.Pool] = None):
        self.config = config
        self.schema = _check_identifier(config.postgres_schema)
        self._pool = pool
        self._pool_lock = asyncio.Lock()
        self._ready_tables: Set[str] = set()
        logger.info(
            f"PostgresDocumentStore configured for {config.postgres_host}:{config.postgres_port}"
            f"/{config.postgres_db} schema={self.schema}"
        )

    # Connection management

    async def _get_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            async with self._pool_lock:
                if self._pool is None:
                    try:
                        self._pool = await asyncpg.create_pool(
                            dsn=self.config.postgres_dsn,
                            min_size=self.config.pool_min_size,
                            max_size=self.config.pool_max_size,
                        )
                    except (OSError, asyncpg.PostgresError, asyncpg.InterfaceError) as e:
                        raise StoreUnavailableError(f"Cannot connect to PostgreSQL: {e}") from e
                    logger.info("PostgreSQL connection pool created")
        return self._pool

    @asynccontextmanager
    async def _connection(self):
        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                yield conn
        except StoreError:
            raise
        except (OSError, asyncpg.InterfaceError, asyncpg.PostgresConnectionError) as e:
            raise StoreUnavailableError(f"PostgreSQL connection failed: {e}") from e
        except asyncpg.PostgresError as e:
            raise StoreError(f"PostgreSQL error: {e}") from e

    def _table(self, collection: str) -> str:
        return f'"{self.schema}"."{_check_identifier(collection)}"'

    async def _ensure_table(self, conn, collection: str) -> None:
        if collection in self._ready_tables:
            return
        await conn.execute(f'CREATE SCHEMA IF NOT EXISTS "{self.schema}"')
        await conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {self._table(collection)} (
                id TEXT PRIMARY KEY,
                data JSONB NOT NULL,
                created_at TIMESTAMPTZ NOT NULL,
                updated_at TIMESTAMPTZ NOT NULL
            )
            """
        )
        self._ready_tables.add(collection)

    # Encoding

    @staticmethod
    def _encode(document: Document, now: datetime) -> str:
        body = {
            key: (now if value is SERVER_TIMESTAMP else value)
            for key, value in document.items()
            if key != "id" and key not in _TIMESTAMP_COLUMNS
        }
        return json.dumps(to_jsonable_python(body))

    @staticmethod
    def _decode(row) -> Document:
        data = row["data"]
        if isinstance(data, str):
            data = json.loads(data)
        return {
            "id": row["id"],
            **data,
            "created_at": row["created_at"],
            "updated_at": row["updated_at"],
        }

    @staticmethod
    def _predicate(f: QueryFilter, param: int) -> Tuple[str, List[Any]]:
        field = _check_identifier(f.field)
        if field in _TIMESTAMP_COLUMNS:
            column = field
        elif isinstance(f.value, bool):
            column = f"(data->>'{field}')::boolean"
        elif isinstance(f.value, (int, float, Decimal)):
            column = f"(data->>'{field}')::numeric"
        else:
            column = f"data->>'{field}'"

        if f.value is None:
            return (f"{column} IS NULL" if f.op == "==" else f"{column} IS NOT NULL"), []

        value = f.value
        if isinstance(value, float):
            value = Decimal(str(value))
        elif hasattr(value, "value") and isinstance(getattr(value, "value"), str):
            value = value.value  # str enums
        return f"{column} {'<>' if f.op == '!=' else f.op} ${param}", [value]

    # DocumentStore API

    async def insert(self, collection: str, document: Document) -> str:
        document_id = uuid.uuid4().hex[:20]
        now = datetime.now(timezone.utc)
        async with self._connection() as conn:
            await self._ensure_table(conn, collection)
            await conn.execute(
                f"INSERT INTO {self._table(collection)} (id, data, created_at, updated_at) "
                f"VALUES ($1, $2::jsonb, $3, $3)",
                document_id, self._encode(document, now), now,
            )
        return document_id

    async def update(self, collection: str, document_id: str, partial: Document) -> None:
        now = datetime.now(timezone.utc)
        async with self._connection() as conn:
            await self._ensure_table(conn, collection)
            status = await conn.execute(
                f"UPDATE {self._table(collection)} "
                f"SET data = data || $2::jsonb, updated_at = $3 WHERE id = $1",
                document_id, self._encode(partial, now), now,
            )
        if status.endswith(" 0"):
            raise DocumentNotFoundError(collection, document_id)

    async def get(self, collection: str, document_id: str) -> Optional[Document]:
        async with self._connection() as conn:
            await self._ensure_table(conn, collection)
            row = await conn.fetchrow(
                f"SELECT id, data, created_at, updated_at FROM {self._table(collection)} WHERE id = $1",
                document_id,
            )
        return self._decode(row) if row else None

    async def query(
        self,
        collection: str,
        filters: Sequence[QueryFilter] = (),
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> List[Document]:
        conditions = []
        params: List[Any] = []
        for f in filters:
            clause, values = self._predicate(f, len(params) + 1)
            conditions.append(clause)
            params.extend(values)

        sql = f"SELECT id, data, created_at, updated_at FROM {self._table(collection)}"
        if conditions:
            sql += " WHERE " + " AND ".join(conditions)
        if order_by:
            field = _check_identifier(order_by.field)
            column = field if field in _TIMESTAMP_COLUMNS else f"data->>'{field}'"
            sql += f" ORDER BY {column} {'DESC' if order_by.descending else 'ASC'} NULLS LAST"
        if limit is not None:
            sql += f" LIMIT {int(limit)}"

        async with self._connection() as conn:
            await self._ensure_table(conn, collection)
            rows = await conn.fetch(sql, *params)
        return [self._decode(row) for row in rows]

    async def delete(self, collection: str, document_id: str) -> bool:
        async with self._connection() as conn:
            await self._ensure_table(conn, collection)
            status = await conn.execute(
                f"DELETE FROM {self._table(collection)} WHERE id = $1", document_id
            )
        return not status.endswith(" 0")

    async def batch_update(self, collection: str, updates: Sequence[Tuple[str, Document]]) -> None:
        if not updates:
            return
        now = datetime.now(timezone.utc)
        ids = [document_id for document_id, _ in updates]
        async with self._connection() as conn:
            await self._ensure_table(conn, collection)
            async with conn.transaction():
                found = await conn.fetch(
                    f"SELECT id FROM {self._table(collection)} WHERE id = ANY($1::text[])", ids
                )
                missing = set(ids) - {row["id"] for row in found}
                if missing:
                    raise DocumentNotFoundError(collection, sorted(missing)[0])
                await conn.executemany(
                    f"UPDATE {self._table(collection)} "
                    f"SET data = data || $2::jsonb, updated_at = $3 WHERE id = $1",
                    [(document_id, self._encode(partial, now), now) for document_id, partial in updates],
                )

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("PostgreSQL connection pool closed")
