#!/usr/bin/env python3
"""Document store configuration

The order/payment/shipment services only see the DocumentStore interface.
Which implementation backs it is decided here:

- memory:   in-process dict store (development, tests)
- postgres: asyncpg pool, one JSONB table per collection
"""
import os
from dataclasses import dataclass

def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default

def _float(val: str, default: float) -> float:
    try:
        return float(val) if val else default
    except ValueError:
        return default


@dataclass
class StoreConfig:
    """Document store backend settings"""

    backend: str = "memory"

    # ===========================================
    # PostgreSQL (native asyncpg - port 5432)
    # ===========================================
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "postgres"
    postgres_user: str = "postgres"
    postgres_password: str = "postgres"
    postgres_schema: str = "b2b_orders"
    pool_min_size: int = 1
    pool_max_size: int = 10

    # Upper bound for a single store round trip
    timeout_seconds: float = 10.0

    @property
    def postgres_dsn(self) -> str:
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @classmethod
    def from_env(cls) -> 'StoreConfig':
        """Load store configuration from environment variables"""
        return cls(
            backend=os.getenv("STORE_BACKEND", "memory").lower(),
            postgres_host=os.getenv("POSTGRES_HOST", "localhost"),
            postgres_port=_int(os.getenv("POSTGRES_PORT", "5432"), 5432),
            postgres_db=os.getenv("POSTGRES_DB", "postgres"),
            postgres_user=os.getenv("POSTGRES_USER", "postgres"),
            postgres_password=os.getenv("POSTGRES_PASSWORD", "postgres"),
            postgres_schema=os.getenv("POSTGRES_SCHEMA", "b2b_orders"),
            pool_min_size=_int(os.getenv("POSTGRES_POOL_MIN", "1"), 1),
            pool_max_size=_int(os.getenv("POSTGRES_POOL_MAX", "10"), 10),
            timeout_seconds=_float(os.getenv("STORE_TIMEOUT_SECONDS", "10"), 10.0),
        )
