#!/usr/bin/env python3
"""Platform main configuration

Combines the sub-configs and the business thresholds used by the catalog
and order views.
"""
import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from .logging_config import LoggingConfig
from .store_config import StoreConfig


def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default

def _decimal(val: str, default: Decimal) -> Decimal:
    try:
        return Decimal(val) if val else default
    except InvalidOperation:
        return default


@dataclass
class CatalogConfig:
    """Stock / expiry / pricing thresholds for the wholesale catalog"""
    low_stock_threshold: int = 50
    expiry_warning_days: int = 30
    retail_markup: Decimal = Decimal("1.4")

    @classmethod
    def from_env(cls) -> 'CatalogConfig':
        return cls(
            low_stock_threshold=_int(os.getenv("LOW_STOCK_THRESHOLD", "50"), 50),
            expiry_warning_days=_int(os.getenv("EXPIRY_WARNING_DAYS", "30"), 30),
            retail_markup=_decimal(os.getenv("RETAIL_MARKUP", "1.4"), Decimal("1.4")),
        )


@dataclass
class AppConfig:
    """Main configuration for the B2B ordering platform"""

    environment: str = "development"
    debug: bool = False

    # Timezone used for human-readable date/time projections
    display_timezone: str = "Asia/Jakarta"

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)

    @classmethod
    def from_env(cls) -> 'AppConfig':
        """Load full configuration from environment variables"""
        env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
        return cls(
            environment=env,
            debug=os.getenv("DEBUG", "false").lower() == "true",
            display_timezone=os.getenv("DISPLAY_TIMEZONE", "Asia/Jakarta"),
            logging=LoggingConfig.from_env(),
            store=StoreConfig.from_env(),
            catalog=CatalogConfig.from_env(),
        )
