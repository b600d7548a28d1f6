"""
Product Catalog Data Models

Wholesale catalog entries as shown to resellers, plus the derived stock,
expiry and commission views computed from them.
"""

from enum import Enum
from typing import Optional
from datetime import date
from decimal import Decimal
from pydantic import BaseModel, Field


class StockStatus(str, Enum):
    """Stock availability classification"""
    AVAILABLE = "available"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"


class ExpiryStatus(str, Enum):
    """Shelf-life classification"""
    NO_EXPIRY = "no_expiry"
    EXPIRED = "expired"
    EXPIRING_SOON = "expiring_soon"
    FRESH = "fresh"


class Product(BaseModel):
    """Wholesale catalog product"""
    id: str
    name: str
    brand: Optional[str] = None
    category: Optional[str] = None
    price: Decimal = Field(..., ge=0, description="Unit wholesale price")
    stock: int = Field(default=0, ge=0)
    expiry_date: Optional[date] = None
    image: Optional[str] = None
    description: Optional[str] = None


class ExpiryInfo(BaseModel):
    """Expiry classification with remaining days"""
    status: ExpiryStatus
    days_remaining: Optional[int] = None


class ResellerPricing(BaseModel):
    """Retail price and reseller margin for one unit"""
    wholesale_price: Decimal
    retail_price: Decimal
    commission_amount: Decimal
    commission_percent: int


class CatalogEntry(BaseModel):
    """Product as presented in the reseller catalog"""
    product: Product
    pricing: ResellerPricing
    stock_status: StockStatus
    expiry: ExpiryInfo


class CatalogSummary(BaseModel):
    """Dashboard counters over the catalog"""
    total_products: int = 0
    low_stock: int = 0
    out_of_stock: int = 0
    expiring_or_expired: int = 0


class CartSummary(BaseModel):
    """Totals over the reseller's cart"""
    total_amount: Decimal = Decimal("0")
    total_commission: Decimal = Decimal("0")
    total_quantity: int = 0
