"""
Catalog Business Logic

Pure functions deriving stock, expiry and reseller pricing views from
catalog products, plus cart and dashboard totals. Thresholds default to
the values in ``settings.catalog``.
"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional

from core.config import get_settings
from microservices.order_service.models import OrderLineItem

from .models import (
    CartSummary,
    CatalogEntry,
    CatalogSummary,
    ExpiryInfo,
    ExpiryStatus,
    Product,
    ResellerPricing,
    StockStatus,
)

_WHOLE_RUPIAH = Decimal("1")


class LineItemError(ValueError):
    """Requested quantity cannot be put in the cart"""
    pass


def classify_stock(stock: int, low_stock_threshold: Optional[int] = None) -> StockStatus:
    """0 -> out_of_stock, below the threshold -> low_stock, else available"""
    if low_stock_threshold is None:
        low_stock_threshold = get_settings().catalog.low_stock_threshold
    if stock <= 0:
        return StockStatus.OUT_OF_STOCK
    if stock < low_stock_threshold:
        return StockStatus.LOW_STOCK
    return StockStatus.AVAILABLE


def classify_expiry(
    expiry_date: Optional[date],
    today: Optional[date] = None,
    warning_days: Optional[int] = None,
) -> ExpiryInfo:
    """Compare calendar dates; negative days remaining means expired"""
    if expiry_date is None:
        return ExpiryInfo(status=ExpiryStatus.NO_EXPIRY)
    if warning_days is None:
        warning_days = get_settings().catalog.expiry_warning_days
    today = today or date.today()

    days_remaining = (expiry_date - today).days
    if days_remaining < 0:
        status = ExpiryStatus.EXPIRED
    elif days_remaining <= warning_days:
        status = ExpiryStatus.EXPIRING_SOON
    else:
        status = ExpiryStatus.FRESH
    return ExpiryInfo(status=status, days_remaining=days_remaining)


def compute_reseller_pricing(wholesale_price: Decimal, markup: Optional[Decimal] = None) -> ResellerPricing:
    """Retail price is the wholesale price times the markup, rounded to whole rupiah"""
    if markup is None:
        markup = get_settings().catalog.retail_markup
    wholesale_price = Decimal(wholesale_price)

    retail_price = (wholesale_price * Decimal(markup)).quantize(_WHOLE_RUPIAH, rounding=ROUND_HALF_UP)
    commission = retail_price - wholesale_price
    if wholesale_price > 0:
        percent = int((commission / wholesale_price * 100).quantize(_WHOLE_RUPIAH, rounding=ROUND_HALF_UP))
    else:
        percent = 0

    return ResellerPricing(
        wholesale_price=wholesale_price,
        retail_price=retail_price,
        commission_amount=commission,
        commission_percent=percent,
    )


def build_catalog_entry(
    product: Product,
    today: Optional[date] = None,
    markup: Optional[Decimal] = None,
) -> CatalogEntry:
    return CatalogEntry(
        product=product,
        pricing=compute_reseller_pricing(product.price, markup),
        stock_status=classify_stock(product.stock),
        expiry=classify_expiry(product.expiry_date, today),
    )


def build_line_item(product: Product, quantity: int, markup: Optional[Decimal] = None) -> OrderLineItem:
    """
    Snapshot a product into an order line.

    Raises:
        LineItemError: quantity is not positive or exceeds available stock
    """
    if quantity <= 0:
        raise LineItemError(f"Quantity must be positive, got {quantity}")
    if quantity > product.stock:
        raise LineItemError(
            f"Only {product.stock} units of {product.name} available, requested {quantity}"
        )

    pricing = compute_reseller_pricing(product.price, markup)
    return OrderLineItem(
        product_id=product.id,
        name=product.name,
        brand=product.brand,
        category=product.category,
        price=product.price,
        retail_price=pricing.retail_price,
        quantity=quantity,
        commission=pricing.commission_amount,
        image=product.image,
    )


def summarize_cart(items: Iterable[OrderLineItem]) -> CartSummary:
    summary = CartSummary()
    for item in items:
        summary.total_amount += item.subtotal
        summary.total_commission += item.total_commission
        summary.total_quantity += item.quantity
    return summary


def summarize_catalog(products: List[Product], today: Optional[date] = None) -> CatalogSummary:
    """Dashboard counters; a product can count in several buckets"""
    summary = CatalogSummary(total_products=len(products))
    for product in products:
        stock_status = classify_stock(product.stock)
        if stock_status == StockStatus.LOW_STOCK:
            summary.low_stock += 1
        elif stock_status == StockStatus.OUT_OF_STOCK:
            summary.out_of_stock += 1

        expiry = classify_expiry(product.expiry_date, today)
        if expiry.status in (ExpiryStatus.EXPIRED, ExpiryStatus.EXPIRING_SOON):
            summary.expiring_or_expired += 1
    return summary
