"""
Shared Test Fixtures

Centralized factories and generators used across all test layers.

Structure:
    - common.py: Base ID generators
    - generators.py: Random data generators
    - order_fixtures.py: Catalog products, cart lines, checkout requests
    - order_workflow.py: Drive orders through the lifecycle
"""

# Common utilities
from .common import (
    make_reseller_id,
    make_product_id,
    make_email,
)

# Random generators
from .generators import (
    random_phone,
)

# Order fixtures
from .order_fixtures import (
    make_product,
    make_line_item,
    make_shipping_address,
    make_order_request,
)

# Lifecycle helpers
from .order_workflow import (
    place_order,
    advance_to_confirmed,
    advance_to_shipped,
)

__all__ = [
    "make_reseller_id",
    "make_product_id",
    "make_email",
    "random_phone",
    "make_product",
    "make_line_item",
    "make_shipping_address",
    "make_order_request",
    "place_order",
    "advance_to_confirmed",
    "advance_to_shipped",
]
