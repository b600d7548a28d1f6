"""
Common/Shared Fixtures

Base factories and generators used across multiple services.
"""
import uuid
from typing import Optional


def make_reseller_id() -> str:
    """Generate a unique reseller ID"""
    return f"rsl_test_{uuid.uuid4().hex[:12]}"


def make_product_id() -> str:
    """Generate a unique product ID"""
    return f"prd_test_{uuid.uuid4().hex[:12]}"


def make_email(prefix: Optional[str] = None) -> str:
    """Generate a unique email"""
    prefix = prefix or f"test_{uuid.uuid4().hex[:8]}"
    return f"{prefix}@example.com"
