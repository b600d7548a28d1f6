"""
Root conftest.py - Global fixtures and configuration for all test layers.

Test Layers:
    - component/  : Service tests on the in-memory store and mocks, API tests via ASGI
    - unit/       : Unit tests (pure functions, no I/O)
"""
import os
import sys

import pytest

# Settings are read at import time; pin the test environment first
os.environ.setdefault("ENV", "testing")
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("DISPLAY_TIMEZONE", "Asia/Jakarta")

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from tests.fixtures import make_reseller_id, make_order_request


def pytest_configure(config):
    """Configure custom markers"""
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "component: marks tests as component tests")
    config.addinivalue_line("markers", "api: marks tests that call the FastAPI apps")


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture
def reseller_id() -> str:
    return make_reseller_id()


@pytest.fixture
def order_request():
    """Checkout request with one line of 100.000 x 1"""
    return make_order_request()
