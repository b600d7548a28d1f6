"""
Component Test Layer Configuration

Services run with their real repositories on an InMemoryDocumentStore;
collaborators that must fail are replaced from tests/component/mocks.

Usage:
    pytest tests/component -v
    pytest tests/component -m api -v
"""
import pytest

from core.document_store import InMemoryDocumentStore
from microservices.order_service.factory import create_order_service
from microservices.payment_service.factory import create_payment_service
from microservices.shipment_service.factory import create_shipment_service

from tests.component.mocks import MockPaymentRecorder


def pytest_configure(config):
    """Configure custom markers"""
    config.addinivalue_line(
        "markers", "component: marks tests as component tests"
    )


# =============================================================================
# Store / Service Fixtures
# =============================================================================

@pytest.fixture
def store() -> InMemoryDocumentStore:
    """Fresh in-memory store per test"""
    return InMemoryDocumentStore()


@pytest.fixture
def order_service(store):
    """OrderService wired with payment and shipment services on the same store"""
    return create_order_service(store=store)


@pytest.fixture
def payment_service(store):
    return create_payment_service(store=store)


@pytest.fixture
def shipment_service(store):
    return create_shipment_service(store=store)


@pytest.fixture
def mock_payment_recorder() -> MockPaymentRecorder:
    return MockPaymentRecorder()
