"""
Component Test Mocks

Shared mock implementations for component testing.
These mocks replace real collaborators and slow or failing stores.
"""

from .store_mock import SlowDocumentStore, UnavailableDocumentStore
from .service_mocks import FailingLogRepository, FailingShipmentService, MockPaymentRecorder

__all__ = [
    'SlowDocumentStore',
    'UnavailableDocumentStore',
    'FailingLogRepository',
    'FailingShipmentService',
    'MockPaymentRecorder',
]
