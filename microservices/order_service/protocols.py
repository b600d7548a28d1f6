"""
Order Service Protocols (Interfaces)

These interfaces define contracts for dependency injection.
NO import-time I/O dependencies - safe to import anywhere.
"""
from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

# Import only models (no I/O dependencies)
from .models import Order, OrderStatus, OrderStatusLog, PaymentStatus
from microservices.payment_service.models import PaymentResponse, PaymentTransactionCreateRequest
from microservices.shipment_service.models import ShipmentOrderData, ShipmentResponse, ShippingDetails


# ============================================================================
# Custom Exceptions - defined here to avoid importing repository
# ============================================================================

class OrderServiceError(Exception):
    """Base exception for order service errors"""
    pass


class OrderNotFoundError(OrderServiceError):
    """Order not found error"""
    pass


class OrderValidationError(OrderServiceError):
    """Order validation error"""
    pass


class InvalidOrderStateError(OrderServiceError):
    """Invalid order state transition"""
    pass


class UnauthorizedOrderAccessError(OrderServiceError):
    """Reseller acting on an order they do not own"""
    pass


# ============================================================================
# Repository Protocols
# ============================================================================

@runtime_checkable
class OrderRepositoryProtocol(Protocol):
    """
    Interface for Order Repository.

    Implementations must provide these methods.
    Used for dependency injection to enable testing.
    """

    async def check_connection(self) -> bool:
        ...

    async def create_order(self, fields: Dict[str, Any]) -> str:
        """Insert an order, return its id"""
        ...

    async def get_order(self, order_id: str) -> Optional[Order]:
        """Get order by ID"""
        ...

    async def update_order(self, order_id: str, fields: Dict[str, Any]) -> None:
        """Partial update; raises DocumentNotFoundError"""
        ...

    async def delete_order(self, order_id: str) -> bool:
        ...

    async def list_orders(
        self,
        reseller_id: Optional[str] = None,
        status: Optional[OrderStatus] = None,
        payment_status: Optional[PaymentStatus] = None,
    ) -> List[Order]:
        """List orders, newest first"""
        ...

    async def batch_update_orders(self, order_ids: Sequence[str], fields: Dict[str, Any]) -> None:
        """Apply the same fields to every order in one round trip"""
        ...


@runtime_checkable
class OrderStatusLogRepositoryProtocol(Protocol):
    """Interface for the append-only order audit log"""

    async def append(self, order_id: str, status: str, message: str, action_by: str) -> str:
        ...

    async def list_for_order(self, order_id: str) -> List[OrderStatusLog]:
        """Entries of one order, newest first"""
        ...


# ============================================================================
# Collaborator Protocols
# ============================================================================

@runtime_checkable
class PaymentRecorderProtocol(Protocol):
    """Interface for recording payment transactions"""

    async def create_transaction(self, request: PaymentTransactionCreateRequest) -> PaymentResponse:
        ...


@runtime_checkable
class ShipmentCreatorProtocol(Protocol):
    """Interface for creating shipments from orders"""

    async def create_from_order(
        self,
        order_data: ShipmentOrderData,
        shipping_data: Optional[ShippingDetails] = None,
    ) -> ShipmentResponse:
        ...
