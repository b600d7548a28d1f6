"""
Shipment Service Protocols (Interfaces)

These interfaces define contracts for dependency injection.
NO import-time I/O dependencies - safe to import anywhere.
"""
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from .models import Shipment, ShipmentStatus


# ============================================================================
# Custom Exceptions
# ============================================================================

class ShipmentServiceError(Exception):
    """Base exception for shipment service errors"""
    pass


class ShipmentNotFoundError(ShipmentServiceError):
    """Shipment not found"""
    pass


class ShipmentValidationError(ShipmentServiceError):
    """Shipment payload is invalid"""
    pass


class MissingRequiredFieldError(ShipmentValidationError):
    """A mandatory field is absent"""
    pass


# ============================================================================
# Repository Protocol
# ============================================================================

@runtime_checkable
class ShipmentRepositoryProtocol(Protocol):
    """Interface for Shipment Repository"""

    async def check_connection(self) -> bool:
        ...

    async def create_shipment(self, fields: Dict[str, Any]) -> str:
        """Insert a shipment, return its id"""
        ...

    async def get_shipment(self, shipment_id: str) -> Optional[Shipment]:
        ...

    async def update_shipment(self, shipment_id: str, fields: Dict[str, Any]) -> None:
        """Partial update; raises DocumentNotFoundError"""
        ...

    async def delete_shipment(self, shipment_id: str) -> bool:
        ...

    async def list_shipments(
        self,
        status: Optional[ShipmentStatus] = None,
        reseller_id: Optional[str] = None,
        order_id: Optional[str] = None,
        tracking_number: Optional[str] = None,
    ) -> List[Shipment]:
        """List shipments, newest first"""
        ...

    async def get_latest_shipment_number(self, prefix: str) -> Optional[str]:
        """Highest shipment number starting with ``prefix``"""
        ...
