"""
Shipment Service Data Models

Courier shipments created from confirmed reseller orders.
"""

from enum import Enum
from typing import Optional, List, Dict, Any
from datetime import datetime, date
from decimal import Decimal
from pydantic import BaseModel, Field

from core.service_result import ServiceResponse


class ShipmentStatus(str, Enum):
    """Shipment status"""
    PREPARING = "preparing"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    RETURNED = "returned"
    CANCELLED = "cancelled"


DEFAULT_COURIER = "JNE"
DEFAULT_SERVICE = "REG"
DEFAULT_ESTIMATED_DAYS = "2-3 hari"


class Shipment(BaseModel):
    """Shipment record"""
    id: str
    shipment_number: str
    tracking_number: str
    order_id: str
    order_number: Optional[str] = None
    reseller_id: Optional[str] = None
    reseller_name: Optional[str] = None
    reseller_email: Optional[str] = None
    items: List[Dict[str, Any]] = Field(default_factory=list)
    shipping_address: Optional[Dict[str, Any]] = None
    courier: str = DEFAULT_COURIER
    service: str = DEFAULT_SERVICE
    cost: Decimal = Decimal("0")
    estimated_days: str = DEFAULT_ESTIMATED_DAYS
    estimated_delivery: Optional[date] = None
    total_weight: Decimal = Decimal("1")
    notes: str = ""
    admin_notes: str = ""
    status: ShipmentStatus = ShipmentStatus.PREPARING
    actual_delivery: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ShipmentView(Shipment):
    """Shipment with the dd/mm/yyyy creation date shown in lists"""
    created_date: str = "N/A"


# Request Models

class ShipmentOrderData(BaseModel):
    """Order snapshot a shipment is built from"""
    id: Optional[str] = None
    order_number: Optional[str] = None
    reseller_id: Optional[str] = None
    reseller_name: Optional[str] = None
    reseller_email: Optional[str] = None
    shipping_address: Optional[Dict[str, Any]] = None
    items: List[Dict[str, Any]] = Field(default_factory=list)
    courier: Optional[str] = None
    shipping_cost: Optional[Decimal] = None
    estimated_delivery: Optional[date] = None
    total_weight: Optional[Decimal] = None
    notes: Optional[str] = None


class ShippingDetails(BaseModel):
    """Admin-entered courier details; set fields win over the order snapshot"""
    courier: Optional[str] = None
    service: Optional[str] = None
    cost: Optional[Decimal] = None
    estimated_days: Optional[str] = None
    estimated_delivery: Optional[date] = None
    total_weight: Optional[Decimal] = None
    tracking_number: Optional[str] = None
    notes: Optional[str] = None


class ShipmentCreateRequest(BaseModel):
    """Standalone shipment form"""
    order_id: Optional[str] = None
    order_number: Optional[str] = None
    reseller_id: Optional[str] = None
    reseller_name: Optional[str] = None
    reseller_email: Optional[str] = None
    shipping_address: Optional[Dict[str, Any]] = None
    items: List[Dict[str, Any]] = Field(default_factory=list)
    courier: Optional[str] = None
    service: Optional[str] = None
    cost: Optional[Decimal] = None
    estimated_days: Optional[str] = None
    estimated_delivery: Optional[date] = None
    total_weight: Optional[Decimal] = None
    tracking_number: Optional[str] = None
    notes: str = ""


class ShipmentStatusUpdateRequest(BaseModel):
    status: ShipmentStatus
    notes: str = ""


class ShipmentFromOrderRequest(BaseModel):
    """HTTP body for creating a shipment from an order snapshot"""
    order_data: ShipmentOrderData
    shipping_data: ShippingDetails = Field(default_factory=ShippingDetails)


# Response Models

class ShipmentResponse(ServiceResponse):
    """Single shipment response"""
    shipment: Optional[ShipmentView] = None
    shipment_id: Optional[str] = None
    shipment_number: Optional[str] = None
    tracking_number: Optional[str] = None
    existing: bool = Field(False, description="True when an earlier shipment for the order was returned")


class ShipmentListResponse(ServiceResponse):
    shipments: List[ShipmentView] = []
    count: int = 0


class ShipmentStatistics(BaseModel):
    """Counts per status; total_cost covers every shipment"""
    total: int = 0
    preparing: int = 0
    in_transit: int = 0
    delivered: int = 0
    returned: int = 0
    cancelled: int = 0
    total_cost: Decimal = Decimal("0")


class ShipmentStatisticsResponse(ServiceResponse):
    statistics: Optional[ShipmentStatistics] = None
