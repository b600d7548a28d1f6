"""
Order Service Data Models

Pydantic models for reseller orders, status updates, audit logs and
order statistics.
"""

from pydantic import BaseModel, Field, model_validator
from typing import Optional, List, Dict
from datetime import datetime, date
from decimal import Decimal
from enum import Enum

from core.service_result import ServiceResponse


class OrderStatus(str, Enum):
    """Fulfillment status"""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """Payment status, moves in parallel with OrderStatus"""
    WAITING_PAYMENT = "waiting_payment"
    WAITING_VERIFICATION = "waiting_verification"
    PAID = "paid"
    FAILED = "failed"
    COD = "cod"


class FulfillmentStage(str, Enum):
    """Combined view of (status, payment_status); derived, never stored"""
    AWAITING_PAYMENT = "awaiting_payment"
    AWAITING_VERIFICATION = "awaiting_verification"
    PAYMENT_FAILED = "payment_failed"
    READY_TO_CONFIRM = "ready_to_confirm"
    READY_TO_SHIP = "ready_to_ship"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    CLOSED = "closed"
    CANCELLED = "cancelled"


# Pseudo statuses that only appear in the audit log
LOG_STATUS_DELETED = "deleted"
LOG_STATUS_BATCH_UPDATED = "batch_updated"


# Core Order Models

class OrderLineItem(BaseModel):
    """One catalog product in an order"""
    product_id: Optional[str] = None
    name: str
    brand: Optional[str] = None
    category: Optional[str] = None
    price: Decimal = Field(..., description="Unit wholesale price")
    retail_price: Decimal = Decimal("0")
    quantity: int
    commission: Decimal = Field(default=Decimal("0"), description="Unit commission")
    image: Optional[str] = None
    subtotal: Optional[Decimal] = None
    total_commission: Optional[Decimal] = None

    @model_validator(mode="after")
    def fill_totals(self):
        if self.subtotal is None:
            self.subtotal = self.price * self.quantity
        if self.total_commission is None:
            self.total_commission = self.commission * self.quantity
        return self


class ShippingAddress(BaseModel):
    """Delivery address entered at checkout"""
    name: str = Field(..., description="Recipient name")
    phone: str
    address: str = Field(..., description="Street address")
    city: str
    province: Optional[str] = None
    postal_code: Optional[str] = None


class Order(BaseModel):
    """Core order model"""
    id: str
    order_number: str
    reseller_id: str
    reseller_name: Optional[str] = None
    reseller_email: Optional[str] = None
    reseller_phone: Optional[str] = None
    products: List[OrderLineItem] = []
    total_amount: Decimal = Decimal("0")
    total_commission: Decimal = Decimal("0")
    shipping_address: Optional[ShippingAddress] = None
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.WAITING_PAYMENT
    payment_method: str = ""
    payment_proof: str = ""
    payment_proof_url: str = ""
    admin_message: str = ""
    tracking_number: str = ""
    estimated_delivery: Optional[date] = None
    actual_delivery: Optional[datetime] = None
    reseller_confirmation: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class OrderStatusLog(BaseModel):
    """Append-only audit entry for an order mutation"""
    id: str
    order_id: str
    status: str
    message: str = ""
    action_by: str = "system"
    timestamp: Optional[datetime] = None


# Request Models

class OrderCreateRequest(BaseModel):
    """Reseller checkout payload"""
    reseller_name: str
    reseller_email: str
    reseller_phone: str = ""
    products: List[OrderLineItem] = Field(default_factory=list)
    total_amount: Optional[Decimal] = Field(None, description="Defaults to the sum of line subtotals")
    total_commission: Optional[Decimal] = Field(None, description="Defaults to the sum of line commissions")
    shipping_address: ShippingAddress
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.WAITING_PAYMENT


class OrderStatusUpdateData(BaseModel):
    """Flags and extra fields carried by an admin status update"""
    confirmed_by_reseller: bool = False
    create_shipment: bool = False
    courier: Optional[str] = None
    service: Optional[str] = None
    shipping_cost: Optional[Decimal] = None
    estimated_days: Optional[str] = None
    estimated_delivery: Optional[date] = None
    total_weight: Optional[Decimal] = None
    notes: Optional[str] = None
    tracking_number: Optional[str] = None
    override: bool = Field(False, description="Admin bypass of transition rules")


class OrderStatusUpdateRequest(BaseModel):
    """Admin status update"""
    status: OrderStatus
    admin_message: str = ""
    additional_data: Optional[OrderStatusUpdateData] = None


class PaymentDetails(BaseModel):
    """Payment evidence supplied by an admin on manual verification"""
    method: str = "Manual"
    reference: str = ""


class PaymentStatusUpdateRequest(BaseModel):
    """Admin payment verification"""
    payment_status: PaymentStatus
    order_status: Optional[OrderStatus] = None
    admin_message: str = ""
    payment_details: Optional[PaymentDetails] = None
    override: bool = False


class PaymentProofRequest(BaseModel):
    """Reseller payment proof submission"""
    payment_method: str
    payment_proof: str
    payment_proof_url: str = ""


class CashOnDeliveryRequest(BaseModel):
    """Reseller chooses cash on delivery"""
    reseller_id: str


class ConfirmReceivedRequest(BaseModel):
    """Reseller confirms the goods arrived"""
    reseller_id: str
    message: str = ""


class TrackingInfoRequest(BaseModel):
    """Admin attaches a courier tracking number"""
    tracking_number: str
    estimated_delivery: Optional[date] = None


class OrderBatchUpdate(BaseModel):
    """Fields applied to every order of a batch"""
    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None
    admin_message: Optional[str] = None
    override: bool = False


class OrderBatchUpdateRequest(BaseModel):
    """Admin bulk update"""
    order_ids: List[str]
    update: OrderBatchUpdate


# Response Models

class OrderResponse(ServiceResponse):
    """Order response model"""
    order: Optional[Order] = None
    order_id: Optional[str] = None
    order_number: Optional[str] = None
    fulfillment_stage: Optional[FulfillmentStage] = None


class OrderListResponse(ServiceResponse):
    """Order list response"""
    orders: List[Order] = []
    count: int = 0


class OrderStatusLogListResponse(ServiceResponse):
    """Audit trail of one order"""
    logs: List[OrderStatusLog] = []
    count: int = 0


class OrderBatchUpdateResponse(ServiceResponse):
    """Bulk update result"""
    updated_ids: List[str] = []


# Order Statistics Models

class OrderStatistics(BaseModel):
    """Order statistics model"""
    total: int = 0
    pending: int = 0
    confirmed: int = 0
    shipped: int = 0
    delivered: int = 0
    completed: int = 0
    cancelled: int = 0
    waiting_payment: int = 0
    waiting_verification: int = 0
    paid: int = 0
    payment_failed: int = 0
    cod: int = 0
    by_stage: Dict[str, int] = {}
    total_revenue: Decimal = Decimal("0")
    total_commission: Decimal = Decimal("0")


class OrderStatisticsResponse(ServiceResponse):
    """Statistics response"""
    statistics: Optional[OrderStatistics] = None


class OrderServiceStatus(BaseModel):
    """Order service status response"""
    service: str = "order_service"
    status: str = "operational"
    port: int = 8210
    version: str = "1.0.0"
    database_connected: bool
    timestamp: Optional[datetime] = None
