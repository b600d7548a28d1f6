"""
Payment Service Data Models

Payment transactions recorded against reseller orders, plus the statistics
and display projections the admin views read.
"""

from enum import Enum
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field

from core.service_result import ServiceResponse


# ====================
# Enums
# ====================

class TransactionStatus(str, Enum):
    """Transaction status"""
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"


class TransactionType(str, Enum):
    """Transaction type; only payments count towards revenue"""
    PAYMENT = "payment"
    REFUND = "refund"
    COMMISSION = "commission"


# ====================
# Core Models
# ====================

class PaymentTransaction(BaseModel):
    """Payment transaction"""
    id: str
    transaction_id: str = Field(..., description="Human-readable TXN number")
    order_id: str
    order_number: Optional[str] = None
    reseller_id: Optional[str] = None
    customer: Optional[str] = None
    customer_email: Optional[str] = None
    amount: Decimal = Decimal("0")
    method: str = ""
    reference: str = ""
    status: TransactionStatus = TransactionStatus.PROCESSING
    type: TransactionType = TransactionType.PAYMENT
    description: str = ""
    admin_notes: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PaymentTransactionView(PaymentTransaction):
    """Transaction with localized date/time for list views"""
    date: str = "N/A"
    time: str = "N/A"


# ====================
# Request Models
# ====================

class PaymentTransactionCreateRequest(BaseModel):
    """Create transaction request"""
    order_id: Optional[str] = None
    order_number: Optional[str] = None
    reseller_id: Optional[str] = None
    customer: Optional[str] = None
    customer_email: Optional[str] = None
    amount: Decimal = Decimal("0")
    method: str = ""
    reference: str = ""
    status: TransactionStatus = TransactionStatus.PROCESSING
    type: TransactionType = TransactionType.PAYMENT
    description: str = ""


class TransactionStatusUpdateRequest(BaseModel):
    """Admin status change on a transaction"""
    status: TransactionStatus
    notes: str = ""


# ====================
# Response Models
# ====================

class PaymentResponse(ServiceResponse):
    """Single transaction response"""
    payment: Optional[PaymentTransactionView] = None
    payment_id: Optional[str] = None
    transaction_number: Optional[str] = None


class PaymentListResponse(ServiceResponse):
    """Transaction list response"""
    payments: List[PaymentTransactionView] = []
    count: int = 0


class PaymentStatistics(BaseModel):
    """Admin dashboard counters"""
    total_revenue: Decimal = Decimal("0")
    total_transactions: int = 0
    successful_transactions: int = 0
    failed_transactions: int = 0
    processing_transactions: int = 0
    average_transaction: Decimal = Decimal("0")
    success_rate: float = Field(0.0, description="Percentage, one decimal")


class PaymentStatisticsResponse(ServiceResponse):
    statistics: Optional[PaymentStatistics] = None


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    service: str
    port: int
    version: str
    timestamp: datetime
