"""
Payment Service Business Logic Layer

Records payment transactions for reseller orders, lets admins move them
between processing / success / failed, and computes dashboard statistics.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from core.identifiers import generate_transaction_number
from core.service_result import ErrorCode, error_code_for

from .formatting import date_time_projection
from .models import (
    PaymentListResponse,
    PaymentResponse,
    PaymentStatistics,
    PaymentStatisticsResponse,
    PaymentTransaction,
    PaymentTransactionCreateRequest,
    PaymentTransactionView,
    TransactionStatus,
    TransactionType,
)
from .protocols import (
    MissingRequiredFieldError,
    PaymentNotFoundError,
    PaymentRepositoryProtocol,
    PaymentValidationError,
)

logger = logging.getLogger(__name__)

RETRY_NOTE = "Payment retry initiated"
ALL_STATUSES = "all"


def _error_code(e: Exception) -> ErrorCode:
    if isinstance(e, PaymentNotFoundError):
        return ErrorCode.NOT_FOUND
    if isinstance(e, MissingRequiredFieldError):
        return ErrorCode.MISSING_REQUIRED_FIELD
    if isinstance(e, PaymentValidationError):
        return ErrorCode.VALIDATION_FAILED
    return error_code_for(e)


def to_view(payment: PaymentTransaction, tz_name: Optional[str] = None) -> PaymentTransactionView:
    date_str, time_str = date_time_projection(payment.created_at, tz_name)
    return PaymentTransactionView(**payment.model_dump(), date=date_str, time=time_str)


class PaymentService:
    """Payment transaction business logic"""

    def __init__(self, repository: PaymentRepositoryProtocol, display_timezone: Optional[str] = None):
        self.repository = repository
        self.display_timezone = display_timezone
        logger.info("PaymentService initialized")

    # ====================
    # Mutations
    # ====================

    async def create_transaction(self, request: PaymentTransactionCreateRequest) -> PaymentResponse:
        """
        Record a transaction.

        Args:
            request: order reference, customer and amount

        Returns:
            PaymentResponse with payment_id and transaction_number
        """
        try:
            if not request.order_id:
                raise MissingRequiredFieldError("Order ID is required")
            if request.amount < 0:
                raise PaymentValidationError(f"Amount cannot be negative: {request.amount}")

            transaction_number = generate_transaction_number()
            fields: Dict[str, Any] = request.model_dump()
            fields["transaction_id"] = transaction_number
            fields["admin_notes"] = ""

            payment_id = await self.repository.create_transaction(fields)
            logger.info(
                f"Payment transaction {transaction_number} created for order {request.order_id} "
                f"({request.status.value}, {request.amount})"
            )
            return PaymentResponse(
                success=True,
                message="Payment transaction created",
                payment_id=payment_id,
                transaction_number=transaction_number,
            )
        except Exception as e:
            logger.error(f"Error creating payment transaction for order {request.order_id}: {e}")
            return PaymentResponse(success=False, message=str(e), error_code=_error_code(e))

    async def update_status(
        self,
        payment_id: str,
        status: TransactionStatus,
        notes: str = "",
    ) -> PaymentResponse:
        """Set status and admin notes directly; no transition rules apply"""
        try:
            await self._require(payment_id)
            await self.repository.update_transaction(payment_id, {"status": status, "admin_notes": notes})
            logger.info(f"Payment {payment_id} status set to {status.value}")
            return PaymentResponse(success=True, message="Payment status updated", payment_id=payment_id)
        except Exception as e:
            logger.error(f"Error updating payment {payment_id}: {e}")
            return PaymentResponse(success=False, message=str(e), error_code=_error_code(e), payment_id=payment_id)

    async def retry(self, payment_id: str) -> PaymentResponse:
        """Reset a transaction to processing, whatever its current status"""
        try:
            await self._require(payment_id)
            await self.repository.update_transaction(
                payment_id,
                {"status": TransactionStatus.PROCESSING, "admin_notes": RETRY_NOTE},
            )
            logger.info(f"Payment {payment_id} retry initiated")
            return PaymentResponse(success=True, message=RETRY_NOTE, payment_id=payment_id)
        except Exception as e:
            logger.error(f"Error retrying payment {payment_id}: {e}")
            return PaymentResponse(success=False, message=str(e), error_code=_error_code(e), payment_id=payment_id)

    # ====================
    # Reads
    # ====================

    async def get_payment(self, payment_id: str) -> PaymentResponse:
        try:
            payment = await self._require(payment_id)
            return PaymentResponse(
                success=True,
                message="Payment found",
                payment=to_view(payment, self.display_timezone),
                payment_id=payment_id,
                transaction_number=payment.transaction_id,
            )
        except Exception as e:
            logger.error(f"Error getting payment {payment_id}: {e}")
            return PaymentResponse(success=False, message=str(e), error_code=_error_code(e), payment_id=payment_id)

    async def get_all_payments(self, status_filter: Optional[str] = None) -> PaymentListResponse:
        """List every transaction; ``"all"`` or None disables the status filter"""
        try:
            status = None
            if status_filter and status_filter != ALL_STATUSES:
                try:
                    status = TransactionStatus(status_filter)
                except ValueError:
                    raise PaymentValidationError(f"Unknown payment status filter: {status_filter}")
            payments = await self.repository.list_transactions(status=status)
            return self._list_response(payments)
        except Exception as e:
            logger.error(f"Error listing payments: {e}")
            return PaymentListResponse(success=False, message=str(e), error_code=_error_code(e))

    async def get_payments_by_reseller(self, reseller_id: str) -> PaymentListResponse:
        try:
            payments = await self.repository.list_transactions(reseller_id=reseller_id)
            return self._list_response(payments)
        except Exception as e:
            logger.error(f"Error listing payments for reseller {reseller_id}: {e}")
            return PaymentListResponse(success=False, message=str(e), error_code=_error_code(e))

    async def get_payments_by_order(self, order_id: str) -> PaymentListResponse:
        try:
            payments = await self.repository.list_transactions(order_id=order_id)
            return self._list_response(payments)
        except Exception as e:
            logger.error(f"Error listing payments for order {order_id}: {e}")
            return PaymentListResponse(success=False, message=str(e), error_code=_error_code(e))

    async def get_stats(self) -> PaymentStatisticsResponse:
        """Revenue counts successful payments only; refunds and commissions are excluded"""
        try:
            payments = await self.repository.list_transactions()
            stats = compute_payment_statistics(payments)
            return PaymentStatisticsResponse(success=True, message="Payment statistics", statistics=stats)
        except Exception as e:
            logger.error(f"Error computing payment statistics: {e}")
            return PaymentStatisticsResponse(success=False, message=str(e), error_code=_error_code(e))

    async def check_health(self) -> bool:
        return await self.repository.check_connection()

    # ====================
    # Helpers
    # ====================

    async def _require(self, payment_id: str) -> PaymentTransaction:
        payment = await self.repository.get_transaction(payment_id)
        if payment is None:
            raise PaymentNotFoundError(f"Payment not found: {payment_id}")
        return payment

    def _list_response(self, payments: List[PaymentTransaction]) -> PaymentListResponse:
        views = [to_view(p, self.display_timezone) for p in payments]
        return PaymentListResponse(
            success=True,
            message=f"Found {len(views)} payments",
            payments=views,
            count=len(views),
        )


def compute_payment_statistics(payments: List[PaymentTransaction]) -> PaymentStatistics:
    stats = PaymentStatistics(total_transactions=len(payments))
    revenue = Decimal("0")

    for payment in payments:
        if payment.status == TransactionStatus.SUCCESS:
            stats.successful_transactions += 1
            if payment.type == TransactionType.PAYMENT:
                revenue += payment.amount
        elif payment.status == TransactionStatus.FAILED:
            stats.failed_transactions += 1
        elif payment.status == TransactionStatus.PROCESSING:
            stats.processing_transactions += 1

    stats.total_revenue = revenue
    if stats.successful_transactions > 0:
        stats.average_transaction = revenue / stats.successful_transactions
    if stats.total_transactions > 0:
        stats.success_rate = round(stats.successful_transactions / stats.total_transactions * 100, 1)
    return stats
