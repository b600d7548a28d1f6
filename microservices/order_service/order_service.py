"""
Order Service Business Logic

Business logic layer for the reseller order lifecycle: checkout, payment
verification, shipping and reseller confirmation.

Each mutation writes the order document first. Follow-up work (audit log,
payment transaction, shipment) runs afterwards on a best-effort basis and
is reported in the response's ``effects`` instead of failing the call.
"""

from typing import Optional, List, Dict, Any, Tuple
from collections import Counter
from decimal import Decimal
import asyncio
import logging
import weakref

from core.document_store import SERVER_TIMESTAMP
from core.identifiers import generate_order_number
from core.service_result import ErrorCode, SideEffect, error_code_for
from microservices.payment_service.models import (
    PaymentTransactionCreateRequest, TransactionStatus, TransactionType,
)
from microservices.shipment_service.models import (
    DEFAULT_COURIER, DEFAULT_ESTIMATED_DAYS, DEFAULT_SERVICE,
    ShipmentOrderData, ShippingDetails,
)

from .models import (
    Order, OrderStatus, PaymentStatus, OrderCreateRequest, OrderStatusUpdateData,
    PaymentDetails, OrderBatchUpdate, OrderResponse, OrderListResponse,
    OrderStatusLogListResponse, OrderBatchUpdateResponse, OrderStatistics,
    OrderStatisticsResponse, LOG_STATUS_DELETED, LOG_STATUS_BATCH_UPDATED,
)
from .protocols import (
    OrderRepositoryProtocol,
    PaymentRecorderProtocol,
    ShipmentCreatorProtocol,
    OrderServiceError,
    OrderNotFoundError,
    OrderValidationError,
    InvalidOrderStateError,
    UnauthorizedOrderAccessError,
)
from .state_machine import (
    DELETABLE_ORDER_STATUSES,
    derive_fulfillment_stage,
    order_transition_error,
    payment_transition_error,
)
from .status_logger import ACTOR_ADMIN, StatusLogger, reseller_actor

logger = logging.getLogger(__name__)

RECEIVED_MESSAGE = "Order confirmed as received by reseller"
PROOF_SUBMITTED_MESSAGE = "Payment proof submitted. Waiting for admin verification."
COD_SELECTED_MESSAGE = "Reseller selected Cash on Delivery"
BATCH_MESSAGE = "Batch update by admin"
DEFAULT_WEIGHT = Decimal("1")

# payment_status value -> OrderStatistics field
_PAYMENT_COUNTERS = {
    PaymentStatus.WAITING_PAYMENT: "waiting_payment",
    PaymentStatus.WAITING_VERIFICATION: "waiting_verification",
    PaymentStatus.PAID: "paid",
    PaymentStatus.FAILED: "payment_failed",
    PaymentStatus.COD: "cod",
}


def _error_code(e: Exception) -> ErrorCode:
    if isinstance(e, OrderNotFoundError):
        return ErrorCode.NOT_FOUND
    if isinstance(e, UnauthorizedOrderAccessError):
        return ErrorCode.UNAUTHORIZED
    if isinstance(e, InvalidOrderStateError):
        return ErrorCode.INVALID_STATE
    if isinstance(e, OrderValidationError):
        return ErrorCode.VALIDATION_FAILED
    return error_code_for(e)


class OrderService:
    """
    Order lifecycle business logic service

    Mutations on the same order are serialized inside this process.
    """

    def __init__(
        self,
        repository: OrderRepositoryProtocol,
        status_logger: StatusLogger,
        payment_service: Optional[PaymentRecorderProtocol] = None,
        shipment_service: Optional[ShipmentCreatorProtocol] = None,
    ):
        """
        Initialize Order Service

        Args:
            repository: order repository
            status_logger: audit log writer
            payment_service: records payment transactions (optional)
            shipment_service: creates shipments for shipped orders (optional)
        """
        self.repository = repository
        self.status_logger = status_logger
        self.payment_service = payment_service
        self.shipment_service = shipment_service
        self._order_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

        logger.info("OrderService initialized")

    # Order Lifecycle Operations

    async def create_order(self, reseller_id: str, request: OrderCreateRequest) -> OrderResponse:
        """
        Create a new order from the reseller's cart

        Args:
            reseller_id: ordering reseller
            request: cart lines, totals and shipping address

        Returns:
            OrderResponse with order_id and order_number
        """
        try:
            self._validate_order_create_request(reseller_id, request)

            total_amount = request.total_amount
            if total_amount is None:
                total_amount = sum((item.subtotal for item in request.products), Decimal("0"))
            total_commission = request.total_commission
            if total_commission is None:
                total_commission = sum((item.total_commission for item in request.products), Decimal("0"))

            order_number = generate_order_number()
            fields = request.model_dump()
            fields.update({
                "order_number": order_number,
                "reseller_id": reseller_id,
                "total_amount": total_amount,
                "total_commission": total_commission,
                "payment_method": "",
                "payment_proof": "",
                "payment_proof_url": "",
                "admin_message": "",
                "tracking_number": "",
                "estimated_delivery": None,
                "actual_delivery": None,
                "reseller_confirmation": False,
            })

            order_id = await self.repository.create_order(fields)
            effect = await self.status_logger.log(
                order_id, request.status.value, "Order created", reseller_actor(reseller_id)
            )

            logger.info(f"Order created: {order_number} ({order_id}) for reseller {reseller_id}")
            return OrderResponse(
                success=True,
                message="Order created successfully",
                order_id=order_id,
                order_number=order_number,
                effects=[effect],
            )

        except OrderServiceError as e:
            logger.warning(f"Order creation rejected for reseller {reseller_id}: {e}")
            return OrderResponse(success=False, message=str(e), error_code=_error_code(e))
        except Exception as e:
            logger.error(f"Failed to create order for reseller {reseller_id}: {e}")
            return OrderResponse(
                success=False,
                message=f"Failed to create order: {str(e)}",
                error_code=_error_code(e)
            )

    async def update_order_status(
        self,
        order_id: str,
        new_status: OrderStatus,
        admin_message: str = "",
        additional_data: Optional[OrderStatusUpdateData] = None,
    ) -> OrderResponse:
        """
        Admin status change

        ``additional_data`` can mark a completion as confirmed by the
        reseller, request a shipment when moving to shipped, and carry
        tracking / estimated delivery fields. A failed shipment is reported
        as an effect and does not stop the status update.
        """
        data = additional_data or OrderStatusUpdateData()
        effects: List[SideEffect] = []
        try:
            async with self._lock_for(order_id):
                order = await self._require_order(order_id)
                self._check_order_transition(order, new_status, order.payment_status, data.override)

                message = admin_message
                actor = ACTOR_ADMIN
                fields: Dict[str, Any] = {"status": new_status, "admin_message": admin_message}

                if new_status == OrderStatus.COMPLETED and data.confirmed_by_reseller:
                    message = message or RECEIVED_MESSAGE
                    actor = reseller_actor(order.reseller_id)
                    fields.update({
                        "admin_message": message,
                        "reseller_confirmation": True,
                        "actual_delivery": SERVER_TIMESTAMP,
                    })

                if data.tracking_number:
                    fields["tracking_number"] = data.tracking_number
                if data.estimated_delivery:
                    fields["estimated_delivery"] = data.estimated_delivery

                if new_status == OrderStatus.SHIPPED and data.create_shipment:
                    effect, tracking_number = await self._create_shipment(order, data)
                    effects.append(effect)
                    if tracking_number:
                        fields["tracking_number"] = tracking_number

                await self.repository.update_order(order_id, fields)
                effects.append(await self.status_logger.log(
                    order_id,
                    new_status.value,
                    message or f"Order status changed to {new_status.value}",
                    actor,
                ))

            logger.info(f"Order {order_id} status: {order.status.value} -> {new_status.value}")
            return OrderResponse(
                success=True,
                message="Order status updated",
                order_id=order_id,
                order_number=order.order_number,
                effects=effects,
            )

        except OrderServiceError as e:
            logger.warning(f"Status update rejected for order {order_id}: {e}")
            return OrderResponse(success=False, message=str(e), error_code=_error_code(e),
                                 order_id=order_id, effects=effects)
        except Exception as e:
            logger.error(f"Failed to update status of order {order_id}: {e}")
            return OrderResponse(success=False, message=str(e), error_code=_error_code(e),
                                 order_id=order_id, effects=effects)

    async def update_payment_status(
        self,
        order_id: str,
        payment_status: PaymentStatus,
        order_status: Optional[OrderStatus] = None,
        admin_message: str = "",
        payment_details: Optional[PaymentDetails] = None,
        override: bool = False,
    ) -> OrderResponse:
        """
        Admin payment verification

        Marking an order ``paid`` with payment details also records a
        successful payment transaction for the order total.
        """
        effects: List[SideEffect] = []
        try:
            async with self._lock_for(order_id):
                order = await self._require_order(order_id)

                error = payment_transition_error(order.payment_status, payment_status)
                if error:
                    if not override:
                        raise InvalidOrderStateError(error)
                    logger.warning(f"Admin override on order {order_id}: {error}")
                if order_status is not None:
                    self._check_order_transition(order, order_status, payment_status, override)

                fields: Dict[str, Any] = {"payment_status": payment_status, "admin_message": admin_message}
                if order_status is not None:
                    fields["status"] = order_status
                await self.repository.update_order(order_id, fields)

                if payment_status == PaymentStatus.PAID and payment_details is not None:
                    effects.append(await self._record_payment(
                        order,
                        TransactionStatus.SUCCESS,
                        method=payment_details.method,
                        reference=payment_details.reference,
                        description=f"Payment for order {order.order_number}",
                    ))

                effects.append(await self.status_logger.log(
                    order_id,
                    (order_status or order.status).value,
                    admin_message or f"Payment status changed to {payment_status.value}",
                    ACTOR_ADMIN,
                ))

            logger.info(
                f"Order {order_id} payment: {order.payment_status.value} -> {payment_status.value}"
            )
            return OrderResponse(
                success=True,
                message="Payment status updated",
                order_id=order_id,
                order_number=order.order_number,
                effects=effects,
            )

        except OrderServiceError as e:
            logger.warning(f"Payment status update rejected for order {order_id}: {e}")
            return OrderResponse(success=False, message=str(e), error_code=_error_code(e),
                                 order_id=order_id, effects=effects)
        except Exception as e:
            logger.error(f"Failed to update payment status of order {order_id}: {e}")
            return OrderResponse(success=False, message=str(e), error_code=_error_code(e),
                                 order_id=order_id, effects=effects)

    async def update_payment_proof(
        self,
        order_id: str,
        payment_method: str,
        payment_proof: str,
        payment_proof_url: str = "",
    ) -> OrderResponse:
        """Reseller submits a transfer proof; always records a processing transaction"""
        effects: List[SideEffect] = []
        try:
            async with self._lock_for(order_id):
                order = await self._require_order(order_id)
                if order.status == OrderStatus.CANCELLED:
                    raise InvalidOrderStateError("Cannot submit payment proof for a cancelled order")
                error = payment_transition_error(order.payment_status, PaymentStatus.WAITING_VERIFICATION)
                if error:
                    raise InvalidOrderStateError(error)

                await self.repository.update_order(order_id, {
                    "payment_status": PaymentStatus.WAITING_VERIFICATION,
                    "payment_method": payment_method,
                    "payment_proof": payment_proof,
                    "payment_proof_url": payment_proof_url,
                    "admin_message": PROOF_SUBMITTED_MESSAGE,
                })

                effects.append(await self._record_payment(
                    order,
                    TransactionStatus.PROCESSING,
                    method=payment_method,
                    reference=payment_proof,
                    description=f"Payment proof for order {order.order_number}",
                ))
                effects.append(await self.status_logger.log(
                    order_id, order.status.value, PROOF_SUBMITTED_MESSAGE, reseller_actor(order.reseller_id)
                ))

            logger.info(f"Payment proof submitted for order {order_id} via {payment_method}")
            return OrderResponse(
                success=True,
                message=PROOF_SUBMITTED_MESSAGE,
                order_id=order_id,
                order_number=order.order_number,
                effects=effects,
            )

        except OrderServiceError as e:
            logger.warning(f"Payment proof rejected for order {order_id}: {e}")
            return OrderResponse(success=False, message=str(e), error_code=_error_code(e),
                                 order_id=order_id, effects=effects)
        except Exception as e:
            logger.error(f"Failed to store payment proof for order {order_id}: {e}")
            return OrderResponse(success=False, message=str(e), error_code=_error_code(e),
                                 order_id=order_id, effects=effects)

    async def select_cash_on_delivery(self, order_id: str, reseller_id: str) -> OrderResponse:
        """Reseller pays on delivery instead of by transfer"""
        effects: List[SideEffect] = []
        try:
            async with self._lock_for(order_id):
                order = await self._require_order(order_id)
                self._check_owner(order, reseller_id)
                error = payment_transition_error(order.payment_status, PaymentStatus.COD)
                if error:
                    raise InvalidOrderStateError(error)

                await self.repository.update_order(order_id, {
                    "payment_method": "COD",
                    "payment_status": PaymentStatus.COD,
                })
                effects.append(await self.status_logger.log(
                    order_id, order.status.value, COD_SELECTED_MESSAGE, reseller_actor(reseller_id)
                ))

            logger.info(f"Order {order_id} switched to cash on delivery by reseller {reseller_id}")
            return OrderResponse(
                success=True,
                message="Cash on delivery selected",
                order_id=order_id,
                order_number=order.order_number,
                effects=effects,
            )

        except OrderServiceError as e:
            logger.warning(f"COD selection rejected for order {order_id}: {e}")
            return OrderResponse(success=False, message=str(e), error_code=_error_code(e),
                                 order_id=order_id, effects=effects)
        except Exception as e:
            logger.error(f"Failed to select COD for order {order_id}: {e}")
            return OrderResponse(success=False, message=str(e), error_code=_error_code(e),
                                 order_id=order_id, effects=effects)

    async def confirm_order_received(
        self,
        order_id: str,
        reseller_id: str,
        message: str = "",
    ) -> OrderResponse:
        """
        Reseller confirms delivery; only a shipped or delivered order can be
        completed this way, so a repeated confirmation is rejected.
        """
        effects: List[SideEffect] = []
        try:
            async with self._lock_for(order_id):
                order = await self._require_order(order_id)
                self._check_owner(order, reseller_id)
                if order.status not in (OrderStatus.SHIPPED, OrderStatus.DELIVERED):
                    raise InvalidOrderStateError(
                        f"Only shipped or delivered orders can be confirmed, order is {order.status.value}"
                    )

                log_message = message or RECEIVED_MESSAGE
                await self.repository.update_order(order_id, {
                    "status": OrderStatus.COMPLETED,
                    "reseller_confirmation": True,
                    "admin_message": log_message,
                    "actual_delivery": SERVER_TIMESTAMP,
                })
                effects.append(await self.status_logger.log(
                    order_id, OrderStatus.COMPLETED.value, log_message, reseller_actor(reseller_id)
                ))

            logger.info(f"Order {order_id} confirmed as received by reseller {reseller_id}")
            return OrderResponse(
                success=True,
                message="Order confirmed as received",
                order_id=order_id,
                order_number=order.order_number,
                effects=effects,
            )

        except OrderServiceError as e:
            logger.warning(f"Receipt confirmation rejected for order {order_id}: {e}")
            return OrderResponse(success=False, message=str(e), error_code=_error_code(e),
                                 order_id=order_id, effects=effects)
        except Exception as e:
            logger.error(f"Failed to confirm receipt of order {order_id}: {e}")
            return OrderResponse(success=False, message=str(e), error_code=_error_code(e),
                                 order_id=order_id, effects=effects)

    async def update_tracking_info(
        self,
        order_id: str,
        tracking_number: str,
        estimated_delivery=None,
    ) -> OrderResponse:
        """Attach a courier tracking number and mark the order shipped"""
        effects: List[SideEffect] = []
        try:
            if not tracking_number:
                raise OrderValidationError("Tracking number is required")

            async with self._lock_for(order_id):
                order = await self._require_order(order_id)
                self._check_order_transition(order, OrderStatus.SHIPPED, order.payment_status, False)

                fields: Dict[str, Any] = {"tracking_number": tracking_number, "status": OrderStatus.SHIPPED}
                if estimated_delivery:
                    fields["estimated_delivery"] = estimated_delivery
                await self.repository.update_order(order_id, fields)
                effects.append(await self.status_logger.log(
                    order_id,
                    OrderStatus.SHIPPED.value,
                    f"Order shipped with tracking number: {tracking_number}",
                    ACTOR_ADMIN,
                ))

            logger.info(f"Order {order_id} shipped with tracking {tracking_number}")
            return OrderResponse(
                success=True,
                message="Tracking information updated",
                order_id=order_id,
                order_number=order.order_number,
                effects=effects,
            )

        except OrderServiceError as e:
            logger.warning(f"Tracking update rejected for order {order_id}: {e}")
            return OrderResponse(success=False, message=str(e), error_code=_error_code(e),
                                 order_id=order_id, effects=effects)
        except Exception as e:
            logger.error(f"Failed to update tracking of order {order_id}: {e}")
            return OrderResponse(success=False, message=str(e), error_code=_error_code(e),
                                 order_id=order_id, effects=effects)

    async def delete_order(self, order_id: str) -> OrderResponse:
        """Admin delete; only pending or cancelled orders"""
        effects: List[SideEffect] = []
        try:
            async with self._lock_for(order_id):
                order = await self._require_order(order_id)
                if order.status not in DELETABLE_ORDER_STATUSES:
                    raise InvalidOrderStateError(
                        f"Only pending or cancelled orders can be deleted, order is {order.status.value}"
                    )

                if not await self.repository.delete_order(order_id):
                    raise OrderNotFoundError(f"Order not found: {order_id}")
                effects.append(await self.status_logger.log(
                    order_id, LOG_STATUS_DELETED, f"Order {order.order_number} deleted by admin", ACTOR_ADMIN
                ))

            logger.info(f"Order {order.order_number} ({order_id}) deleted")
            return OrderResponse(
                success=True,
                message="Order deleted",
                order_id=order_id,
                order_number=order.order_number,
                effects=effects,
            )

        except OrderServiceError as e:
            logger.warning(f"Deletion rejected for order {order_id}: {e}")
            return OrderResponse(success=False, message=str(e), error_code=_error_code(e),
                                 order_id=order_id, effects=effects)
        except Exception as e:
            logger.error(f"Failed to delete order {order_id}: {e}")
            return OrderResponse(success=False, message=str(e), error_code=_error_code(e),
                                 order_id=order_id, effects=effects)

    async def batch_update_orders(self, order_ids: List[str], update: OrderBatchUpdate) -> OrderBatchUpdateResponse:
        """
        Apply the same update to several orders in one store call

        Status changes are checked for every order first; one invalid move
        rejects the whole batch unless ``override`` is set. The write itself
        is one round trip followed by one audit entry per order.
        """
        order_ids = list(dict.fromkeys(order_ids))
        effects: List[SideEffect] = []
        try:
            if not order_ids:
                raise OrderValidationError("No orders selected")

            fields: Dict[str, Any] = update.model_dump(exclude={"override"}, exclude_none=True)
            if not fields:
                raise OrderValidationError("Batch update has no fields to apply")

            if update.status is not None or update.payment_status is not None:
                errors = []
                for order_id in order_ids:
                    order = await self._require_order(order_id)
                    errors.extend(self._batch_transition_errors(order, update))
                if errors:
                    if not update.override:
                        raise InvalidOrderStateError("; ".join(errors))
                    logger.warning(f"Admin override on batch update: {'; '.join(errors)}")

            await self.repository.batch_update_orders(order_ids, fields)

            log_status = update.status.value if update.status is not None else LOG_STATUS_BATCH_UPDATED
            for order_id in order_ids:
                effects.append(await self.status_logger.log(order_id, log_status, BATCH_MESSAGE, ACTOR_ADMIN))

            logger.info(f"Batch update applied to {len(order_ids)} orders: {fields}")
            return OrderBatchUpdateResponse(
                success=True,
                message=f"Updated {len(order_ids)} orders",
                updated_ids=order_ids,
                effects=effects,
            )

        except OrderServiceError as e:
            logger.warning(f"Batch update rejected: {e}")
            return OrderBatchUpdateResponse(success=False, message=str(e), error_code=_error_code(e))
        except Exception as e:
            logger.error(f"Failed to batch update orders: {e}")
            return OrderBatchUpdateResponse(success=False, message=str(e), error_code=_error_code(e))

    # Order Query Operations

    async def get_order(self, order_id: str) -> OrderResponse:
        """Get order with its derived fulfillment stage"""
        try:
            order = await self._require_order(order_id)
            return OrderResponse(
                success=True,
                message="Order found",
                order=order,
                order_id=order.id,
                order_number=order.order_number,
                fulfillment_stage=derive_fulfillment_stage(order.status, order.payment_status),
            )
        except OrderServiceError as e:
            return OrderResponse(success=False, message=str(e), error_code=_error_code(e), order_id=order_id)
        except Exception as e:
            logger.error(f"Failed to get order {order_id}: {e}")
            return OrderResponse(success=False, message=str(e), error_code=_error_code(e), order_id=order_id)

    async def list_orders(
        self,
        reseller_id: Optional[str] = None,
        status: Optional[OrderStatus] = None,
        payment_status: Optional[PaymentStatus] = None,
    ) -> OrderListResponse:
        """List orders newest first with optional equality filters"""
        try:
            orders = await self.repository.list_orders(
                reseller_id=reseller_id, status=status, payment_status=payment_status
            )
            return OrderListResponse(
                success=True,
                message=f"Found {len(orders)} orders",
                orders=orders,
                count=len(orders),
            )
        except Exception as e:
            logger.error(f"Failed to list orders: {e}")
            return OrderListResponse(success=False, message=str(e), error_code=_error_code(e))

    async def get_orders_by_reseller(self, reseller_id: str) -> OrderListResponse:
        return await self.list_orders(reseller_id=reseller_id)

    async def get_orders_by_status(self, status: OrderStatus) -> OrderListResponse:
        return await self.list_orders(status=status)

    async def get_orders_by_payment_status(self, payment_status: PaymentStatus) -> OrderListResponse:
        return await self.list_orders(payment_status=payment_status)

    async def search_orders(self, term: str, reseller_id: Optional[str] = None) -> OrderListResponse:
        """Case-insensitive substring match on order number, reseller name or email"""
        try:
            orders = await self.repository.list_orders(reseller_id=reseller_id)
            needle = (term or "").strip().lower()
            if needle:
                orders = [
                    order for order in orders
                    if any(
                        needle in (value or "").lower()
                        for value in (order.order_number, order.reseller_name, order.reseller_email)
                    )
                ]
            return OrderListResponse(
                success=True,
                message=f"Found {len(orders)} orders",
                orders=orders,
                count=len(orders),
            )
        except Exception as e:
            logger.error(f"Failed to search orders for '{term}': {e}")
            return OrderListResponse(success=False, message=str(e), error_code=_error_code(e))

    async def get_order_status_logs(self, order_id: str) -> OrderStatusLogListResponse:
        try:
            logs = await self.status_logger.repository.list_for_order(order_id)
            return OrderStatusLogListResponse(
                success=True,
                message=f"Found {len(logs)} log entries",
                logs=logs,
                count=len(logs),
            )
        except Exception as e:
            logger.error(f"Failed to get status logs of order {order_id}: {e}")
            return OrderStatusLogListResponse(success=False, message=str(e), error_code=_error_code(e))

    async def get_order_statistics(self, reseller_id: Optional[str] = None) -> OrderStatisticsResponse:
        """Counts per status, payment status and stage; revenue over paid orders only"""
        try:
            orders = await self.repository.list_orders(reseller_id=reseller_id)
            stats = compute_order_statistics(orders)
            return OrderStatisticsResponse(success=True, message="Order statistics", statistics=stats)
        except Exception as e:
            logger.error(f"Failed to compute order statistics: {e}")
            return OrderStatisticsResponse(success=False, message=str(e), error_code=_error_code(e))

    async def health_check(self) -> bool:
        return await self.repository.check_connection()

    # Side effects

    async def _create_shipment(
        self,
        order: Order,
        data: OrderStatusUpdateData,
    ) -> Tuple[SideEffect, Optional[str]]:
        """Returns the effect and, on success, the shipment's tracking number"""
        if self.shipment_service is None:
            logger.warning(f"No shipment service configured, order {order.id} ships without shipment")
            return SideEffect(name="shipment_created", success=False, reference=order.id,
                              detail="Shipment service not configured"), None

        order_data = ShipmentOrderData(
            id=order.id,
            order_number=order.order_number,
            reseller_id=order.reseller_id,
            reseller_name=order.reseller_name,
            reseller_email=order.reseller_email,
            shipping_address=order.shipping_address.model_dump(mode="json") if order.shipping_address else None,
            items=[item.model_dump(mode="json") for item in order.products],
            courier=data.courier,
            shipping_cost=data.shipping_cost,
            estimated_delivery=data.estimated_delivery,
            total_weight=data.total_weight,
            notes=data.notes,
        )
        shipping_data = ShippingDetails(
            courier=data.courier or DEFAULT_COURIER,
            service=data.service or DEFAULT_SERVICE,
            cost=data.shipping_cost if data.shipping_cost is not None else Decimal("0"),
            estimated_days=data.estimated_days or DEFAULT_ESTIMATED_DAYS,
            estimated_delivery=data.estimated_delivery,
            total_weight=data.total_weight or DEFAULT_WEIGHT,
            tracking_number=data.tracking_number,
            notes=data.notes,
        )

        try:
            response = await self.shipment_service.create_from_order(order_data, shipping_data)
        except Exception as e:
            logger.error(f"Shipment creation raised for order {order.id}: {e}")
            return SideEffect(name="shipment_created", success=False, reference=order.id, detail=str(e)), None

        if not response.success:
            logger.error(f"Shipment creation failed for order {order.id}: {response.message}")
            return SideEffect(name="shipment_created", success=False, reference=order.id,
                              detail=response.message), None

        return SideEffect(
            name="shipment_created",
            success=True,
            reference=response.shipment_id,
            detail=response.shipment_number,
        ), response.tracking_number

    async def _record_payment(
        self,
        order: Order,
        status: TransactionStatus,
        method: str,
        reference: str,
        description: str,
    ) -> SideEffect:
        if self.payment_service is None:
            logger.warning(f"No payment service configured, no transaction recorded for order {order.id}")
            return SideEffect(name="payment_transaction", success=False, reference=order.id,
                              detail="Payment service not configured")

        request = PaymentTransactionCreateRequest(
            order_id=order.id,
            order_number=order.order_number,
            reseller_id=order.reseller_id,
            customer=order.reseller_name,
            customer_email=order.reseller_email,
            amount=order.total_amount,
            method=method,
            reference=reference,
            status=status,
            type=TransactionType.PAYMENT,
            description=description,
        )
        try:
            response = await self.payment_service.create_transaction(request)
        except Exception as e:
            logger.error(f"Payment transaction raised for order {order.id}: {e}")
            return SideEffect(name="payment_transaction", success=False, reference=order.id, detail=str(e))

        if not response.success:
            logger.error(f"Payment transaction failed for order {order.id}: {response.message}")
            return SideEffect(name="payment_transaction", success=False, reference=order.id,
                              detail=response.message)
        return SideEffect(
            name="payment_transaction",
            success=True,
            reference=response.payment_id,
            detail=response.transaction_number,
        )

    # Helpers

    def _lock_for(self, order_id: str) -> asyncio.Lock:
        lock = self._order_locks.get(order_id)
        if lock is None:
            lock = asyncio.Lock()
            self._order_locks[order_id] = lock
        return lock

    async def _require_order(self, order_id: str) -> Order:
        order = await self.repository.get_order(order_id)
        if order is None:
            raise OrderNotFoundError(f"Order not found: {order_id}")
        return order

    @staticmethod
    def _check_owner(order: Order, reseller_id: str) -> None:
        if order.reseller_id != reseller_id:
            raise UnauthorizedOrderAccessError(
                f"Reseller {reseller_id} is not allowed to modify order {order.order_number}"
            )

    @staticmethod
    def _check_order_transition(
        order: Order,
        new_status: OrderStatus,
        payment_status: PaymentStatus,
        override: bool,
    ) -> None:
        error = order_transition_error(order.status, new_status, payment_status)
        if error is None:
            return
        if not override:
            raise InvalidOrderStateError(error)
        logger.warning(f"Admin override on order {order.id}: {error}")

    @staticmethod
    def _batch_transition_errors(order: Order, update: OrderBatchUpdate) -> List[str]:
        errors = []
        payment_status = update.payment_status or order.payment_status
        if update.payment_status is not None and update.payment_status != order.payment_status:
            error = payment_transition_error(order.payment_status, update.payment_status)
            if error:
                errors.append(f"{order.order_number}: {error}")
        if update.status is not None:
            error = order_transition_error(order.status, update.status, payment_status)
            if error:
                errors.append(f"{order.order_number}: {error}")
        return errors

    @staticmethod
    def _validate_order_create_request(reseller_id: str, request: OrderCreateRequest) -> None:
        if not reseller_id or not reseller_id.strip():
            raise OrderValidationError("Reseller ID is required")
        if not request.products:
            raise OrderValidationError("Order must contain at least one product")
        for item in request.products:
            if item.quantity <= 0:
                raise OrderValidationError(f"Quantity of {item.name} must be positive")
            if item.price < 0 or item.commission < 0:
                raise OrderValidationError(f"Price and commission of {item.name} cannot be negative")
        for name in ("total_amount", "total_commission"):
            value = getattr(request, name)
            if value is not None and value < 0:
                raise OrderValidationError(f"{name} cannot be negative")


def compute_order_statistics(orders: List[Order]) -> OrderStatistics:
    stats = OrderStatistics(total=len(orders))
    stages: Counter = Counter()

    for order in orders:
        setattr(stats, order.status.value, getattr(stats, order.status.value) + 1)
        counter = _PAYMENT_COUNTERS[order.payment_status]
        setattr(stats, counter, getattr(stats, counter) + 1)
        stages[derive_fulfillment_stage(order.status, order.payment_status).value] += 1

        if order.payment_status == PaymentStatus.PAID:
            stats.total_revenue += order.total_amount
            stats.total_commission += order.total_commission

    stats.by_stage = dict(stages)
    return stats
