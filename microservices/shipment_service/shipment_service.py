"""
Shipment Service Business Logic

Creates courier shipments (from an order snapshot or the admin form),
tracks their status and computes shipment statistics.

At most one live shipment exists per order: a create request for an order
that already has a non-cancelled shipment returns that shipment instead.
"""

import asyncio
import logging
import weakref
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from core.config import get_settings
from core.document_store import SERVER_TIMESTAMP
from core.identifiers import (
    fallback_shipment_number,
    format_shipment_number,
    generate_tracking_number,
    shipment_number_prefix,
)
from core.service_result import ErrorCode, error_code_for

from .models import (
    DEFAULT_COURIER,
    DEFAULT_ESTIMATED_DAYS,
    DEFAULT_SERVICE,
    Shipment,
    ShipmentCreateRequest,
    ShipmentListResponse,
    ShipmentOrderData,
    ShipmentResponse,
    ShipmentStatistics,
    ShipmentStatisticsResponse,
    ShipmentStatus,
    ShipmentView,
    ShippingDetails,
)
from .protocols import (
    MissingRequiredFieldError,
    ShipmentNotFoundError,
    ShipmentRepositoryProtocol,
    ShipmentValidationError,
)

logger = logging.getLogger(__name__)

DEFAULT_WEIGHT = Decimal("1")


def _error_code(e: Exception) -> ErrorCode:
    if isinstance(e, ShipmentNotFoundError):
        return ErrorCode.NOT_FOUND
    if isinstance(e, MissingRequiredFieldError):
        return ErrorCode.MISSING_REQUIRED_FIELD
    if isinstance(e, ShipmentValidationError):
        return ErrorCode.VALIDATION_FAILED
    return error_code_for(e)


class ShipmentService:
    """
    Shipment business logic

    Args:
        repository: shipment repository
        display_timezone: timezone for the daily shipment sequence and list dates
    """

    def __init__(self, repository: ShipmentRepositoryProtocol, display_timezone: Optional[str] = None):
        self.repository = repository
        self.display_timezone = display_timezone or get_settings().display_timezone
        self._order_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()
        logger.info("ShipmentService initialized")

    # =========================================================================
    # Creation
    # =========================================================================

    async def create_from_order(
        self,
        order_data: ShipmentOrderData,
        shipping_data: Optional[ShippingDetails] = None,
    ) -> ShipmentResponse:
        """
        Create the shipment for an order being marked as shipped.

        Explicit ``shipping_data`` fields take precedence over the order
        snapshot; anything still missing falls back to JNE / REG / cost 0 /
        "2-3 hari" / 1 kg.
        """
        shipping_data = shipping_data or ShippingDetails()
        try:
            if not order_data.id:
                raise MissingRequiredFieldError("Order ID is required")

            fields = {
                "order_id": order_data.id,
                "order_number": order_data.order_number,
                "reseller_id": order_data.reseller_id,
                "reseller_name": order_data.reseller_name,
                "reseller_email": order_data.reseller_email,
                "shipping_address": order_data.shipping_address,
                "items": order_data.items,
                "courier": shipping_data.courier or order_data.courier or DEFAULT_COURIER,
                "service": shipping_data.service or DEFAULT_SERVICE,
                "cost": _first_set(shipping_data.cost, order_data.shipping_cost, Decimal("0")),
                "estimated_days": shipping_data.estimated_days or DEFAULT_ESTIMATED_DAYS,
                "estimated_delivery": shipping_data.estimated_delivery or order_data.estimated_delivery,
                "total_weight": shipping_data.total_weight or order_data.total_weight or DEFAULT_WEIGHT,
                "notes": shipping_data.notes or order_data.notes or "",
                "tracking_number": shipping_data.tracking_number,
            }
            return await self._create(fields)
        except Exception as e:
            logger.error(f"Error creating shipment for order {order_data.id}: {e}")
            return ShipmentResponse(success=False, message=str(e), error_code=_error_code(e))

    async def create_shipment(self, request: ShipmentCreateRequest) -> ShipmentResponse:
        """Admin form path; order, courier, service and cost are mandatory"""
        try:
            missing = [
                name for name in ("order_id", "courier", "service")
                if not getattr(request, name)
            ]
            if request.cost is None:
                missing.append("cost")
            if missing:
                raise MissingRequiredFieldError(f"Missing required fields: {', '.join(missing)}")

            fields = request.model_dump()
            fields["estimated_days"] = request.estimated_days or DEFAULT_ESTIMATED_DAYS
            fields["total_weight"] = request.total_weight or DEFAULT_WEIGHT
            return await self._create(fields)
        except Exception as e:
            logger.error(f"Error creating shipment for order {request.order_id}: {e}")
            return ShipmentResponse(success=False, message=str(e), error_code=_error_code(e))

    async def _create(self, fields: Dict[str, Any]) -> ShipmentResponse:
        if fields["cost"] is not None and fields["cost"] < 0:
            raise ShipmentValidationError(f"Shipping cost cannot be negative: {fields['cost']}")

        order_id = fields["order_id"]
        lock = self._order_locks.get(order_id)
        if lock is None:
            lock = asyncio.Lock()
            self._order_locks[order_id] = lock

        async with lock:
            existing = await self._live_shipment_for_order(order_id)
            if existing is not None:
                logger.info(
                    f"Order {order_id} already has shipment {existing.shipment_number}, returning it"
                )
                return ShipmentResponse(
                    success=True,
                    message="Shipment already exists for this order",
                    shipment=self._to_view(existing),
                    shipment_id=existing.id,
                    shipment_number=existing.shipment_number,
                    tracking_number=existing.tracking_number,
                    existing=True,
                )

            fields["tracking_number"] = fields.get("tracking_number") or generate_tracking_number()
            fields["shipment_number"] = await self._next_shipment_number()
            fields["status"] = ShipmentStatus.PREPARING
            fields["admin_notes"] = ""

            shipment_id = await self.repository.create_shipment(fields)

        logger.info(
            f"Shipment {fields['shipment_number']} created for order {order_id} "
            f"(tracking {fields['tracking_number']})"
        )
        return ShipmentResponse(
            success=True,
            message="Shipment created",
            shipment_id=shipment_id,
            shipment_number=fields["shipment_number"],
            tracking_number=fields["tracking_number"],
        )

    async def _live_shipment_for_order(self, order_id: str) -> Optional[Shipment]:
        for shipment in await self.repository.list_shipments(order_id=order_id):
            if shipment.status != ShipmentStatus.CANCELLED:
                return shipment
        return None

    async def _next_shipment_number(self) -> str:
        """
        SHP + local date + next daily sequence; time-based fallback if the lookup fails

        The sequence is read-then-insert with no lock across orders, so
        unique numbers hold for a single process only. Two processes
        writing the same Postgres store can issue the same number.
        """
        today = datetime.now(ZoneInfo(self.display_timezone))
        prefix = shipment_number_prefix(today)
        try:
            latest = await self.repository.get_latest_shipment_number(prefix)
            sequence = int(latest[-4:]) + 1 if latest else 1
            return format_shipment_number(today, sequence)
        except Exception as e:
            logger.warning(f"Could not read shipment sequence for {prefix}, using fallback: {e}")
            return fallback_shipment_number()

    # =========================================================================
    # Status / deletion
    # =========================================================================

    async def update_status(
        self,
        shipment_id: str,
        status: ShipmentStatus,
        notes: str = "",
    ) -> ShipmentResponse:
        """Set status and admin notes; delivery stamps actual_delivery"""
        try:
            await self._require(shipment_id)
            fields: Dict[str, Any] = {"status": status, "admin_notes": notes}
            if status == ShipmentStatus.DELIVERED:
                fields["actual_delivery"] = SERVER_TIMESTAMP
            await self.repository.update_shipment(shipment_id, fields)
            logger.info(f"Shipment {shipment_id} status set to {status.value}")
            return ShipmentResponse(success=True, message="Shipment status updated", shipment_id=shipment_id)
        except Exception as e:
            logger.error(f"Error updating shipment {shipment_id}: {e}")
            return ShipmentResponse(
                success=False, message=str(e), error_code=_error_code(e), shipment_id=shipment_id
            )

    async def delete_shipment(self, shipment_id: str) -> ShipmentResponse:
        """Delete regardless of status"""
        try:
            if not await self.repository.delete_shipment(shipment_id):
                raise ShipmentNotFoundError(f"Shipment not found: {shipment_id}")
            logger.info(f"Shipment {shipment_id} deleted")
            return ShipmentResponse(success=True, message="Shipment deleted", shipment_id=shipment_id)
        except Exception as e:
            logger.error(f"Error deleting shipment {shipment_id}: {e}")
            return ShipmentResponse(
                success=False, message=str(e), error_code=_error_code(e), shipment_id=shipment_id
            )

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_shipment(self, shipment_id: str) -> ShipmentResponse:
        try:
            shipment = await self._require(shipment_id)
            return self._single_response(shipment)
        except Exception as e:
            logger.error(f"Error getting shipment {shipment_id}: {e}")
            return ShipmentResponse(success=False, message=str(e), error_code=_error_code(e))

    async def get_shipment_by_tracking(self, tracking_number: str) -> ShipmentResponse:
        try:
            shipments = await self.repository.list_shipments(tracking_number=tracking_number)
            if not shipments:
                raise ShipmentNotFoundError(f"No shipment with tracking number {tracking_number}")
            return self._single_response(shipments[0])
        except Exception as e:
            logger.error(f"Error getting shipment by tracking {tracking_number}: {e}")
            return ShipmentResponse(success=False, message=str(e), error_code=_error_code(e))

    async def get_shipment_by_order(self, order_id: str) -> ShipmentResponse:
        """Newest shipment of the order"""
        try:
            shipments = await self.repository.list_shipments(order_id=order_id)
            if not shipments:
                raise ShipmentNotFoundError(f"No shipment for order {order_id}")
            return self._single_response(shipments[0])
        except Exception as e:
            logger.error(f"Error getting shipment for order {order_id}: {e}")
            return ShipmentResponse(success=False, message=str(e), error_code=_error_code(e))

    async def get_all_shipments(self, status_filter: Optional[str] = None) -> ShipmentListResponse:
        try:
            status = None
            if status_filter and status_filter != "all":
                try:
                    status = ShipmentStatus(status_filter)
                except ValueError:
                    raise ShipmentValidationError(f"Unknown shipment status filter: {status_filter}")
            return self._list_response(await self.repository.list_shipments(status=status))
        except Exception as e:
            logger.error(f"Error listing shipments: {e}")
            return ShipmentListResponse(success=False, message=str(e), error_code=_error_code(e))

    async def get_shipments_by_reseller(self, reseller_id: str) -> ShipmentListResponse:
        try:
            return self._list_response(await self.repository.list_shipments(reseller_id=reseller_id))
        except Exception as e:
            logger.error(f"Error listing shipments for reseller {reseller_id}: {e}")
            return ShipmentListResponse(success=False, message=str(e), error_code=_error_code(e))

    async def get_stats(self) -> ShipmentStatisticsResponse:
        try:
            shipments = await self.repository.list_shipments()
            stats = ShipmentStatistics(total=len(shipments))
            for shipment in shipments:
                setattr(stats, shipment.status.value, getattr(stats, shipment.status.value) + 1)
                stats.total_cost += shipment.cost
            return ShipmentStatisticsResponse(success=True, message="Shipment statistics", statistics=stats)
        except Exception as e:
            logger.error(f"Error computing shipment statistics: {e}")
            return ShipmentStatisticsResponse(success=False, message=str(e), error_code=_error_code(e))

    async def check_health(self) -> bool:
        return await self.repository.check_connection()

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _require(self, shipment_id: str) -> Shipment:
        shipment = await self.repository.get_shipment(shipment_id)
        if shipment is None:
            raise ShipmentNotFoundError(f"Shipment not found: {shipment_id}")
        return shipment

    def _to_view(self, shipment: Shipment) -> ShipmentView:
        created_date = "N/A"
        if shipment.created_at is not None:
            created = shipment.created_at
            if created.tzinfo is None:
                created = created.replace(tzinfo=timezone.utc)
            created_date = f"{created.astimezone(ZoneInfo(self.display_timezone)):%d/%m/%Y}"
        return ShipmentView(**shipment.model_dump(), created_date=created_date)

    def _single_response(self, shipment: Shipment) -> ShipmentResponse:
        return ShipmentResponse(
            success=True,
            message="Shipment found",
            shipment=self._to_view(shipment),
            shipment_id=shipment.id,
            shipment_number=shipment.shipment_number,
            tracking_number=shipment.tracking_number,
        )

    def _list_response(self, shipments: List[Shipment]) -> ShipmentListResponse:
        views = [self._to_view(s) for s in shipments]
        return ShipmentListResponse(
            success=True,
            message=f"Found {len(views)} shipments",
            shipments=views,
            count=len(views),
        )


def _first_set(*values):
    for value in values:
        if value is not None:
            return value
    return None
