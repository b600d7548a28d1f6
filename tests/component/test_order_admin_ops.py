"""
Order Service Component Tests - admin bulk operations, statistics and
degraded collaborators

Usage:
    pytest tests/component/test_order_admin_ops.py -v
"""
import asyncio

import pytest
from decimal import Decimal

from core.document_store import TimeoutDocumentStore
from core.service_result import ErrorCode
from microservices.order_service.factory import create_order_service
from microservices.order_service.models import (
    OrderBatchUpdate,
    OrderStatus,
    OrderStatusUpdateData,
    PaymentStatus,
)
from microservices.order_service.order_repository import OrderRepository
from microservices.order_service.order_service import BATCH_MESSAGE, OrderService
from microservices.order_service.status_logger import StatusLogger
from tests.component.mocks import (
    FailingLogRepository,
    FailingShipmentService,
    SlowDocumentStore,
    UnavailableDocumentStore,
)
from tests.fixtures import (
    advance_to_confirmed,
    advance_to_shipped,
    make_order_request,
    make_reseller_id,
    place_order,
)

pytestmark = [pytest.mark.component, pytest.mark.asyncio]


# =============================================================================
# batch_update_orders
# =============================================================================

class TestBatchUpdateOrders:

    async def test_batch_cancel_updates_every_order(self, order_service, reseller_id):
        ids = [await place_order(order_service, reseller_id) for _ in range(3)]

        response = await order_service.batch_update_orders(
            ids, OrderBatchUpdate(status=OrderStatus.CANCELLED, admin_message="Promo ended")
        )

        assert response.success is True
        assert response.updated_ids == ids
        for order_id in ids:
            order = (await order_service.get_order(order_id)).order
            assert order.status == OrderStatus.CANCELLED
            assert order.admin_message == "Promo ended"
            logs = (await order_service.get_order_status_logs(order_id)).logs
            assert logs[0].status == "cancelled"
            assert logs[0].message == BATCH_MESSAGE

    async def test_one_invalid_move_rejects_the_batch(self, order_service, reseller_id):
        pending = await place_order(order_service, reseller_id)
        completed = await place_order(order_service, reseller_id)
        await advance_to_shipped(order_service, completed, create_shipment=False)
        await order_service.confirm_order_received(completed, reseller_id)

        response = await order_service.batch_update_orders(
            [pending, completed], OrderBatchUpdate(status=OrderStatus.CANCELLED)
        )

        assert response.success is False
        assert response.error_code == ErrorCode.INVALID_STATE
        assert (await order_service.get_order(pending)).order.status == OrderStatus.PENDING
        assert (await order_service.get_order(completed)).order.status == OrderStatus.COMPLETED

    async def test_override_applies_invalid_batch(self, order_service, reseller_id):
        pending = await place_order(order_service, reseller_id)

        response = await order_service.batch_update_orders(
            [pending], OrderBatchUpdate(status=OrderStatus.COMPLETED, override=True)
        )

        assert response.success is True
        assert (await order_service.get_order(pending)).order.status == OrderStatus.COMPLETED

    async def test_missing_order_fails_the_batch(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)

        response = await order_service.batch_update_orders(
            [order_id, "missing"], OrderBatchUpdate(status=OrderStatus.CANCELLED)
        )

        assert response.error_code == ErrorCode.NOT_FOUND
        assert (await order_service.get_order(order_id)).order.status == OrderStatus.PENDING

    async def test_message_only_batch_logs_pseudo_status(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)

        response = await order_service.batch_update_orders(
            [order_id, order_id], OrderBatchUpdate(admin_message="Stok sedang dicek")
        )

        assert response.updated_ids == [order_id]
        logs = (await order_service.get_order_status_logs(order_id)).logs
        assert logs[0].status == "batch_updated"
        assert len(logs) == 2

    async def test_empty_batch_is_rejected(self, order_service):
        response = await order_service.batch_update_orders([], OrderBatchUpdate(admin_message="x"))

        assert response.error_code == ErrorCode.VALIDATION_FAILED

    async def test_batch_without_fields_is_rejected(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)

        response = await order_service.batch_update_orders([order_id], OrderBatchUpdate())

        assert response.error_code == ErrorCode.VALIDATION_FAILED


# =============================================================================
# get_order_statistics
# =============================================================================

class TestOrderStatistics:

    async def test_revenue_counts_paid_orders_only(self, order_service, reseller_id):
        for _ in range(3):
            order_id = await place_order(order_service, reseller_id, price=Decimal("100"))
            await order_service.update_payment_status(order_id, PaymentStatus.PAID)
        await place_order(order_service, reseller_id, price=Decimal("500"))

        stats = (await order_service.get_order_statistics()).statistics

        assert stats.total == 4
        assert stats.total_revenue == Decimal("300")
        assert stats.paid == 3
        assert stats.pending == 4
        assert stats.waiting_payment == 1
        assert stats.by_stage == {"ready_to_confirm": 3, "awaiting_payment": 1}

    async def test_statistics_per_reseller(self, order_service, reseller_id):
        await place_order(order_service, reseller_id)
        await place_order(order_service, make_reseller_id())

        stats = (await order_service.get_order_statistics(reseller_id)).statistics

        assert stats.total == 1

    async def test_statistics_of_empty_store(self, order_service):
        stats = (await order_service.get_order_statistics()).statistics

        assert stats.total == 0
        assert stats.total_revenue == Decimal("0")
        assert stats.by_stage == {}


# =============================================================================
# Degraded collaborators
# =============================================================================

class TestDegradedCollaborators:

    async def test_failed_shipment_does_not_block_status_update(self, store, reseller_id):
        service = create_order_service(store=store)
        service.shipment_service = FailingShipmentService()
        order_id = await place_order(service, reseller_id)
        await advance_to_confirmed(service, order_id)

        response = await service.update_order_status(
            order_id, OrderStatus.SHIPPED,
            additional_data=OrderStatusUpdateData(create_shipment=True),
        )

        assert response.success is True
        assert [e.name for e in response.failed_effects] == ["shipment_created"]
        order = (await service.get_order(order_id)).order
        assert order.status == OrderStatus.SHIPPED
        assert order.tracking_number == ""

    async def test_raising_shipment_service_is_absorbed(self, store, reseller_id):
        service = create_order_service(store=store)
        service.shipment_service = FailingShipmentService(raise_error=True)
        order_id = await place_order(service, reseller_id)
        await advance_to_confirmed(service, order_id)

        response = await service.update_order_status(
            order_id, OrderStatus.SHIPPED,
            additional_data=OrderStatusUpdateData(create_shipment=True),
        )

        assert response.success is True
        assert response.failed_effects[0].detail == "courier API down"
        assert service.shipment_service.calls[0].id == order_id

    async def test_failed_audit_log_is_reported_not_raised(self, store, reseller_id):
        service = OrderService(
            repository=OrderRepository(store),
            status_logger=StatusLogger(FailingLogRepository()),
        )

        response = await service.create_order(reseller_id, make_order_request())

        assert response.success is True
        assert response.failed_effects[0].name == "status_log"
        assert (await service.get_order(response.order_id)).success is True

    async def test_missing_collaborators_are_reported(self, store, reseller_id):
        service = OrderService(
            repository=OrderRepository(store),
            status_logger=StatusLogger(FailingLogRepository()),
        )
        order_id = (await service.create_order(reseller_id, make_order_request())).order_id

        response = await service.update_payment_proof(order_id, "BCA Transfer", "proof.jpg")

        assert response.success is True
        effect = next(e for e in response.effects if e.name == "payment_transaction")
        assert effect.detail == "Payment service not configured"

    async def test_slow_store_reports_timeout(self, reseller_id):
        inner = SlowDocumentStore(delay=1.0, slow_operations=["get"])
        service = create_order_service(store=TimeoutDocumentStore(inner, timeout_seconds=0.05))
        order_id = await place_order(service, reseller_id)

        response = await service.update_order_status(order_id, OrderStatus.CANCELLED)

        assert response.success is False
        assert response.error_code == ErrorCode.TIMEOUT

    async def test_unavailable_store_reports_error_code(self, order_request, reseller_id):
        service = create_order_service(store=UnavailableDocumentStore("orders"))

        response = await service.create_order(reseller_id, order_request)

        assert response.success is False
        assert response.error_code == ErrorCode.STORE_UNAVAILABLE

    async def test_health_check_on_timed_out_store(self):
        inner = SlowDocumentStore(delay=1.0, slow_operations=["query"])
        service = create_order_service(store=TimeoutDocumentStore(inner, timeout_seconds=0.05))

        assert await service.health_check() is False

    async def test_concurrent_ship_requests_create_one_shipment(
        self, order_service, shipment_service, reseller_id
    ):
        order_id = await place_order(order_service, reseller_id)
        await advance_to_confirmed(order_service, order_id)
        data = OrderStatusUpdateData(create_shipment=True)

        results = await asyncio.gather(
            order_service.update_order_status(order_id, OrderStatus.SHIPPED, additional_data=data),
            order_service.update_order_status(order_id, OrderStatus.SHIPPED, additional_data=data),
        )

        assert all(r.success for r in results)
        assert (await shipment_service.get_all_shipments()).count == 1
