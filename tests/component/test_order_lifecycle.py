"""
Order Service Component Tests - lifecycle

OrderService with real repositories on the in-memory store, payment and
shipment services wired in-process.

Usage:
    pytest tests/component/test_order_lifecycle.py -v
"""
import pytest
from decimal import Decimal

from core.service_result import ErrorCode
from microservices.order_service.models import (
    FulfillmentStage,
    OrderStatus,
    OrderStatusUpdateData,
    PaymentDetails,
    PaymentStatus,
)
from microservices.order_service.order_service import (
    COD_SELECTED_MESSAGE,
    PROOF_SUBMITTED_MESSAGE,
    RECEIVED_MESSAGE,
)
from tests.fixtures import (
    advance_to_confirmed,
    advance_to_shipped,
    make_line_item,
    make_order_request,
    make_reseller_id,
    place_order,
)

pytestmark = [pytest.mark.component, pytest.mark.asyncio]


async def _order(service, order_id):
    response = await service.get_order(order_id)
    assert response.success, response.message
    return response.order


async def _logs(service, order_id):
    response = await service.get_order_status_logs(order_id)
    assert response.success, response.message
    return response.logs


# =============================================================================
# create_order
# =============================================================================

class TestCreateOrder:

    async def test_create_order_stores_pending_order(self, order_service, reseller_id):
        request = make_order_request(products=[
            make_line_item(price=Decimal("50000"), quantity=2, commission=Decimal("10000")),
            make_line_item(price=Decimal("25000"), quantity=1, commission=Decimal("5000")),
        ])

        response = await order_service.create_order(reseller_id, request)

        assert response.success is True
        assert response.message == "Order created successfully"
        assert response.order_number.startswith("ORD")
        order = await _order(order_service, response.order_id)
        assert order.reseller_id == reseller_id
        assert order.status == OrderStatus.PENDING
        assert order.payment_status == PaymentStatus.WAITING_PAYMENT
        assert order.total_amount == Decimal("125000")
        assert order.total_commission == Decimal("25000")
        assert order.products[0].subtotal == Decimal("100000")
        assert order.tracking_number == ""
        assert order.reseller_confirmation is False
        assert order.created_at is not None

    async def test_create_order_keeps_explicit_total(self, order_service, reseller_id):
        request = make_order_request(total_amount=Decimal("95000"))

        response = await order_service.create_order(reseller_id, request)

        order = await _order(order_service, response.order_id)
        assert order.total_amount == Decimal("95000")

    async def test_create_order_writes_creation_log(self, order_service, reseller_id, order_request):
        response = await order_service.create_order(reseller_id, order_request)

        logs = await _logs(order_service, response.order_id)
        assert len(logs) == 1
        assert logs[0].status == "pending"
        assert logs[0].message == "Order created"
        assert logs[0].action_by == f"reseller_{reseller_id}"
        assert response.effects[0].name == "status_log"
        assert response.effects[0].success is True

    async def test_create_order_without_products_fails(self, order_service, reseller_id):
        response = await order_service.create_order(reseller_id, make_order_request(products=[]))

        assert response.success is False
        assert response.error_code == ErrorCode.VALIDATION_FAILED

    async def test_create_order_without_reseller_fails(self, order_service, order_request):
        response = await order_service.create_order("  ", order_request)

        assert response.success is False
        assert response.error_code == ErrorCode.VALIDATION_FAILED

    async def test_create_order_with_negative_total_fails(self, order_service, reseller_id):
        response = await order_service.create_order(
            reseller_id, make_order_request(total_amount=Decimal("-1"))
        )

        assert response.success is False
        assert response.error_code == ErrorCode.VALIDATION_FAILED


# =============================================================================
# update_order_status
# =============================================================================

class TestUpdateOrderStatus:

    async def test_skipping_steps_is_rejected(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)

        response = await order_service.update_order_status(order_id, OrderStatus.COMPLETED)

        assert response.success is False
        assert response.error_code == ErrorCode.INVALID_STATE
        order = await _order(order_service, order_id)
        assert order.status == OrderStatus.PENDING
        assert len(await _logs(order_service, order_id)) == 1

    async def test_confirm_requires_settled_payment(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)

        response = await order_service.update_order_status(order_id, OrderStatus.CONFIRMED)

        assert response.success is False
        assert response.error_code == ErrorCode.INVALID_STATE

    async def test_override_bypasses_transition_rules(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)

        response = await order_service.update_order_status(
            order_id, OrderStatus.CONFIRMED, "Paid in cash at the office",
            OrderStatusUpdateData(override=True),
        )

        assert response.success is True
        order = await _order(order_service, order_id)
        assert order.status == OrderStatus.CONFIRMED
        assert order.admin_message == "Paid in cash at the office"

    async def test_cancel_pending_order_logs_by_admin(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)

        response = await order_service.update_order_status(order_id, OrderStatus.CANCELLED, "Out of stock")

        assert response.success is True
        logs = await _logs(order_service, order_id)
        assert logs[0].status == "cancelled"
        assert logs[0].message == "Out of stock"
        assert logs[0].action_by == "admin"

    async def test_default_log_message_names_new_status(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)

        await order_service.update_order_status(order_id, OrderStatus.CANCELLED)

        logs = await _logs(order_service, order_id)
        assert logs[0].message == "Order status changed to cancelled"

    async def test_unknown_order_is_not_found(self, order_service):
        response = await order_service.update_order_status("missing", OrderStatus.CANCELLED)

        assert response.success is False
        assert response.error_code == ErrorCode.NOT_FOUND

    async def test_completion_confirmed_by_reseller(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)
        await advance_to_shipped(order_service, order_id)

        response = await order_service.update_order_status(
            order_id, OrderStatus.COMPLETED,
            additional_data=OrderStatusUpdateData(confirmed_by_reseller=True),
        )

        assert response.success is True
        order = await _order(order_service, order_id)
        assert order.status == OrderStatus.COMPLETED
        assert order.reseller_confirmation is True
        assert order.actual_delivery is not None
        assert order.admin_message == RECEIVED_MESSAGE
        logs = await _logs(order_service, order_id)
        assert logs[0].action_by == f"reseller_{reseller_id}"

    async def test_completed_order_cannot_be_completed_again(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)
        await advance_to_shipped(order_service, order_id)
        reseller_done = OrderStatusUpdateData(confirmed_by_reseller=True)
        await order_service.update_order_status(order_id, OrderStatus.COMPLETED, additional_data=reseller_done)
        first = await _order(order_service, order_id)
        log_count = len(await _logs(order_service, order_id))

        response = await order_service.update_order_status(
            order_id, OrderStatus.COMPLETED, additional_data=reseller_done
        )

        assert response.success is False
        assert response.error_code == ErrorCode.INVALID_STATE
        second = await _order(order_service, order_id)
        assert second.actual_delivery == first.actual_delivery
        assert len(await _logs(order_service, order_id)) == log_count

    async def test_cancelled_order_cannot_be_cancelled_again(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)
        await order_service.update_order_status(order_id, OrderStatus.CANCELLED)
        log_count = len(await _logs(order_service, order_id))

        response = await order_service.update_order_status(order_id, OrderStatus.CANCELLED)

        assert response.error_code == ErrorCode.INVALID_STATE
        assert len(await _logs(order_service, order_id)) == log_count

    async def test_tracking_fields_from_additional_data(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)
        await advance_to_confirmed(order_service, order_id)

        response = await order_service.update_order_status(
            order_id, OrderStatus.SHIPPED,
            additional_data=OrderStatusUpdateData(tracking_number="JNE123456"),
        )

        assert response.success is True
        order = await _order(order_service, order_id)
        assert order.tracking_number == "JNE123456"


# =============================================================================
# Shipping hand-off
# =============================================================================

class TestShipmentOnShip:

    async def test_shipping_creates_one_preparing_shipment(
        self, order_service, shipment_service, reseller_id
    ):
        order_id = await place_order(order_service, reseller_id)

        await advance_to_shipped(order_service, order_id)

        order = await _order(order_service, order_id)
        shipments = await shipment_service.get_all_shipments()
        assert shipments.count == 1
        shipment = shipments.shipments[0]
        assert shipment.order_id == order_id
        assert shipment.status.value == "preparing"
        assert shipment.courier == "JNE"
        assert shipment.service == "REG"
        assert shipment.tracking_number == order.tracking_number
        assert order.status == OrderStatus.SHIPPED

    async def test_shipment_effect_is_reported(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)
        await advance_to_confirmed(order_service, order_id)

        response = await order_service.update_order_status(
            order_id, OrderStatus.SHIPPED,
            additional_data=OrderStatusUpdateData(create_shipment=True, courier="SiCepat"),
        )

        effect = next(e for e in response.effects if e.name == "shipment_created")
        assert effect.success is True
        assert effect.detail.startswith("SHP")

    async def test_repeated_ship_request_reuses_shipment(
        self, order_service, shipment_service, reseller_id
    ):
        order_id = await place_order(order_service, reseller_id)
        await advance_to_shipped(order_service, order_id)
        first = await _order(order_service, order_id)

        response = await order_service.update_order_status(
            order_id, OrderStatus.SHIPPED,
            additional_data=OrderStatusUpdateData(create_shipment=True),
        )

        assert response.success is True
        assert (await shipment_service.get_all_shipments()).count == 1
        second = await _order(order_service, order_id)
        assert second.tracking_number == first.tracking_number

    async def test_without_flag_no_shipment_is_created(
        self, order_service, shipment_service, reseller_id
    ):
        order_id = await place_order(order_service, reseller_id)

        await advance_to_shipped(order_service, order_id, create_shipment=False)

        assert (await shipment_service.get_all_shipments()).count == 0


# =============================================================================
# update_payment_status
# =============================================================================

class TestUpdatePaymentStatus:

    async def test_paid_with_details_records_success_transaction(
        self, order_service, payment_service, reseller_id
    ):
        order_id = await place_order(order_service, reseller_id, price=Decimal("150000"))

        response = await order_service.update_payment_status(
            order_id, PaymentStatus.PAID,
            payment_details=PaymentDetails(method="BCA Transfer", reference="REF-001"),
        )

        assert response.success is True
        payments = await payment_service.get_payments_by_order(order_id)
        assert payments.count == 1
        payment = payments.payments[0]
        assert payment.status.value == "success"
        assert payment.amount == Decimal("150000")
        assert payment.method == "BCA Transfer"
        assert payment.reseller_id == reseller_id
        effect = next(e for e in response.effects if e.name == "payment_transaction")
        assert effect.success is True
        assert effect.detail == payment.transaction_id

    async def test_paid_without_details_records_nothing(
        self, order_service, payment_service, reseller_id
    ):
        order_id = await place_order(order_service, reseller_id)

        await order_service.update_payment_status(order_id, PaymentStatus.PAID)

        assert (await payment_service.get_payments_by_order(order_id)).count == 0

    async def test_paid_and_confirmed_together(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)

        await advance_to_confirmed(order_service, order_id)

        order = await _order(order_service, order_id)
        assert order.payment_status == PaymentStatus.PAID
        assert order.status == OrderStatus.CONFIRMED

    async def test_settled_payment_cannot_change(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)
        await order_service.update_payment_status(order_id, PaymentStatus.PAID)

        response = await order_service.update_payment_status(order_id, PaymentStatus.FAILED)

        assert response.success is False
        assert response.error_code == ErrorCode.INVALID_STATE

    async def test_unknown_order_is_not_found(self, order_service):
        response = await order_service.update_payment_status("missing", PaymentStatus.PAID)

        assert response.error_code == ErrorCode.NOT_FOUND

    async def test_payment_recorder_failure_is_an_effect(
        self, store, mock_payment_recorder, reseller_id
    ):
        from microservices.order_service.factory import create_order_service

        service = create_order_service(store=store)
        service.payment_service = mock_payment_recorder
        mock_payment_recorder.set_failure("payments offline")
        order_id = await place_order(service, reseller_id)

        response = await service.update_payment_status(
            order_id, PaymentStatus.PAID, payment_details=PaymentDetails()
        )

        assert response.success is True
        assert [e.name for e in response.failed_effects] == ["payment_transaction"]
        mock_payment_recorder.assert_called("create_transaction")
        assert (await _order(service, order_id)).payment_status == PaymentStatus.PAID


# =============================================================================
# update_payment_proof / select_cash_on_delivery
# =============================================================================

class TestResellerPayment:

    async def test_payment_proof_waits_for_verification(
        self, order_service, payment_service, reseller_id
    ):
        order_id = await place_order(order_service, reseller_id)

        response = await order_service.update_payment_proof(
            order_id, "BCA Transfer", "proof-123.jpg", "https://cdn.example.com/proof-123.jpg"
        )

        assert response.success is True
        order = await _order(order_service, order_id)
        assert order.payment_status == PaymentStatus.WAITING_VERIFICATION
        assert order.payment_method == "BCA Transfer"
        assert order.payment_proof == "proof-123.jpg"
        assert order.admin_message == PROOF_SUBMITTED_MESSAGE
        payments = await payment_service.get_payments_by_order(order_id)
        assert payments.count == 1
        assert payments.payments[0].status.value == "processing"
        logs = await _logs(order_service, order_id)
        assert logs[0].action_by == f"reseller_{reseller_id}"

    async def test_payment_proof_can_be_resubmitted(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)
        await order_service.update_payment_proof(order_id, "BCA Transfer", "first.jpg")

        response = await order_service.update_payment_proof(order_id, "BCA Transfer", "second.jpg")

        assert response.success is True
        assert (await _order(order_service, order_id)).payment_proof == "second.jpg"

    async def test_payment_proof_rejected_after_payment(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)
        await order_service.update_payment_status(order_id, PaymentStatus.PAID)

        response = await order_service.update_payment_proof(order_id, "BCA Transfer", "late.jpg")

        assert response.error_code == ErrorCode.INVALID_STATE

    async def test_payment_proof_rejected_for_cancelled_order(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)
        await order_service.update_order_status(order_id, OrderStatus.CANCELLED)

        response = await order_service.update_payment_proof(order_id, "BCA Transfer", "late.jpg")

        assert response.error_code == ErrorCode.INVALID_STATE

    async def test_owner_selects_cod(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)

        response = await order_service.select_cash_on_delivery(order_id, reseller_id)

        assert response.success is True
        order = await _order(order_service, order_id)
        assert order.payment_status == PaymentStatus.COD
        assert order.payment_method == "COD"
        assert (await _logs(order_service, order_id))[0].message == COD_SELECTED_MESSAGE

    async def test_cod_order_can_be_confirmed(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)
        await order_service.select_cash_on_delivery(order_id, reseller_id)

        response = await order_service.update_order_status(order_id, OrderStatus.CONFIRMED)

        assert response.success is True

    async def test_foreign_reseller_cannot_select_cod(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)

        response = await order_service.select_cash_on_delivery(order_id, make_reseller_id())

        assert response.error_code == ErrorCode.UNAUTHORIZED
        assert (await _order(order_service, order_id)).payment_status == PaymentStatus.WAITING_PAYMENT

    async def test_cod_rejected_while_proof_under_review(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)
        await order_service.update_payment_proof(order_id, "BCA Transfer", "proof.jpg")

        response = await order_service.select_cash_on_delivery(order_id, reseller_id)

        assert response.error_code == ErrorCode.INVALID_STATE


# =============================================================================
# confirm_order_received
# =============================================================================

class TestConfirmOrderReceived:

    async def test_reseller_confirms_shipped_order(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)
        await advance_to_shipped(order_service, order_id)

        response = await order_service.confirm_order_received(order_id, reseller_id)

        assert response.success is True
        order = await _order(order_service, order_id)
        assert order.status == OrderStatus.COMPLETED
        assert order.reseller_confirmation is True
        assert order.actual_delivery is not None
        assert order.admin_message == RECEIVED_MESSAGE
        logs = await _logs(order_service, order_id)
        assert logs[0].status == "completed"
        assert logs[0].message == RECEIVED_MESSAGE

    async def test_reseller_message_replaces_shipping_note(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)
        await advance_to_confirmed(order_service, order_id)
        await order_service.update_order_status(order_id, OrderStatus.SHIPPED, "Order telah dikirim")

        await order_service.confirm_order_received(order_id, reseller_id, "Barang sudah sampai")

        order = await _order(order_service, order_id)
        assert order.admin_message == "Barang sudah sampai"

    async def test_second_confirmation_is_rejected(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)
        await advance_to_shipped(order_service, order_id)
        await order_service.confirm_order_received(order_id, reseller_id, "Barang sudah sampai")
        first = await _order(order_service, order_id)
        log_count = len(await _logs(order_service, order_id))

        response = await order_service.confirm_order_received(order_id, reseller_id)

        assert response.success is False
        assert response.error_code == ErrorCode.INVALID_STATE
        second = await _order(order_service, order_id)
        assert second.actual_delivery == first.actual_delivery
        assert len(await _logs(order_service, order_id)) == log_count

    async def test_foreign_reseller_cannot_confirm(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)
        await advance_to_shipped(order_service, order_id)
        before = await _order(order_service, order_id)

        response = await order_service.confirm_order_received(order_id, make_reseller_id())

        assert response.error_code == ErrorCode.UNAUTHORIZED
        after = await _order(order_service, order_id)
        assert after.status == OrderStatus.SHIPPED
        assert after.updated_at == before.updated_at

    async def test_pending_order_cannot_be_confirmed(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)

        response = await order_service.confirm_order_received(order_id, reseller_id)

        assert response.error_code == ErrorCode.INVALID_STATE

    async def test_unknown_order_is_not_found(self, order_service, reseller_id):
        response = await order_service.confirm_order_received("missing", reseller_id)

        assert response.error_code == ErrorCode.NOT_FOUND


# =============================================================================
# update_tracking_info
# =============================================================================

class TestUpdateTrackingInfo:

    async def test_tracking_marks_order_shipped(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)
        await advance_to_confirmed(order_service, order_id)

        response = await order_service.update_tracking_info(order_id, "JNE-998877")

        assert response.success is True
        order = await _order(order_service, order_id)
        assert order.status == OrderStatus.SHIPPED
        assert order.tracking_number == "JNE-998877"
        logs = await _logs(order_service, order_id)
        assert logs[0].message == "Order shipped with tracking number: JNE-998877"

    async def test_tracking_on_pending_order_is_rejected(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)

        response = await order_service.update_tracking_info(order_id, "JNE-998877")

        assert response.error_code == ErrorCode.INVALID_STATE

    async def test_empty_tracking_number_is_rejected(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)

        response = await order_service.update_tracking_info(order_id, "")

        assert response.error_code == ErrorCode.VALIDATION_FAILED


# =============================================================================
# delete_order
# =============================================================================

class TestDeleteOrder:

    async def test_confirmed_order_cannot_be_deleted(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)
        await advance_to_confirmed(order_service, order_id)

        response = await order_service.delete_order(order_id)

        assert response.error_code == ErrorCode.INVALID_STATE
        assert (await order_service.get_order(order_id)).success is True

    async def test_cancelled_order_is_deleted_and_logged(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)
        await order_service.update_order_status(order_id, OrderStatus.CANCELLED)

        response = await order_service.delete_order(order_id)

        assert response.success is True
        assert (await order_service.get_order(order_id)).error_code == ErrorCode.NOT_FOUND
        logs = await _logs(order_service, order_id)
        assert logs[0].status == "deleted"
        assert logs[0].action_by == "admin"

    async def test_pending_order_is_deleted(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)

        response = await order_service.delete_order(order_id)

        assert response.success is True

    async def test_unknown_order_is_not_found(self, order_service):
        response = await order_service.delete_order("missing")

        assert response.error_code == ErrorCode.NOT_FOUND


# =============================================================================
# Reads
# =============================================================================

class TestOrderReads:

    async def test_get_order_carries_fulfillment_stage(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)
        await advance_to_confirmed(order_service, order_id)

        response = await order_service.get_order(order_id)

        assert response.fulfillment_stage == FulfillmentStage.READY_TO_SHIP

    async def test_list_orders_newest_first_with_filters(self, order_service, reseller_id):
        first = await place_order(order_service, reseller_id)
        second = await place_order(order_service, reseller_id)
        await place_order(order_service, make_reseller_id())
        await order_service.update_order_status(first, OrderStatus.CANCELLED)

        mine = await order_service.get_orders_by_reseller(reseller_id)
        cancelled = await order_service.get_orders_by_status(OrderStatus.CANCELLED)
        waiting = await order_service.get_orders_by_payment_status(PaymentStatus.WAITING_PAYMENT)

        assert [o.id for o in mine.orders] == [second, first]
        assert [o.id for o in cancelled.orders] == [first]
        assert waiting.count == 3

    async def test_search_matches_number_name_and_email(self, order_service, reseller_id):
        await place_order(order_service, reseller_id, reseller_name="Toko Melati",
                          reseller_email="melati@example.com")
        other = await place_order(order_service, make_reseller_id(), reseller_name="Butik Anggrek",
                                  reseller_email="anggrek@example.com")
        other_number = (await _order(order_service, other)).order_number

        by_name = await order_service.search_orders("melati")
        by_email = await order_service.search_orders("ANGGREK@")
        by_number = await order_service.search_orders(other_number.lower())
        everything = await order_service.search_orders("  ")

        assert by_name.count == 1
        assert by_email.orders[0].id == other
        assert by_number.orders[0].id == other
        assert everything.count == 2

    async def test_search_restricted_to_reseller(self, order_service, reseller_id):
        await place_order(order_service, reseller_id, reseller_name="Toko Melati")
        await place_order(order_service, make_reseller_id(), reseller_name="Toko Melati Dua")

        response = await order_service.search_orders("melati", reseller_id=reseller_id)

        assert response.count == 1

    async def test_status_logs_newest_first(self, order_service, reseller_id):
        order_id = await place_order(order_service, reseller_id)
        await advance_to_shipped(order_service, order_id)

        logs = await _logs(order_service, order_id)

        assert [log.status for log in logs] == ["shipped", "confirmed", "pending"]
        assert logs[0].timestamp >= logs[-1].timestamp

    async def test_health_check(self, order_service):
        assert await order_service.health_check() is True
