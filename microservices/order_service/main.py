"""
Order Microservice

Responsibilities:
- Reseller checkout and order lifecycle
- Payment proof, verification and cash-on-delivery
- Shipping hand-off and delivery confirmation
- Order search, batch updates and statistics
"""

from fastapi import FastAPI, HTTPException, Depends, status, Query, Path, Body
import uvicorn
from contextlib import asynccontextmanager
from typing import Optional
from datetime import datetime, timezone

from core.config import ServiceConfig
from core.document_store import close_document_store
from core.http_errors import raise_for_failure
from core.logger import setup_service_logger
from .factory import create_order_service
from .order_service import OrderService
from .models import (
    OrderCreateRequest, OrderStatusUpdateRequest, PaymentStatusUpdateRequest,
    PaymentProofRequest, CashOnDeliveryRequest, ConfirmReceivedRequest,
    TrackingInfoRequest, OrderBatchUpdateRequest, OrderResponse,
    OrderListResponse, OrderStatusLogListResponse, OrderBatchUpdateResponse,
    OrderStatisticsResponse, OrderStatus, PaymentStatus, OrderServiceStatus,
)

config = ServiceConfig.from_env("order_service", default_port=8210)

app_logger = setup_service_logger("order_service")
logger = app_logger


class OrderMicroservice:
    """Order microservice core class"""

    def __init__(self):
        self.order_service: Optional[OrderService] = None

    async def initialize(self):
        """Initialize the microservice"""
        try:
            self.order_service = create_order_service()
            logger.info("Order microservice initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize order microservice: {e}")
            raise

    async def shutdown(self):
        """Shutdown the microservice"""
        try:
            await close_document_store()
            logger.info("Order microservice shutdown completed")
        except Exception as e:
            logger.error(f"Error during shutdown: {e}")


# Global microservice instance
order_microservice = OrderMicroservice()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    await order_microservice.initialize()
    yield
    await order_microservice.shutdown()


# Create FastAPI application
app = FastAPI(
    title="Order Service",
    description="Reseller order lifecycle orchestration",
    version="1.0.0",
    lifespan=lifespan
)


# Dependency injection
def get_order_service() -> OrderService:
    """Get order service instance"""
    if not order_microservice.order_service:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Order service not initialized"
        )
    return order_microservice.order_service


# Health check endpoints
@app.get("/health")
async def health_check():
    """Service health check"""
    return {
        "status": "healthy",
        "service": config.service_name,
        "port": config.service_port,
        "version": "1.0.0",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@app.get("/health/detailed", response_model=OrderServiceStatus)
async def detailed_health_check(
    order_service: OrderService = Depends(get_order_service)
):
    """Detailed health check with store connectivity"""
    return OrderServiceStatus(
        port=config.service_port,
        database_connected=await order_service.health_check(),
        timestamp=datetime.now(timezone.utc)
    )


# Core order management endpoints

@app.post("/api/v1/orders", response_model=OrderResponse)
async def create_order(
    reseller_id: str = Query(..., description="Ordering reseller"),
    request: OrderCreateRequest = Body(...),
    order_service: OrderService = Depends(get_order_service)
):
    """Create a new order from the reseller's cart"""
    return raise_for_failure(await order_service.create_order(reseller_id, request))


@app.get("/api/v1/orders", response_model=OrderListResponse)
async def list_orders(
    reseller_id: Optional[str] = Query(None, description="Filter by reseller"),
    order_status: Optional[OrderStatus] = Query(None, alias="status", description="Filter by status"),
    payment_status: Optional[PaymentStatus] = Query(None, description="Filter by payment status"),
    order_service: OrderService = Depends(get_order_service)
):
    """List orders, newest first"""
    return raise_for_failure(
        await order_service.list_orders(reseller_id, order_status, payment_status)
    )


@app.get("/api/v1/orders/search", response_model=OrderListResponse)
async def search_orders(
    query: str = Query("", description="Order number, reseller name or email"),
    reseller_id: Optional[str] = Query(None, description="Filter by reseller"),
    order_service: OrderService = Depends(get_order_service)
):
    """Search orders"""
    return raise_for_failure(await order_service.search_orders(query, reseller_id))


@app.get("/api/v1/orders/statistics", response_model=OrderStatisticsResponse)
async def get_order_statistics(
    reseller_id: Optional[str] = Query(None, description="Restrict to one reseller"),
    order_service: OrderService = Depends(get_order_service)
):
    """Get order statistics"""
    return raise_for_failure(await order_service.get_order_statistics(reseller_id))


@app.post("/api/v1/orders/batch", response_model=OrderBatchUpdateResponse)
async def batch_update_orders(
    request: OrderBatchUpdateRequest,
    order_service: OrderService = Depends(get_order_service)
):
    """Apply one update to several orders"""
    return raise_for_failure(await order_service.batch_update_orders(request.order_ids, request.update))


@app.get("/api/v1/orders/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str = Path(..., description="Order ID"),
    order_service: OrderService = Depends(get_order_service)
):
    """Get order details"""
    return raise_for_failure(await order_service.get_order(order_id))


@app.delete("/api/v1/orders/{order_id}", response_model=OrderResponse)
async def delete_order(
    order_id: str = Path(..., description="Order ID"),
    order_service: OrderService = Depends(get_order_service)
):
    """Delete a pending or cancelled order"""
    return raise_for_failure(await order_service.delete_order(order_id))


@app.put("/api/v1/orders/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str = Path(..., description="Order ID"),
    request: OrderStatusUpdateRequest = Body(...),
    order_service: OrderService = Depends(get_order_service)
):
    """Admin status change"""
    return raise_for_failure(
        await order_service.update_order_status(
            order_id, request.status, request.admin_message, request.additional_data
        )
    )


@app.put("/api/v1/orders/{order_id}/payment-status", response_model=OrderResponse)
async def update_payment_status(
    order_id: str = Path(..., description="Order ID"),
    request: PaymentStatusUpdateRequest = Body(...),
    order_service: OrderService = Depends(get_order_service)
):
    """Admin payment verification"""
    return raise_for_failure(
        await order_service.update_payment_status(
            order_id,
            request.payment_status,
            order_status=request.order_status,
            admin_message=request.admin_message,
            payment_details=request.payment_details,
            override=request.override,
        )
    )


@app.post("/api/v1/orders/{order_id}/payment-proof", response_model=OrderResponse)
async def submit_payment_proof(
    order_id: str = Path(..., description="Order ID"),
    request: PaymentProofRequest = Body(...),
    order_service: OrderService = Depends(get_order_service)
):
    """Reseller payment proof submission"""
    return raise_for_failure(
        await order_service.update_payment_proof(
            order_id, request.payment_method, request.payment_proof, request.payment_proof_url
        )
    )


@app.post("/api/v1/orders/{order_id}/cod", response_model=OrderResponse)
async def select_cash_on_delivery(
    order_id: str = Path(..., description="Order ID"),
    request: CashOnDeliveryRequest = Body(...),
    order_service: OrderService = Depends(get_order_service)
):
    """Reseller chooses cash on delivery"""
    return raise_for_failure(await order_service.select_cash_on_delivery(order_id, request.reseller_id))


@app.post("/api/v1/orders/{order_id}/confirm-received", response_model=OrderResponse)
async def confirm_order_received(
    order_id: str = Path(..., description="Order ID"),
    request: ConfirmReceivedRequest = Body(...),
    order_service: OrderService = Depends(get_order_service)
):
    """Reseller confirms the goods arrived"""
    return raise_for_failure(
        await order_service.confirm_order_received(order_id, request.reseller_id, request.message)
    )


@app.put("/api/v1/orders/{order_id}/tracking", response_model=OrderResponse)
async def update_tracking_info(
    order_id: str = Path(..., description="Order ID"),
    request: TrackingInfoRequest = Body(...),
    order_service: OrderService = Depends(get_order_service)
):
    """Attach a tracking number and mark the order shipped"""
    return raise_for_failure(
        await order_service.update_tracking_info(order_id, request.tracking_number, request.estimated_delivery)
    )


@app.get("/api/v1/orders/{order_id}/logs", response_model=OrderStatusLogListResponse)
async def get_order_status_logs(
    order_id: str = Path(..., description="Order ID"),
    order_service: OrderService = Depends(get_order_service)
):
    """Audit trail, newest first"""
    return raise_for_failure(await order_service.get_order_status_logs(order_id))


@app.get("/api/v1/resellers/{reseller_id}/orders", response_model=OrderListResponse)
async def get_reseller_orders(
    reseller_id: str = Path(..., description="Reseller ID"),
    order_service: OrderService = Depends(get_order_service)
):
    """Get orders for a specific reseller"""
    return raise_for_failure(await order_service.get_orders_by_reseller(reseller_id))


if __name__ == "__main__":
    uvicorn.run(
        "microservices.order_service.main:app",
        host=config.service_host,
        port=config.service_port,
        reload=config.debug,
        log_level=config.log_level.lower()
    )
