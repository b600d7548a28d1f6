"""
Payment Microservice

Responsibilities:
- Payment transaction recording for reseller orders
- Admin status changes and manual retries
- Payment statistics for the admin dashboard
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
from .factory import create_payment_service
from .formatting import format_rupiah
from .payment_service import PaymentService
from .models import (
    PaymentTransactionCreateRequest, TransactionStatusUpdateRequest,
    PaymentResponse, PaymentListResponse, PaymentStatisticsResponse,
    HealthResponse,
)

config = ServiceConfig.from_env("payment_service", default_port=8207)

logger = setup_service_logger("payment_service")


class PaymentMicroservice:
    """Payment microservice core class"""

    def __init__(self):
        self.payment_service: Optional[PaymentService] = None

    async def initialize(self):
        try:
            self.payment_service = create_payment_service()
            logger.info("Payment microservice initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize payment microservice: {e}")
            raise

    async def shutdown(self):
        try:
            await close_document_store()
            logger.info("Payment microservice shutdown completed")
        except Exception as e:
            logger.error(f"Error during shutdown: {e}")


payment_microservice = PaymentMicroservice()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    await payment_microservice.initialize()
    yield
    await payment_microservice.shutdown()


app = FastAPI(
    title="Payment Service",
    description="Payment transaction recording for reseller orders",
    version="1.0.0",
    lifespan=lifespan
)


def get_payment_service() -> PaymentService:
    """Get payment service instance"""
    if not payment_microservice.payment_service:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Payment service not initialized"
        )
    return payment_microservice.payment_service


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Service health check"""
    return HealthResponse(
        status="healthy",
        service=config.service_name,
        port=config.service_port,
        version="1.0.0",
        timestamp=datetime.now(timezone.utc),
    )


@app.get("/health/detailed")
async def detailed_health_check(
    payment_service: PaymentService = Depends(get_payment_service)
):
    """Health check including store connectivity"""
    connected = await payment_service.check_health()
    return {
        "status": "healthy" if connected else "degraded",
        "service": config.service_name,
        "database_connected": connected,
    }


# Transaction endpoints

@app.post("/api/v1/payments", response_model=PaymentResponse)
async def create_transaction(
    request: PaymentTransactionCreateRequest,
    payment_service: PaymentService = Depends(get_payment_service)
):
    """Record a payment transaction"""
    return raise_for_failure(await payment_service.create_transaction(request))


@app.get("/api/v1/payments", response_model=PaymentListResponse)
async def list_payments(
    status_filter: Optional[str] = Query(None, alias="status", description="Status or 'all'"),
    payment_service: PaymentService = Depends(get_payment_service)
):
    """List transactions, newest first"""
    return raise_for_failure(await payment_service.get_all_payments(status_filter))


@app.get("/api/v1/payments/stats", response_model=PaymentStatisticsResponse)
async def get_payment_stats(
    payment_service: PaymentService = Depends(get_payment_service)
):
    """Revenue and success-rate statistics"""
    response = raise_for_failure(await payment_service.get_stats())
    return response


@app.get("/api/v1/payments/stats/summary")
async def get_payment_stats_summary(
    payment_service: PaymentService = Depends(get_payment_service)
):
    """Statistics with rupiah-formatted amounts"""
    stats = raise_for_failure(await payment_service.get_stats()).statistics
    return {
        "total_revenue": format_rupiah(stats.total_revenue),
        "average_transaction": format_rupiah(stats.average_transaction),
        "total_transactions": stats.total_transactions,
        "success_rate": stats.success_rate,
    }


@app.get("/api/v1/payments/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: str = Path(..., description="Payment ID"),
    payment_service: PaymentService = Depends(get_payment_service)
):
    return raise_for_failure(await payment_service.get_payment(payment_id))


@app.put("/api/v1/payments/{payment_id}/status", response_model=PaymentResponse)
async def update_payment_status(
    payment_id: str = Path(..., description="Payment ID"),
    request: TransactionStatusUpdateRequest = Body(...),
    payment_service: PaymentService = Depends(get_payment_service)
):
    """Admin status change"""
    return raise_for_failure(
        await payment_service.update_status(payment_id, request.status, request.notes)
    )


@app.post("/api/v1/payments/{payment_id}/retry", response_model=PaymentResponse)
async def retry_payment(
    payment_id: str = Path(..., description="Payment ID"),
    payment_service: PaymentService = Depends(get_payment_service)
):
    """Reset a transaction to processing"""
    return raise_for_failure(await payment_service.retry(payment_id))


@app.get("/api/v1/resellers/{reseller_id}/payments", response_model=PaymentListResponse)
async def get_reseller_payments(
    reseller_id: str = Path(..., description="Reseller ID"),
    payment_service: PaymentService = Depends(get_payment_service)
):
    return raise_for_failure(await payment_service.get_payments_by_reseller(reseller_id))


@app.get("/api/v1/orders/{order_id}/payments", response_model=PaymentListResponse)
async def get_order_payments(
    order_id: str = Path(..., description="Order ID"),
    payment_service: PaymentService = Depends(get_payment_service)
):
    return raise_for_failure(await payment_service.get_payments_by_order(order_id))


if __name__ == "__main__":
    uvicorn.run(
        "microservices.payment_service.main:app",
        host=config.service_host,
        port=config.service_port,
        reload=config.debug,
        log_level=config.log_level.lower()
    )
