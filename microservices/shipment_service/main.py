"""
Shipment Microservice

Responsibilities:
- Courier shipment creation from orders and the admin form
- Shipment status tracking and deletion
- Shipment statistics
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
from .factory import create_shipment_service
from .shipment_service import ShipmentService
from .models import (
    ShipmentCreateRequest, ShipmentFromOrderRequest, ShipmentStatusUpdateRequest,
    ShipmentResponse, ShipmentListResponse, ShipmentStatisticsResponse,
)

config = ServiceConfig.from_env("shipment_service", default_port=8231)

logger = setup_service_logger("shipment_service")


class ShipmentMicroservice:
    """Shipment microservice core class"""

    def __init__(self):
        self.shipment_service: Optional[ShipmentService] = None

    async def initialize(self):
        try:
            self.shipment_service = create_shipment_service()
            logger.info("Shipment microservice initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize shipment microservice: {e}")
            raise

    async def shutdown(self):
        try:
            await close_document_store()
            logger.info("Shipment microservice shutdown completed")
        except Exception as e:
            logger.error(f"Error during shutdown: {e}")


shipment_microservice = ShipmentMicroservice()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    await shipment_microservice.initialize()
    yield
    await shipment_microservice.shutdown()


app = FastAPI(
    title="Shipment Service",
    description="Courier shipments for reseller orders",
    version="1.0.0",
    lifespan=lifespan
)


def get_shipment_service() -> ShipmentService:
    """Get shipment service instance"""
    if not shipment_microservice.shipment_service:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Shipment service not initialized"
        )
    return shipment_microservice.shipment_service


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


@app.get("/health/detailed")
async def detailed_health_check(
    shipment_service: ShipmentService = Depends(get_shipment_service)
):
    connected = await shipment_service.check_health()
    return {
        "status": "healthy" if connected else "degraded",
        "service": config.service_name,
        "database_connected": connected,
    }


@app.post("/api/v1/shipments", response_model=ShipmentResponse)
async def create_shipment(
    request: ShipmentCreateRequest,
    shipment_service: ShipmentService = Depends(get_shipment_service)
):
    """Create a shipment from the admin form"""
    return raise_for_failure(await shipment_service.create_shipment(request))


@app.post("/api/v1/shipments/from-order", response_model=ShipmentResponse)
async def create_shipment_from_order(
    request: ShipmentFromOrderRequest,
    shipment_service: ShipmentService = Depends(get_shipment_service)
):
    """Create (or return the existing) shipment for an order"""
    return raise_for_failure(
        await shipment_service.create_from_order(request.order_data, request.shipping_data)
    )


@app.get("/api/v1/shipments", response_model=ShipmentListResponse)
async def list_shipments(
    status_filter: Optional[str] = Query(None, alias="status", description="Status or 'all'"),
    shipment_service: ShipmentService = Depends(get_shipment_service)
):
    return raise_for_failure(await shipment_service.get_all_shipments(status_filter))


@app.get("/api/v1/shipments/stats", response_model=ShipmentStatisticsResponse)
async def get_shipment_stats(
    shipment_service: ShipmentService = Depends(get_shipment_service)
):
    return raise_for_failure(await shipment_service.get_stats())


@app.get("/api/v1/shipments/tracking/{tracking_number}", response_model=ShipmentResponse)
async def get_shipment_by_tracking(
    tracking_number: str = Path(..., description="Courier tracking number"),
    shipment_service: ShipmentService = Depends(get_shipment_service)
):
    return raise_for_failure(await shipment_service.get_shipment_by_tracking(tracking_number))


@app.get("/api/v1/shipments/{shipment_id}", response_model=ShipmentResponse)
async def get_shipment(
    shipment_id: str = Path(..., description="Shipment ID"),
    shipment_service: ShipmentService = Depends(get_shipment_service)
):
    return raise_for_failure(await shipment_service.get_shipment(shipment_id))


@app.put("/api/v1/shipments/{shipment_id}/status", response_model=ShipmentResponse)
async def update_shipment_status(
    shipment_id: str = Path(..., description="Shipment ID"),
    request: ShipmentStatusUpdateRequest = Body(...),
    shipment_service: ShipmentService = Depends(get_shipment_service)
):
    return raise_for_failure(
        await shipment_service.update_status(shipment_id, request.status, request.notes)
    )


@app.delete("/api/v1/shipments/{shipment_id}", response_model=ShipmentResponse)
async def delete_shipment(
    shipment_id: str = Path(..., description="Shipment ID"),
    shipment_service: ShipmentService = Depends(get_shipment_service)
):
    return raise_for_failure(await shipment_service.delete_shipment(shipment_id))


@app.get("/api/v1/orders/{order_id}/shipment", response_model=ShipmentResponse)
async def get_order_shipment(
    order_id: str = Path(..., description="Order ID"),
    shipment_service: ShipmentService = Depends(get_shipment_service)
):
    return raise_for_failure(await shipment_service.get_shipment_by_order(order_id))


@app.get("/api/v1/resellers/{reseller_id}/shipments", response_model=ShipmentListResponse)
async def get_reseller_shipments(
    reseller_id: str = Path(..., description="Reseller ID"),
    shipment_service: ShipmentService = Depends(get_shipment_service)
):
    return raise_for_failure(await shipment_service.get_shipments_by_reseller(reseller_id))


if __name__ == "__main__":
    uvicorn.run(
        "microservices.shipment_service.main:app",
        host=config.service_host,
        port=config.service_port,
        reload=config.debug,
        log_level=config.log_level.lower()
    )
