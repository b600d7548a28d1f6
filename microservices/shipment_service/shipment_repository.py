"""
Shipment Repository

Data access for courier shipments (collection ``shipments``).
"""

import logging
from typing import Any, Dict, List, Optional

from core.document_store import DocumentStore, OrderBy, to_document, where
from .models import Shipment, ShipmentStatus

logger = logging.getLogger(__name__)


class ShipmentRepository:
    """Shipment repository"""

    collection = "shipments"

    def __init__(self, store: DocumentStore):
        self.store = store
        logger.info("ShipmentRepository initialized")

    async def check_connection(self) -> bool:
        try:
            await self.store.query(self.collection, limit=1)
            return True
        except Exception as e:
            logger.error(f"Store connection check failed: {e}")
            return False

    async def create_shipment(self, fields: Dict[str, Any]) -> str:
        return await self.store.insert(self.collection, to_document(fields))

    async def get_shipment(self, shipment_id: str) -> Optional[Shipment]:
        doc = await self.store.get(self.collection, shipment_id)
        return Shipment.model_validate(doc) if doc else None

    async def update_shipment(self, shipment_id: str, fields: Dict[str, Any]) -> None:
        await self.store.update(self.collection, shipment_id, to_document(fields))

    async def delete_shipment(self, shipment_id: str) -> bool:
        return await self.store.delete(self.collection, shipment_id)

    async def list_shipments(
        self,
        status: Optional[ShipmentStatus] = None,
        reseller_id: Optional[str] = None,
        order_id: Optional[str] = None,
        tracking_number: Optional[str] = None,
    ) -> List[Shipment]:
        filters = []
        if status:
            filters.append(where("status", "==", status.value))
        if reseller_id:
            filters.append(where("reseller_id", "==", reseller_id))
        if order_id:
            filters.append(where("order_id", "==", order_id))
        if tracking_number:
            filters.append(where("tracking_number", "==", tracking_number))

        docs = await self.store.query(
            self.collection, filters, OrderBy("created_at", descending=True)
        )
        return [Shipment.model_validate(doc) for doc in docs]

    async def get_latest_shipment_number(self, prefix: str) -> Optional[str]:
        # Range over the 4-digit suffix of today's prefix
        docs = await self.store.query(
            self.collection,
            [
                where("shipment_number", ">=", f"{prefix}0000"),
                where("shipment_number", "<=", f"{prefix}9999"),
            ],
            OrderBy("shipment_number", descending=True),
            limit=1,
        )
        return docs[0]["shipment_number"] if docs else None
