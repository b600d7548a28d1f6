"""
Order Repository

Data access layer for orders (collection ``orders``) and their audit log
(collection ``order_status_logs``) on the shared DocumentStore.
"""

from typing import Optional, List, Dict, Any, Sequence
import logging

from core.document_store import SERVER_TIMESTAMP, DocumentStore, OrderBy, to_document, where
from .models import Order, OrderStatus, OrderStatusLog, PaymentStatus

logger = logging.getLogger(__name__)


class OrderRepository:
    """
    Repository for order data operations

    Documents are stored as JSON-safe dicts; the store stamps created_at
    and updated_at on every write.
    """

    collection = "orders"

    def __init__(self, store: DocumentStore):
        self.store = store
        logger.info("OrderRepository initialized")

    async def check_connection(self) -> bool:
        try:
            await self.store.query(self.collection, limit=1)
            return True
        except Exception as e:
            logger.error(f"Store connection check failed: {e}")
            return False

    async def create_order(self, fields: Dict[str, Any]) -> str:
        """Insert a new order document"""
        return await self.store.insert(self.collection, to_document(fields))

    async def get_order(self, order_id: str) -> Optional[Order]:
        doc = await self.store.get(self.collection, order_id)
        return Order.model_validate(doc) if doc else None

    async def update_order(self, order_id: str, fields: Dict[str, Any]) -> None:
        await self.store.update(self.collection, order_id, to_document(fields))

    async def delete_order(self, order_id: str) -> bool:
        return await self.store.delete(self.collection, order_id)

    async def list_orders(
        self,
        reseller_id: Optional[str] = None,
        status: Optional[OrderStatus] = None,
        payment_status: Optional[PaymentStatus] = None,
    ) -> List[Order]:
        """List orders with equality filters, newest first"""
        filters = []
        if reseller_id:
            filters.append(where("reseller_id", "==", reseller_id))
        if status:
            filters.append(where("status", "==", status.value))
        if payment_status:
            filters.append(where("payment_status", "==", payment_status.value))

        docs = await self.store.query(
            self.collection, filters, OrderBy("created_at", descending=True)
        )
        return [Order.model_validate(doc) for doc in docs]

    async def batch_update_orders(self, order_ids: Sequence[str], fields: Dict[str, Any]) -> None:
        document = to_document(fields)
        await self.store.batch_update(
            self.collection, [(order_id, dict(document)) for order_id in order_ids]
        )


class OrderStatusLogRepository:
    """Append-only audit log of order mutations"""

    collection = "order_status_logs"

    def __init__(self, store: DocumentStore):
        self.store = store

    async def append(self, order_id: str, status: str, message: str, action_by: str) -> str:
        return await self.store.insert(self.collection, {
            "order_id": order_id,
            "status": status,
            "message": message,
            "action_by": action_by,
            "timestamp": SERVER_TIMESTAMP,
        })

    async def list_for_order(self, order_id: str) -> List[OrderStatusLog]:
        # created_at carries the same instant as timestamp and is a native column in every store
        docs = await self.store.query(
            self.collection,
            [where("order_id", "==", order_id)],
            OrderBy("created_at", descending=True),
        )
        return [OrderStatusLog.model_validate(doc) for doc in docs]
