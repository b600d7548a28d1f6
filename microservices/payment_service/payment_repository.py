"""
Payment Repository

Data access for payment transactions (collection ``payments``).
"""

import logging
from typing import Any, Dict, List, Optional

from core.document_store import DocumentStore, OrderBy, to_document, where
from .models import PaymentTransaction, TransactionStatus, TransactionType

logger = logging.getLogger(__name__)


class PaymentRepository:
    """Payment transaction repository"""

    collection = "payments"

    def __init__(self, store: DocumentStore):
        self.store = store
        logger.info("PaymentRepository initialized")

    async def check_connection(self) -> bool:
        try:
            await self.store.query(self.collection, limit=1)
            return True
        except Exception as e:
            logger.error(f"Store connection check failed: {e}")
            return False

    async def create_transaction(self, fields: Dict[str, Any]) -> str:
        return await self.store.insert(self.collection, to_document(fields))

    async def get_transaction(self, payment_id: str) -> Optional[PaymentTransaction]:
        doc = await self.store.get(self.collection, payment_id)
        return PaymentTransaction.model_validate(doc) if doc else None

    async def update_transaction(self, payment_id: str, fields: Dict[str, Any]) -> None:
        await self.store.update(self.collection, payment_id, to_document(fields))

    async def list_transactions(
        self,
        status: Optional[TransactionStatus] = None,
        reseller_id: Optional[str] = None,
        order_id: Optional[str] = None,
        transaction_type: Optional[TransactionType] = None,
    ) -> List[PaymentTransaction]:
        filters = []
        if status:
            filters.append(where("status", "==", status.value))
        if reseller_id:
            filters.append(where("reseller_id", "==", reseller_id))
        if order_id:
            filters.append(where("order_id", "==", order_id))
        if transaction_type:
            filters.append(where("type", "==", transaction_type.value))

        docs = await self.store.query(
            self.collection, filters, OrderBy("created_at", descending=True)
        )
        return [PaymentTransaction.model_validate(doc) for doc in docs]
