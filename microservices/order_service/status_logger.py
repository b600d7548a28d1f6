"""
Order status audit logger

Appends one OrderStatusLog entry per order mutation. A failed write never
fails the mutation it records; it comes back as a failed SideEffect.
"""

import logging

from core.service_result import SideEffect

from .protocols import OrderStatusLogRepositoryProtocol

logger = logging.getLogger(__name__)

ACTOR_SYSTEM = "system"
ACTOR_ADMIN = "admin"


def reseller_actor(reseller_id: str) -> str:
    return f"reseller_{reseller_id}"


class StatusLogger:
    """Writes audit entries for order mutations"""

    def __init__(self, repository: OrderStatusLogRepositoryProtocol):
        self.repository = repository

    async def log(
        self,
        order_id: str,
        status: str,
        message: str = "",
        action_by: str = ACTOR_SYSTEM,
    ) -> SideEffect:
        try:
            log_id = await self.repository.append(order_id, status, message or "", action_by)
            return SideEffect(name="status_log", success=True, reference=log_id)
        except Exception as e:
            logger.error(f"Failed to write status log for order {order_id} ({status}): {e}")
            return SideEffect(name="status_log", success=False, reference=order_id, detail=str(e))
