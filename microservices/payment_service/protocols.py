"""
Payment Service Protocols

Defines interfaces for dependency injection and testing.
Following the protocol-based architecture pattern.
"""

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from .models import PaymentTransaction, TransactionStatus, TransactionType


# ====================
# Exceptions
# ====================


class PaymentServiceError(Exception):
    """Base exception for payment service errors"""
    pass


class PaymentNotFoundError(PaymentServiceError):
    """Transaction does not exist"""
    pass


class PaymentValidationError(PaymentServiceError):
    """Transaction payload is invalid"""
    pass


class MissingRequiredFieldError(PaymentValidationError):
    """A mandatory field is absent"""
    pass


# ====================
# Repository Protocol
# ====================


@runtime_checkable
class PaymentRepositoryProtocol(Protocol):
    """Protocol for payment transaction repository"""

    async def check_connection(self) -> bool:
        """Check store connection"""
        ...

    async def create_transaction(self, fields: Dict[str, Any]) -> str:
        """Insert a transaction, return its id"""
        ...

    async def get_transaction(self, payment_id: str) -> Optional[PaymentTransaction]:
        """Get transaction by id"""
        ...

    async def update_transaction(self, payment_id: str, fields: Dict[str, Any]) -> None:
        """Partial update; raises DocumentNotFoundError"""
        ...

    async def list_transactions(
        self,
        status: Optional[TransactionStatus] = None,
        reseller_id: Optional[str] = None,
        order_id: Optional[str] = None,
        transaction_type: Optional[TransactionType] = None,
    ) -> List[PaymentTransaction]:
        """List transactions, newest first"""
        ...
