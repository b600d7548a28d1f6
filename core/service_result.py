"""
Service Result Envelope

Every public service operation answers with a ServiceResponse subclass
instead of raising: ``success`` plus a human-readable ``message``, an
``error_code`` on failure, and the list of post-commit side effects that ran
after the primary write.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from core.document_store import (
    DocumentNotFoundError,
    StoreError,
    StoreTimeoutError,
    StoreUnavailableError,
)


class ErrorCode(str, Enum):
    """Failure kinds surfaced across the service boundary"""
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_STATE = "INVALID_STATE"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    TIMEOUT = "TIMEOUT"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class SideEffect(BaseModel):
    """Outcome of one best-effort step that followed the primary write"""
    name: str
    success: bool
    reference: Optional[str] = None
    detail: Optional[str] = None


class ServiceResponse(BaseModel):
    """Base response model"""
    success: bool
    message: str
    error_code: Optional[ErrorCode] = None
    effects: List[SideEffect] = Field(default_factory=list)

    @property
    def failed_effects(self) -> List[SideEffect]:
        return [effect for effect in self.effects if not effect.success]


def error_code_for(exc: Exception) -> ErrorCode:
    """Map a store exception to the error code reported to callers"""
    if isinstance(exc, DocumentNotFoundError):
        return ErrorCode.NOT_FOUND
    if isinstance(exc, StoreTimeoutError):
        return ErrorCode.TIMEOUT
    if isinstance(exc, StoreUnavailableError):
        return ErrorCode.STORE_UNAVAILABLE
    if isinstance(exc, StoreError):
        return ErrorCode.STORE_UNAVAILABLE
    return ErrorCode.INTERNAL_ERROR
