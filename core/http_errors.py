"""
HTTP mapping for service responses

Routes return the service response on success and raise HTTPException with
the status matching its ErrorCode otherwise.
"""

from typing import TypeVar

from fastapi import HTTPException, status

from core.service_result import ErrorCode, ServiceResponse

ERROR_STATUS = {
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
    ErrorCode.INVALID_STATE: status.HTTP_409_CONFLICT,
    ErrorCode.MISSING_REQUIRED_FIELD: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.VALIDATION_FAILED: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.TIMEOUT: status.HTTP_504_GATEWAY_TIMEOUT,
    ErrorCode.STORE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

R = TypeVar("R", bound=ServiceResponse)


def raise_for_failure(response: R) -> R:
    """Return ``response`` unchanged when it succeeded"""
    if response.success:
        return response
    code = response.error_code or ErrorCode.INTERNAL_ERROR
    raise HTTPException(
        status_code=ERROR_STATUS.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail={"error_code": code.value, "message": response.message},
    )
