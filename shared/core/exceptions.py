from typing import Any, Optional
from fastapi import status

from shared.utils.app_status_code import AppStatusCode


class LifecycleError(Exception):
    """Base class for rule violations raised by the crud layer.

    Raised before any write happens, mapped to the JSON envelope by
    ``setup_exception_handlers``.
    """
    http_status: int = status.HTTP_400_BAD_REQUEST
    status_code: str = AppStatusCode.OPERATION_FAILED

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(LifecycleError):
    http_status = status.HTTP_400_BAD_REQUEST
    status_code = AppStatusCode.REQUIRED_VALIDATION_ERROR


class NotFoundError(LifecycleError):
    http_status = status.HTTP_404_NOT_FOUND
    status_code = AppStatusCode.RESOURCE_NOT_FOUND


class ForbiddenError(LifecycleError):
    http_status = status.HTTP_403_FORBIDDEN
    status_code = AppStatusCode.UNAUTHORIZED_ACTION


class InvalidStateError(LifecycleError):
    http_status = status.HTTP_400_BAD_REQUEST
    status_code = AppStatusCode.INVALID_STATE_TRANSITION


class ConflictError(LifecycleError):
    http_status = status.HTTP_409_CONFLICT
    status_code = AppStatusCode.DUPLICATE_ADD_ERROR


class CapacityError(LifecycleError):
    http_status = status.HTTP_400_BAD_REQUEST
    status_code = AppStatusCode.LIMIT_EXCEEDED


class UnexpectedError(LifecycleError):
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    status_code = AppStatusCode.OPERATION_ERROR


class WebhookSignatureError(ValidationError):
    status_code = AppStatusCode.WEBHOOK_SIGNATURE_INVALID
