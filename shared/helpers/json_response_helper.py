from typing import Any
from fastapi import HTTPException

from shared.utils.app_status_code import AppStatusCode
from shared.core.schemas import JsonOutResult


def success_response(data: Any, message: str = "Success",
                     status_code: str = AppStatusCode.DATA_RETRIEVED_SUCCESSFULLY) -> JsonOutResult:
    return JsonOutResult(
        data=data,
        success=True,
        status_code=status_code,
        message=message
    )


def error_response(message: str, status_code: str = AppStatusCode.OPERATION_FAILED,
                   http_status: int = 400, data: Any = None):
    """Abort the request with an envelope the exception handler passes through as-is."""
    raise HTTPException(
        status_code=http_status,
        detail=JsonOutResult(
            data=data,
            success=False,
            status_code=status_code,
            message=message
        ).model_dump(mode="json")
    )
