import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from sqlalchemy.exc import IntegrityError
from shared.core.schemas import JsonOutResult
from shared.core.exceptions import LifecycleError, UnexpectedError
from shared.utils.app_status_code import AppStatusCode

logger = logging.getLogger(__name__)


def _failure(message: str, status_code: str, http_status: int, data=None) -> JSONResponse:
    wrapped = JsonOutResult(
        data=data,
        success=False,
        status_code=status_code,
        message=message
    ).model_dump(mode="json")
    return JSONResponse(content=wrapped, status_code=http_status)


def setup_exception_handlers(app: FastAPI):

    @app.exception_handler(LifecycleError)
    async def lifecycle_exception_handler(request: Request, exc: LifecycleError):
        return _failure(exc.message, exc.status_code, exc.http_status, exc.details)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        # error_response() already packs an envelope into detail
        if isinstance(exc.detail, dict) and "success" in exc.detail:
            return JSONResponse(content=exc.detail, status_code=exc.status_code,
                                headers=getattr(exc, "headers", None))
        return _failure(str(exc.detail), str(exc.status_code), exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"path": ".".join(str(loc) for loc in err["loc"]), "msg": err["msg"]}
            for err in exc.errors()
        ]
        return _failure("Validation failed", AppStatusCode.INVALID_INPUT, 400, errors)

    @app.exception_handler(IntegrityError)
    async def integrity_exception_handler(request: Request, exc: IntegrityError):
        logger.warning("Integrity error on %s: %s", request.url.path, exc.orig)
        return _failure("Resource already exists or conflicts with an existing one",
                        AppStatusCode.DUPLICATE_ADD_ERROR, 409)

    # Catch all unhandled exceptions
    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s",
                         request.method, request.url.path)
        error = UnexpectedError("Internal server error")
        return _failure(error.message, error.status_code, error.http_status)
