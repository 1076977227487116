import logging

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from shared.core.exceptions import (
    AccessDenied,
    ConcurrentModification,
    EntityNotFound,
    InvalidLeaseParameters,
    LedgerError,
    OperationCancelled,
    StorageUnavailable,
)
from shared.helpers.json_response_helper import failure_payload
from shared.utils.app_status_code import AppStatusCode

logger = logging.getLogger(__name__)

# (http status, app status code) per core error, most specific first
LEDGER_ERROR_STATUS = [
    (InvalidLeaseParameters, 400, AppStatusCode.INVALID_INPUT),
    (EntityNotFound, 404, AppStatusCode.ENTITY_NOT_FOUND),
    (AccessDenied, 403, AppStatusCode.UNAUTHORIZED_ACTION),
    (ConcurrentModification, 409, AppStatusCode.CONCURRENT_MODIFICATION),
    (StorageUnavailable, 503, AppStatusCode.STORAGE_UNAVAILABLE),
    (OperationCancelled, 408, AppStatusCode.OPERATION_CANCELLED),
]


def status_for(exc: LedgerError):
    for error_type, http_status, app_code in LEDGER_ERROR_STATUS:
        if isinstance(exc, error_type):
            return http_status, app_code
    return 400, AppStatusCode.OPERATION_FAILED


def setup_exception_handlers(app: FastAPI):

    @app.exception_handler(LedgerError)
    async def ledger_exception_handler(request: Request, exc: LedgerError):
        http_status, app_code = status_for(exc)
        logger.warning("%s %s -> %s: %s", request.method,
                       request.url.path, exc.code, exc.message)
        wrapped = failure_payload(exc.message, app_code, data={"code": exc.code})
        return JSONResponse(content=wrapped, status_code=http_status)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        if isinstance(exc.detail, dict) and "status_code" in exc.detail:
            wrapped = exc.detail
        else:
            wrapped = failure_payload(str(exc.detail), str(exc.status_code))
        return JSONResponse(content=wrapped, status_code=exc.status_code or 400, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        wrapped = failure_payload(str(exc), AppStatusCode.INVALID_INPUT)
        return JSONResponse(content=wrapped, status_code=422)

    # Catch all unhandled exceptions
    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s",
                         request.method, request.url.path)
        wrapped = failure_payload("Internal server error",
                                  AppStatusCode.OPERATION_FAILED)
        return JSONResponse(content=wrapped, status_code=500)
