# crm_segments/api/errors.py
"""
Exception handlers that turn service errors into the response envelope:

    {"success": false, "error": "<message>", ...details}
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from crm_segments.core.exceptions import CRMServiceError

logger = logging.getLogger(__name__)


def crm_error_handler(request: Request, error: CRMServiceError) -> JSONResponse:
    log = logger.warning if error.status_code < 500 else logger.error
    log(
        f"{error.error_code} on {request.method} {request.url.path}: {error.message}",
        extra={"error_code": error.error_code, "details": error.details},
    )
    return JSONResponse(
        status_code=error.status_code,
        content={"success": False, "error": error.message, **error.details},
    )


def validation_error_handler(request: Request, error: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "loc": ".".join(str(part) for part in err["loc"]),
            "message": err["msg"],
        }
        for err in error.errors()
    ]
    logger.warning(f"Request validation failed on {request.url.path}: {errors}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "error": "Request validation failed", "errors": errors},
    )


def unexpected_error_handler(request: Request, error: Exception) -> JSONResponse:
    logger.error(
        f"Unexpected error on {request.method} {request.url.path}: {error}",
        exc_info=error,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CRMServiceError, crm_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
