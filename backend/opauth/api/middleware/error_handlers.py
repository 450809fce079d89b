"""
Error Handlers

Map authorization outcomes onto HTTP responses. Every error body has the
shape {"error": {"code", "message", "details"}} and carries the request's
correlation id.
"""
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from ...config.settings import settings
from ...domain.errors import DomainError, StorageUnavailableError
from ...utils.logger import get_logger, get_correlation_id

logger = get_logger(__name__)


def _error_response(
    status_code: int,
    content: Dict[str, Any],
    headers: Optional[Dict[str, str]] = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(content),
        headers={"X-Correlation-Id": get_correlation_id() or "", **(headers or {})}
    )


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """
    Handle domain errors.

    Denials are expected outcomes and log at WARNING. A 401 tells the
    client a bearer credential is needed; a storage outage tells it when
    to retry.
    """
    log = logger.error if exc.http_status >= 500 else logger.warning
    log(
        f"Domain error: {exc.error_code} - {exc.message}",
        extra={"error_code": exc.error_code, "details": exc.details}
    )

    headers: Dict[str, str] = {}
    if exc.http_status == status.HTTP_401_UNAUTHORIZED:
        headers["WWW-Authenticate"] = "Bearer"
    if isinstance(exc, StorageUnavailableError):
        headers["Retry-After"] = str(settings.storage_retry_after_seconds)

    return _error_response(exc.http_status, exc.to_dict(), headers)


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed request bodies map to 400 VALIDATION_ERROR"""
    logger.warning(
        f"Request validation failed on {request.method} {request.url.path}",
        extra={"error_code": "VALIDATION_ERROR", "details": {"errors": exc.errors()}}
    )
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        {
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Request validation failed",
                "details": {"errors": exc.errors()}
            }
        }
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Unexpected errors map to 500; the stack trace goes to the error log only"""
    logger.error(f"Unexpected error: {exc}", exc_info=True)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        {
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "details": {}
            }
        }
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application"""
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)
