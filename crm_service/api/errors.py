"""Exception handlers that turn every failure into an ErrorResponse body."""
from typing import List, Optional
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from crm_service.application.errors import (
    BusinessRuleError,
    NotFoundError,
    RequestValidationFailed,
)
from crm_service.application.schemas import ErrorResponse
from crm_service.core.logging_config import get_logger

logger = get_logger(__name__)

def error_response(request: Request, status_code: int, message: str,
                   details: Optional[List[str]] = None) -> JSONResponse:
    body = ErrorResponse(message=message, status=status_code, path=request.url.path, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", exclude_none=True))

def _field_name(loc) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or "request"

async def handle_not_found(request: Request, exc: NotFoundError):
    logger.warning(f"Entity not found: {exc.message}")
    return error_response(request, status.HTTP_404_NOT_FOUND, exc.message)

async def handle_business_rule(request: Request, exc: BusinessRuleError):
    logger.warning(f"Business exception: {exc.message}")
    return error_response(request, status.HTTP_400_BAD_REQUEST, exc.message)

async def handle_validation_failed(request: Request, exc: RequestValidationFailed):
    logger.warning(f"Validation error: {exc.details}")
    return error_response(request, status.HTTP_400_BAD_REQUEST, exc.message, exc.details)

async def handle_request_validation(request: Request, exc: RequestValidationError):
    details = [f"{_field_name(err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()]
    logger.warning(f"Validation error: {details}")
    return error_response(request, status.HTTP_400_BAD_REQUEST, "Validation failed", details)

async def handle_integrity(request: Request, exc: IntegrityError):
    logger.error(f"Data integrity violation on {request.method} {request.url.path}")
    raw = str(exc.orig).lower() if exc.orig is not None else ""
    message = "Data integrity violation"
    if "unique" in raw or "duplicate" in raw:
        message = "Duplicate entry found"
    return error_response(request, status.HTTP_409_CONFLICT, message)

async def handle_http(request: Request, exc: StarletteHTTPException):
    return error_response(request, exc.status_code, str(exc.detail))

async def handle_unexpected(request: Request, exc: Exception):
    logger.error(f"Unexpected error occurred: {exc}", exc_info=exc)
    return error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(NotFoundError, handle_not_found)
    app.add_exception_handler(BusinessRuleError, handle_business_rule)
    app.add_exception_handler(RequestValidationFailed, handle_validation_failed)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(IntegrityError, handle_integrity)
    app.add_exception_handler(StarletteHTTPException, handle_http)
    app.add_exception_handler(Exception, handle_unexpected)
