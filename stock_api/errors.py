"""
Translation of kernel errors into HTTP responses.

Every error body has ``message`` and ``code``; insufficient-stock errors
also carry the per-line ``stock_checks`` so clients can show which lines
block a document.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from stock_api.schemas import StockCheckOut
from stock_kernel.exceptions import (
    ConcurrencyError,
    ImmutabilityError,
    InsufficientStockError,
    NotFoundError,
    StockKernelError,
    ValidationError,
)
from stock_kernel.logging_config import get_logger

logger = get_logger("api.errors")


def status_for(exc: StockKernelError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, ConcurrencyError):
        return 409
    return 400


def error_body(exc: StockKernelError) -> dict[str, Any]:
    body: dict[str, Any] = {"message": str(exc), "code": exc.code}
    if isinstance(exc, ValidationError):
        body["field"] = exc.field
    if isinstance(exc, InsufficientStockError):
        body["line_no"] = exc.line_no
        body["stock_checks"] = [
            StockCheckOut.from_check(c).model_dump(mode="json") for c in exc.stock_checks
        ]
    if isinstance(exc, ImmutabilityError):
        body["entity_type"] = getattr(exc, "entity_type", None)
    return body


async def _kernel_error_handler(request: Request, exc: StockKernelError) -> JSONResponse:
    status_code = status_for(exc)
    logger.info(
        "request_failed",
        extra={
            "path": request.url.path,
            "method": request.method,
            "status_code": status_code,
            "error_code": exc.code,
        },
    )
    return JSONResponse(status_code=status_code, content=error_body(exc))


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"Invalid {field}: {first.get('msg', 'invalid request')}" if field else "Invalid request"
    return JSONResponse(
        status_code=400,
        content={
            "message": message,
            "code": ValidationError.code,
            "field": field or None,
            "errors": [
                {"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in errors
            ],
        },
    )


async def _unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "request_crashed",
        extra={"path": request.url.path, "method": request.method},
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={"message": "Internal server error", "code": "INTERNAL_FAILURE"},
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StockKernelError, _kernel_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unexpected_error_handler)
