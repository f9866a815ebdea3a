"""Ledger error taxonomy and FastAPI exception handlers"""

import logging
from typing import Any, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    success: bool = False
    code: str
    message: str
    details: Optional[dict[str, Any]] = None


class LedgerError(Exception):
    """
    Base class for errors raised by the session ledger and its collaborators.

    - code: stable identifier for clients (e.g. INSUFFICIENT_SESSIONS)
    - status_code: HTTP status used when the error reaches a router
    - message: human-readable message shown to the user
    - log_level: level used when the error is logged by the handler
    """

    code = "LEDGER_ERROR"
    status_code = 500
    log_level = logging.ERROR

    def __init__(self, message: str, *, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_response(self) -> JSONResponse:
        payload = ErrorResponse(code=self.code, message=self.message, details=self.details or None)
        return JSONResponse(status_code=self.status_code, content=payload.model_dump())


class ValidationError(LedgerError):
    code = "VALIDATION_ERROR"
    status_code = 400
    log_level = logging.WARNING


class NotFoundError(LedgerError):
    code = "NOT_FOUND"
    status_code = 404
    log_level = logging.INFO


class InsufficientSessionsError(LedgerError):
    code = "INSUFFICIENT_SESSIONS"
    status_code = 409
    log_level = logging.WARNING


class ConcurrencyConflictError(LedgerError):
    code = "CONCURRENCY_CONFLICT"
    status_code = 409
    log_level = logging.WARNING


class StaleReferenceError(LedgerError):
    code = "STALE_REFERENCE"
    status_code = 409
    log_level = logging.WARNING


class PaymentProcessingError(LedgerError):
    code = "PAYMENT_PROCESSING_ERROR"
    status_code = 503


def register_exception_handlers(app) -> None:
    """Register handlers that turn ledger errors into structured JSON failures"""

    @app.exception_handler(LedgerError)
    async def handle_ledger_error(request: Request, exc: LedgerError):
        logger.log(exc.log_level, f"{exc.code} on {request.url.path}: {exc.message}")
        return exc.to_response()

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=422, content={"detail": jsonable_errors(exc)})

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception(f"❌ Unhandled error on {request.url.path}: {exc}")
        payload = ErrorResponse(code="INTERNAL_SERVER_ERROR", message="Unexpected server error")
        return JSONResponse(status_code=500, content=payload.model_dump())


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    # pydantic error contexts may hold exception instances that JSON cannot encode
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {k: str(v) for k, v in error["ctx"].items()}
        errors.append(error)
    return errors
