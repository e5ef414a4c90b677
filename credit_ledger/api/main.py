"""FastAPI application factory"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from credit_ledger.api.dependencies import get_request_id
from credit_ledger.api.middleware import RequestIDMiddleware, MetricsMiddleware
from credit_ledger.api.v1 import accounts, payments, reminders, reports, sales
from credit_ledger.api.v1.schemas import ErrorResponse
from credit_ledger.domain.exceptions import (
    BusinessRuleViolation,
    ConcurrencyError,
    LedgerError,
    LedgerValidationError,
    NotFoundError,
)
from credit_ledger.infrastructure.observability.logging import setup_logging
from credit_ledger.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def status_for(error: LedgerError) -> int:
    """HTTP status for each error family"""
    if isinstance(error, LedgerValidationError):
        return 422
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, BusinessRuleViolation):
        return 409
    if isinstance(error, ConcurrencyError):
        return 503  # Retryable: nothing was committed
    return 500


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    status_code = status_for(exc)
    request_id = get_request_id(request)

    if status_code >= 500:
        logging.error(f"Ledger failure: {exc}", extra={"request_id": request_id, "error_code": exc.code})
    detail = str(exc) if status_code != 500 else "Internal ledger error"

    response = JSONResponse(status_code=status_code, content=ErrorResponse(code=exc.code, detail=detail).model_dump())
    if isinstance(exc, ConcurrencyError):
        response.headers["Retry-After"] = "1"
    return response


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Credit Ledger",
        description="Customer credit accounts, payment reconciliation, and reminder sweeps",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(LedgerError, ledger_error_handler)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(accounts.router, prefix="/v1", tags=["accounts"])
    app.include_router(sales.router, prefix="/v1", tags=["credit-sales"])
    app.include_router(payments.router, prefix="/v1", tags=["payments"])
    app.include_router(reports.router, prefix="/v1", tags=["reports"])
    app.include_router(reminders.router, prefix="/v1", tags=["reminders"])

    return app


app = create_app()
