"""
FastAPI application factory.

``create_app()`` wires configuration, document kinds, workflows and the
database into one application.  Tests pass their own session factory and
clock; otherwise the lifespan initializes the database from configuration.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request
from sqlalchemy.orm import Session, sessionmaker

import stock_kernel
from stock_api.errors import install_error_handlers
from stock_api.routes import build_document_router, products_router, stock_router
from stock_config import get_active_config
from stock_config.bridges import build_document_kinds, init_database
from stock_config.schema import StockConfigurationSet
from stock_kernel.db.engine import create_tables, get_session_factory
from stock_kernel.db.immutability import register_immutability_listeners
from stock_kernel.domain.clock import Clock, SystemClock
from stock_kernel.logging_config import LogContext, configure_logging, get_logger
from stock_modules.documents.workflows import build_workflows

logger = get_logger("api")

APP_NAME = "stockmaster"
REQUEST_ID_HEADER = "X-Request-Id"


def create_app(
    config: StockConfigurationSet | None = None,
    session_factory: sessionmaker[Session] | None = None,
    clock: Clock | None = None,
) -> FastAPI:
    config = config or get_active_config()
    kinds = build_document_kinds(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging()
        if app.state.session_factory is None:
            init_database(config)
            create_tables()
            app.state.session_factory = get_session_factory()
        register_immutability_listeners()
        logger.info(
            "app_started",
            extra={"config_id": config.config_id, "kinds": sorted(kinds)},
        )
        yield
        logger.info("app_stopped")

    app = FastAPI(
        title=APP_NAME,
        description="Warehouse stock ledger and document lifecycle",
        version=stock_kernel.__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.kinds = kinds
    app.state.workflows = build_workflows(kinds)
    app.state.clock = clock or SystemClock()
    app.state.session_factory = session_factory

    @app.middleware("http")
    async def bind_correlation_id(request: Request, call_next):
        correlation_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        with LogContext.bind(correlation_id=correlation_id):
            response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = correlation_id
        return response

    install_error_handlers(app)

    for kind in kinds.values():
        app.include_router(build_document_router(kind))
    app.include_router(stock_router)
    app.include_router(products_router)

    @app.get("/health")
    def health_check():
        return {"status": "healthy", "app": APP_NAME}

    return app
