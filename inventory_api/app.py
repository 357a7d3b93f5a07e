"""
Application factory for the inventory HTTP API.

Startup builds the long-lived pieces once (settings, Database, Clock),
creates tables, registers the ORM immutability listeners and, when enabled,
starts the hold expiry sweep.  Kernel exceptions are rendered by one handler
from their ``code`` and structured attributes.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic.alias_generators import to_camel

from inventory_api.dependencies import InventoryGateway
from inventory_api.routes import health, holds, inventory, wholesale
from inventory_batch.scheduler import HoldSweepScheduler
from inventory_batch.tasks import ExpireHoldsTask
from inventory_config import InventorySettings, get_settings
from inventory_kernel import __version__
from inventory_kernel.db.engine import Database
from inventory_kernel.db.immutability import register_immutability_listeners
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.exceptions import InventoryKernelError
from inventory_kernel.logging_config import LogContext, configure_logging, get_logger

logger = get_logger("api")

# Codes that render as 404; every other kernel error is a 400.
NOT_FOUND_CODES = frozenset({
    "HOLD_NOT_FOUND",
    "WHOLESALE_ORDER_NOT_FOUND",
    "ALREADY_VERIFIED",
})


def status_for(exc: InventoryKernelError) -> int:
    return 404 if exc.code in NOT_FOUND_CODES else 400


def error_body(exc: InventoryKernelError) -> dict:
    body = {"error": exc.code, "message": str(exc)}
    for key, value in vars(exc).items():
        if key.startswith("_"):
            continue
        body[to_camel(key)] = value if isinstance(value, (int, str, bool)) or value is None else str(value)
    return body


async def _kernel_error_handler(request: Request, exc: InventoryKernelError) -> JSONResponse:
    status_code = status_for(exc)
    logger.warning(
        "request_rejected",
        extra={
            "path": request.url.path,
            "error_code": exc.code,
            "status_code": status_code,
        },
    )
    return JSONResponse(status_code=status_code, content=error_body(exc))


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"loc": list(error["loc"]), "msg": error["msg"], "type": error["type"]}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"error": "VALIDATION_ERROR", "details": details},
    )


def create_app(
    settings: InventorySettings | None = None,
    database: Database | None = None,
    clock: Clock | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Effective settings; loaded from YAML/environment when None.
        database: Pre-built Database (tests share one); built from
            ``settings.database_url`` when None.
        clock: Time source for every service and the sweep.
    """
    settings = settings or get_settings()
    clock = clock or SystemClock()
    owns_database = database is None
    database = database or Database(settings.database_url, echo=settings.database_echo)

    gateway = InventoryGateway(
        database,
        clock,
        hold_ttl=settings.hold_ttl,
        case_sku_suffix=settings.case_sku_suffix,
        default_org_id=settings.default_org_id,
    )
    sweeper = HoldSweepScheduler(
        database.session_factory,
        clock=clock,
        task=ExpireHoldsTask(),
        batch_limit=settings.sweep_batch_limit,
        tick_interval_seconds=settings.sweep_interval_seconds,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(level=settings.log_level_value)
        database.create_tables()
        register_immutability_listeners()
        if settings.sweep_enabled:
            sweeper.start()
        logger.info(
            "api_started",
            extra={"dialect": database.dialect, "sweep_enabled": settings.sweep_enabled},
        )
        try:
            yield
        finally:
            if sweeper.is_running:
                sweeper.stop()
            if owns_database:
                database.dispose()
            logger.info("api_stopped")

    app = FastAPI(title="Store Inventory API", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.gateway = gateway
    app.state.sweeper = sweeper

    @app.middleware("http")
    async def bind_log_context(request: Request, call_next):
        correlation_id = request.headers.get("x-correlation-id") or str(uuid4())
        with LogContext.bind(
            correlation_id=correlation_id,
            store_id=request.cookies.get("store-id"),
            actor_id=request.cookies.get("store-role"),
        ):
            response = await call_next(request)
        response.headers["x-correlation-id"] = correlation_id
        return response

    app.add_exception_handler(InventoryKernelError, _kernel_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    app.include_router(health.router)
    app.include_router(holds.router)
    app.include_router(inventory.router)
    app.include_router(wholesale.router)
    return app
