"""FastAPI application factory: routers, error handlers, request logging."""

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from rxreturns.api.routes import admin, credits, inventory, optimization, packages, products, returns
from rxreturns.config import default_fee_schedule
from rxreturns.db import init_db
from rxreturns.errors import AppError
from rxreturns.utils.logger import bind_context, clear_context, get_logger
from rxreturns.utils.tracing import init_tracing, shutdown_tracing

logger = get_logger("rxreturns.api.app")


@asynccontextmanager
async def _lifespan(app: FastAPI):
    init_db()
    init_tracing()
    logger.info("api.lifespan.started")
    yield
    shutdown_tracing()
    logger.info("api.lifespan.stopped")


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    msg = first.get("msg", "Invalid value")
    return f"{loc}: {msg}" if loc else msg


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("api.error", path=request.url.path, status=exc.status_code, message=exc.message)
        else:
            logger.info("api.fail", path=request.url.path, status=exc.status_code, message=exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        message = _validation_message(exc)
        logger.info("api.fail", path=request.url.path, status=400, message=message)
        return JSONResponse(status_code=400, content={"status": "fail", "message": message})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("api.unhandled_error", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=500, content={"status": "error", "message": "Internal server error"})


def create_app() -> FastAPI:
    """Create the FastAPI app. Database and tracing are initialised in the lifespan."""
    app = FastAPI(
        title="RxReturns Optimization Service",
        version="0.1.0",
        lifespan=_lifespan,
    )
    app.state.fee_schedule = default_fee_schedule()

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        clear_context()
        bind_context(request_id=request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            clear_context()
        response.headers["x-request-id"] = request_id
        logger.info(
            "http.request",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return response

    _register_error_handlers(app)

    app.include_router(optimization.router)
    app.include_router(packages.router)
    app.include_router(credits.router)
    app.include_router(inventory.router)
    app.include_router(returns.router)
    app.include_router(products.router)
    app.include_router(admin.router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
