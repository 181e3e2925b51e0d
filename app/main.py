"""FastAPI entrypoint for the food ordering service."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.api import api_router
from app.core.config import Settings, settings as default_settings
from app.core.errors import AppError, GatewayUnavailable, kind_for_status
from app.db.base import Base
from app.db.seed import ensure_admin_user, ensure_demo_catalog
from app.db.session import build_engine, build_session_factory
from app.services.payment import PaymentGateway, build_payment_gateway

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: Settings = app.state.settings
    Base.metadata.create_all(bind=app.state.engine)
    with app.state.session_factory() as session:
        try:
            ensure_admin_user(session, settings)
            if settings.seed_demo_data:
                ensure_demo_catalog(session)
        except Exception:
            logger.exception("[BOOTSTRAP] Seed/bootstrap failed; continuing startup.")
    yield
    close = getattr(app.state.payment_gateway, "close", None)
    if callable(close):
        close()
    app.state.engine.dispose()
    logger.info("[BOOTSTRAP] Database engine disposed")


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("[API] %s %s failed: %s", request.method, request.url.path, exc.kind)
    headers = None
    if isinstance(exc, GatewayUnavailable):
        headers = {"Retry-After": str(exc.retry_after_seconds)}
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload(), headers=headers)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail), "kind": kind_for_status(exc.status_code)},
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [{"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg", "")} for error in exc.errors()]
    return JSONResponse(
        status_code=400,
        content={"message": "Invalid request data", "kind": "ValidationError", "errors": errors},
    )


def create_app(settings: Settings | None = None, payment_gateway: PaymentGateway | None = None) -> FastAPI:
    """Build the application with its own engine, session factory and payment gateway."""
    settings = settings or default_settings
    logging.basicConfig(level=settings.log_level.upper())

    app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = build_engine(settings)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.payment_gateway = payment_gateway or build_payment_gateway(settings)

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.include_router(api_router, prefix="/api")

    @app.get("/health", tags=["health"])
    def health() -> dict[str, str | bool]:
        gateway: PaymentGateway = app.state.payment_gateway
        gateway_ok = gateway.health_check()
        if not gateway_ok:
            logger.warning("[HEALTH] Payment gateway %s failed its health check", gateway.provider_name)
        return {
            "status": "ok" if gateway_ok else "degraded",
            "payment_gateway": gateway.provider_name,
            "payment_gateway_ok": gateway_ok,
        }

    return app


app = create_app()
