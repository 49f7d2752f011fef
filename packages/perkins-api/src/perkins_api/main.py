"""API composition root."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from perkins_api.config import ApiSettings, load_settings
from perkins_api.dependencies import ApiContainer, build_container
from perkins_api.middleware import RequestLoggingMiddleware, setup_logging
from perkins_api.routers import delivery, orders, payments, products

logger = logging.getLogger("perkins.api")


def _wire(app: FastAPI, container: ApiContainer) -> None:
    app.dependency_overrides[payments.get_deps] = lambda: payments.PaymentDependencies(
        mercadopago=container.mercadopago,
    )
    app.include_router(payments.router, prefix="/api")

    app.dependency_overrides[delivery.get_deps] = lambda: delivery.DeliveryDependencies(
        settings=container.settings,
        calendar=container.calendar,
        orders=container.orders,
    )
    app.include_router(delivery.router, prefix="/api")

    app.dependency_overrides[orders.get_deps] = lambda: orders.OrderDependencies(
        orders=container.orders,
        calendar=container.calendar,
    )
    app.include_router(orders.router, prefix="/api")

    app.dependency_overrides[products.get_deps] = lambda: products.ProductDependencies(
        overrides=container.overrides,
    )
    app.include_router(products.router, prefix="/api")


def create_app(
    settings: Optional[ApiSettings] = None,
    container: Optional[ApiContainer] = None,
) -> FastAPI:
    settings = settings or load_settings()
    container = container or build_container(settings)

    setup_logging(
        json_format=settings.environment != "dev",
        level=settings.log_level,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting Perkins API...")
        yield
        logger.info("Shutting down Perkins API...")
        await container.close()

    app = FastAPI(
        title="Perkins Storefront API",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_middleware(
        RequestLoggingMiddleware,
        exclude_paths=["/", "/health", "/docs", "/openapi.json"],
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )

    _wire(app, container)

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "payments_configured": container.mercadopago.is_configured,
            "calendar_configured": container.calendar.is_configured,
        }

    return app


if __name__ == "__main__":
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "perkins_api.main:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.environment == "dev",
    )
