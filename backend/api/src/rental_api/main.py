"""FastAPI application for the rental REST API.

Endpoints (all under /api):
- Health check
- Availability checks and price quotes for the storefront
- Checkout session creation/confirmation and the Stripe webhook
- Office product, booking and order management
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum

from rental_api.exceptions import register_exception_handlers
from rental_api.middleware.correlation import CORRELATION_ID_HEADER, CorrelationIdMiddleware
from rental_api.routes import (
    availability_router,
    checkout_router,
    health_router,
    office_router,
    pricing_router,
    webhooks_router,
)
from rental_shared.config import get_settings
from rental_shared.utils.logging import configure_logging

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Build the FastAPI application from the current settings."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Rental API",
        description="Availability, pricing, checkout and office operations for rentals",
        version="0.1.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[CORRELATION_ID_HEADER],
    )
    app.add_middleware(CorrelationIdMiddleware)

    register_exception_handlers(app)

    # /api/* is routed to API Gateway by CloudFront
    for router in (
        health_router,
        availability_router,
        pricing_router,
        checkout_router,
        webhooks_router,
        office_router,
    ):
        app.include_router(router, prefix="/api")

    logger.info("Rental API configured for environment %s", settings.environment)
    return app


app = create_app()

# Lambda handler - Mangum wraps FastAPI for AWS Lambda + API Gateway
handler = Mangum(app, lifespan="off")


def run_server(host: str = "0.0.0.0", port: int = 8080, reload: bool = True) -> None:
    """Run the FastAPI server.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to listen on (default: 8080)
        reload: Enable hot reload for development (default: True)
    """
    import uvicorn

    if reload:
        uvicorn.run(
            "rental_api.main:app",
            host=host,
            port=port,
            reload=True,
            reload_dirs=["backend/api/src", "backend/shared/src"],
        )
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
