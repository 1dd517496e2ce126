"""API routes package.

Routers are organized by domain:

- health: Liveness check
- availability: Stock availability checks
- pricing: Quotes and pricing tiers
- checkout: Checkout session creation and confirmation
- webhooks: Stripe events
- office: Back-office products, bookings and orders

All routers are registered in main.py with /api prefix.
"""

from rental_api.routes.availability import router as availability_router
from rental_api.routes.checkout import router as checkout_router
from rental_api.routes.health import router as health_router
from rental_api.routes.office import router as office_router
from rental_api.routes.pricing import router as pricing_router
from rental_api.routes.webhooks import router as webhooks_router

__all__ = [
    "availability_router",
    "checkout_router",
    "health_router",
    "office_router",
    "pricing_router",
    "webhooks_router",
]
