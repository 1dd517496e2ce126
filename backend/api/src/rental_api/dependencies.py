"""FastAPI dependency injection providers for shared services.

Services are lazily instantiated once per process with @lru_cache and share
the DynamoDB singleton and the cached Settings.

Usage in routes:
    from rental_api.dependencies import get_availability_service

    @router.post("/check-availability")
    async def check_availability(
        availability: AvailabilityService = Depends(get_availability_service),
    ):
        ...

Service Dependency Graph:
    Settings (get_settings)
    DynamoDBService (singleton via get_dynamodb_service)
        ├── InventoryRepository
        │       ├── AvailabilityService
        │       │       └── BookingService
        │       └── PricingService
        └── WebhookHandler (+ BookingService)
    StripeService
        └── CheckoutService (+ PricingService, BookingService)

Testing:
    Use reset_services() to clear cached instances between tests, or
    app.dependency_overrides to swap in mocks.
"""

from functools import lru_cache

from rental_shared.config import get_settings
from rental_shared.services.availability import AvailabilityService
from rental_shared.services.booking import BookingService
from rental_shared.services.checkout import CheckoutService
from rental_shared.services.dynamodb import get_dynamodb_service
from rental_shared.services.inventory import InventoryRepository
from rental_shared.services.pricing import PricingService
from rental_shared.services.stripe_service import StripeService
from rental_shared.services.webhook_handler import WebhookHandler


@lru_cache
def get_inventory_repository() -> InventoryRepository:
    return InventoryRepository(db=get_dynamodb_service(get_settings()))


@lru_cache
def get_availability_service() -> AvailabilityService:
    return AvailabilityService(get_inventory_repository(), get_settings())


@lru_cache
def get_pricing_service() -> PricingService:
    return PricingService(get_inventory_repository())


@lru_cache
def get_booking_service() -> BookingService:
    return BookingService(
        get_inventory_repository(),
        get_availability_service(),
        get_settings(),
    )


@lru_cache
def get_stripe_service() -> StripeService:
    return StripeService(get_settings())


@lru_cache
def get_checkout_service() -> CheckoutService:
    return CheckoutService(
        pricing=get_pricing_service(),
        booking=get_booking_service(),
        stripe_service=get_stripe_service(),
    )


@lru_cache
def get_webhook_handler() -> WebhookHandler:
    return WebhookHandler(get_dynamodb_service(get_settings()), get_booking_service())


def reset_services() -> None:
    """Clear all cached service instances, settings and the DynamoDB singleton.

    Call this in test fixtures to ensure clean state between tests.
    """
    from rental_shared.services.dynamodb import reset_dynamodb_service

    get_inventory_repository.cache_clear()
    get_availability_service.cache_clear()
    get_pricing_service.cache_clear()
    get_booking_service.cache_clear()
    get_stripe_service.cache_clear()
    get_checkout_service.cache_clear()
    get_webhook_handler.cache_clear()
    get_settings.cache_clear()

    reset_dynamodb_service()
