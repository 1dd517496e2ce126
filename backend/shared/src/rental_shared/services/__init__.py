"""Backend services for the rental availability and pricing engine."""

from .availability import AvailabilityService, resolve_availability
from .booking import BookingService
from .checkout import CheckoutService, CheckoutSession
from .dynamodb import DynamoDBService, get_dynamodb_service, reset_dynamodb_service
from .inventory import InventoryRepository
from .pricing import PricingService, calculate_price
from .ssm_service import SSMService, SSMServiceError
from .stripe_service import StripeService, StripeServiceError
from .webhook_handler import WebhookHandler

__all__ = [
    "AvailabilityService",
    "BookingService",
    "CheckoutService",
    "CheckoutSession",
    "DynamoDBService",
    "InventoryRepository",
    "PricingService",
    "SSMService",
    "SSMServiceError",
    "StripeService",
    "StripeServiceError",
    "WebhookHandler",
    "calculate_price",
    "get_dynamodb_service",
    "reset_dynamodb_service",
    "resolve_availability",
]
