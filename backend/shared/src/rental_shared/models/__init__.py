"""Pydantic models for rental data entities."""

from .availability import AvailabilityResult, BlockedUnit, UnitBooking
from .enums import (
    BLOCKING_PAYMENT_STATUSES,
    BlockReason,
    OrderAction,
    OrderStatus,
    PaymentStatus,
    PricingMode,
)
from .errors import (
    ERROR_MESSAGES,
    ERROR_RECOVERY,
    ErrorCode,
    ErrorResponse,
    RentalError,
)
from .pricing import ContractPricing, PriceCalculation, PricingTier
from .product import Product, StockUnit
from .reservation import CustomerDetails, Reservation

__all__ = [
    # Enums
    "BLOCKING_PAYMENT_STATUSES",
    "BlockReason",
    "OrderAction",
    "OrderStatus",
    "PaymentStatus",
    "PricingMode",
    # Errors
    "ERROR_MESSAGES",
    "ERROR_RECOVERY",
    "ErrorCode",
    "ErrorResponse",
    "RentalError",
    # Catalog
    "Product",
    "StockUnit",
    # Pricing
    "ContractPricing",
    "PriceCalculation",
    "PricingTier",
    # Reservations
    "CustomerDetails",
    "Reservation",
    # Availability
    "AvailabilityResult",
    "BlockedUnit",
    "UnitBooking",
]
