"""Pricing models."""

from decimal import Decimal

from pydantic import Field

from .base import CamelModel
from .enums import PricingMode


class PricingTier(CamelModel):
    """A (day threshold, multiplier) pair for non-linear multi-day pricing.

    The multiplier scales the daily rate to give the total rental price for
    any stay up to ``tier_days`` days. Values are not range-checked here
    because stored tiers may be malformed; the calculator decides.
    """

    tier_days: int = Field(..., description="Day-count threshold")
    multiplier: Decimal = Field(..., description="Daily-rate multiplier for the whole stay")
    label: str | None = Field(default=None, description="Display label, e.g. '3 days'")
    sort_order: int = Field(default=0)


class PriceCalculation(CamelModel):
    """Price breakdown for a rental. All amounts in minor currency units."""

    days: int = Field(..., ge=1)
    daily_rate_cents_applied: int = Field(
        ..., ge=0, description="Effective average price per day"
    )
    rental_subtotal_cents: int = Field(..., ge=0)
    deposit_cents: int = Field(..., ge=0)
    total_cents: int = Field(..., ge=0)
    pricing_mode: PricingMode
    tier_label: str | None = None


class ContractPricing(CamelModel):
    """Prices printed on a rental contract for an existing reservation.

    ``recalculated`` is False when re-pricing failed and the amounts stored
    on the reservation were used instead.
    """

    reservation_id: str
    days: int = Field(..., ge=1)
    quantity: int = Field(..., ge=1)
    rental_subtotal_cents: int = Field(..., ge=0)
    deposit_cents: int = Field(..., ge=0)
    total_cents: int = Field(..., ge=0)
    recalculated: bool
