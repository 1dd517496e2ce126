"""API models for pricing endpoints."""

from decimal import Decimal

from pydantic import Field

from rental_shared.models import PricingTier
from rental_shared.models.base import CamelModel

from .common import DateRangeRequest


class QuoteRequest(DateRangeRequest):
    """Body of ``POST /api/pricing/quote``."""


class PricingTierInput(CamelModel):
    tier_days: int = Field(..., ge=1, le=365, examples=[3])
    multiplier: Decimal = Field(..., ge=0, max_digits=8, decimal_places=3, examples=["2.5"])
    label: str | None = Field(default=None, max_length=50, examples=["3 days"])

    def to_tier(self) -> PricingTier:
        return PricingTier(tier_days=self.tier_days, multiplier=self.multiplier, label=self.label)


class ReplacePricingTiersRequest(CamelModel):
    """Body of ``PUT /api/pricing-tiers``. Replaces every tier of the product."""

    product_id: str = Field(..., min_length=1, max_length=100)
    tiers: list[PricingTierInput] = Field(default_factory=list, max_length=50)
    auto_increment_multiplier: Decimal | None = Field(
        default=None, ge=0, max_digits=8, decimal_places=3
    )


class PricingTiersResponse(CamelModel):
    product_id: str
    tiers: list[PricingTier]
    auto_increment_multiplier: Decimal
