"""Pricing endpoints.

Amounts are integer minor units (grosze); multipliers are decimal strings.
"""

from fastapi import APIRouter, Depends, Query

from rental_api.dependencies import get_pricing_service
from rental_api.models.pricing import (
    PricingTiersResponse,
    QuoteRequest,
    ReplacePricingTiersRequest,
)
from rental_api.security import require_office
from rental_shared.models import PriceCalculation
from rental_shared.services.pricing import PricingService

router = APIRouter(tags=["pricing"])


@router.post(
    "/pricing/quote",
    summary="Price a rental",
    description="""
Price one unit of a product for a date range using its pricing tiers.

The stay length is `endDate - startDate` days, at least 1. The tier with the
smallest threshold covering the stay sets the price; longer stays extend the
highest tier by the product's auto-increment multiplier per extra day.
Products without tiers are priced at the daily rate per day. The deposit is
added on top.
""",
    response_model=PriceCalculation,
    responses={400: {"description": "Invalid date range"}, 404: {"description": "Product not found"}},
)
async def quote(
    body: QuoteRequest,
    service: PricingService = Depends(get_pricing_service),
) -> PriceCalculation:
    start_date, end_date = body.date_range()
    return service.quote(body.product_id, start_date, end_date)


@router.get(
    "/pricing-tiers",
    summary="Get a product's pricing tiers",
    response_model=PricingTiersResponse,
    responses={404: {"description": "Product not found"}},
)
async def get_pricing_tiers(
    product_id: str = Query(..., alias="productId", min_length=1),
    service: PricingService = Depends(get_pricing_service),
) -> PricingTiersResponse:
    tiers, multiplier = service.get_tiers(product_id)
    return PricingTiersResponse(
        product_id=product_id, tiers=tiers, auto_increment_multiplier=multiplier
    )


@router.put(
    "/pricing-tiers",
    summary="Replace a product's pricing tiers",
    response_model=PricingTiersResponse,
    dependencies=[Depends(require_office)],
    responses={
        400: {"description": "Duplicate tier thresholds"},
        401: {"description": "Office token missing or invalid"},
        404: {"description": "Product not found"},
    },
)
async def replace_pricing_tiers(
    body: ReplacePricingTiersRequest,
    service: PricingService = Depends(get_pricing_service),
) -> PricingTiersResponse:
    tiers, multiplier = service.replace_tiers(
        body.product_id,
        [t.to_tier() for t in body.tiers],
        body.auto_increment_multiplier,
    )
    return PricingTiersResponse(
        product_id=body.product_id, tiers=tiers, auto_increment_multiplier=multiplier
    )
