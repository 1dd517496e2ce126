"""Rental pricing with day-count tiers.

``calculate_price`` is pure. Amounts are integer minor units throughout and
fractional results are rounded half-up exactly once, on the subtotal.
"""

import datetime as dt
from collections.abc import Sequence
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from rental_shared.models import (
    ContractPricing,
    ErrorCode,
    PriceCalculation,
    PricingMode,
    PricingTier,
    Product,
    RentalError,
    Reservation,
)
from rental_shared.utils.dates import days_between
from rental_shared.utils.logging import get_logger
from rental_shared.utils.money import decimal_to_cents, round_half_up, to_decimal

if TYPE_CHECKING:
    from .inventory import InventoryRepository

logger = get_logger(__name__)


def _non_negative(name: str, value: object) -> Decimal:
    try:
        amount = to_decimal(value)
    except ValueError as e:
        raise RentalError(
            ErrorCode.INVALID_INPUT,
            details={"field": name},
            message=f"{name} must be a finite number",
        ) from e
    if amount < 0:
        raise RentalError(
            ErrorCode.INVALID_INPUT,
            details={"field": name},
            message=f"{name} must not be negative",
        )
    return amount


def usable_tiers(tiers: Sequence[PricingTier] | None) -> list[PricingTier]:
    """Tiers sorted by day threshold, or an empty list if they are malformed.

    Duplicate thresholds, thresholds below one day and negative or non-finite
    multipliers make the whole list unusable; pricing then falls back to the
    linear rule.
    """
    if not tiers:
        return []
    ordered = sorted(tiers, key=lambda t: t.tier_days)
    thresholds = [t.tier_days for t in ordered]
    problems = []
    if len(set(thresholds)) != len(thresholds):
        problems.append("duplicate tier_days")
    if thresholds[0] < 1:
        problems.append("tier_days below 1")
    if any(not t.multiplier.is_finite() or t.multiplier < 0 for t in ordered):
        problems.append("invalid multiplier")
    if problems:
        logger.error(
            "Malformed pricing tiers, falling back to linear pricing",
            extra={"problems": problems, "tier_days": thresholds},
        )
        return []
    return ordered


def calculate_price(
    start_date: dt.date,
    end_date: dt.date,
    daily_rate_cents: int | Decimal,
    deposit_cents: int | Decimal = 0,
    pricing_tiers: Sequence[PricingTier] | None = None,
    auto_increment_multiplier: Decimal | int | str = Decimal("1.0"),
) -> PriceCalculation:
    """Price a rental.

    A same-day rental counts as one day. With tiers, the tier with the
    smallest threshold covering the stay sets the subtotal as
    ``rate * multiplier``; a stay longer than every threshold extends the
    highest tier by ``auto_increment_multiplier`` per extra day. Without
    tiers the price is ``rate * days``. The deposit is added unchanged.

    Raises:
        RentalError: INVALID_INPUT for negative or non-finite amounts, or
            when end_date is before start_date
    """
    rate = _non_negative("daily_rate_cents", daily_rate_cents)
    deposit = round_half_up(_non_negative("deposit_cents", deposit_cents))
    auto_increment = _non_negative("auto_increment_multiplier", auto_increment_multiplier)
    if end_date < start_date:
        raise RentalError(
            ErrorCode.INVALID_INPUT,
            details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
            message="end_date must not be before start_date",
        )

    days = max(1, days_between(start_date, end_date))
    tiers = usable_tiers(pricing_tiers)
    tier_label = None

    if tiers:
        tier = next((t for t in tiers if t.tier_days >= days), None)
        if tier is not None:
            subtotal = round_half_up(rate * tier.multiplier)
            mode = PricingMode.TIER
            tier_label = tier.label
        else:
            highest = tiers[-1]
            extra_days = days - highest.tier_days
            subtotal = round_half_up(
                rate * (highest.multiplier + extra_days * auto_increment)
            )
            mode = PricingMode.TIER_EXTENDED
            tier_label = highest.label
    else:
        subtotal = round_half_up(rate * days)
        mode = PricingMode.LINEAR

    return PriceCalculation(
        days=days,
        daily_rate_cents_applied=round_half_up(Decimal(subtotal) / days),
        rental_subtotal_cents=subtotal,
        deposit_cents=deposit,
        total_cents=subtotal + deposit,
        pricing_mode=mode,
        tier_label=tier_label,
    )


class PricingService:
    """Service for product pricing lookups and quotes."""

    def __init__(self, repository: "InventoryRepository") -> None:
        self.repository = repository

    def get_product(self, product_id: str) -> Product:
        product = self.repository.get_product(product_id)
        if product is None:
            raise RentalError(ErrorCode.NOT_FOUND, details={"product_id": product_id})
        return product

    def get_tiers(self, product_id: str) -> tuple[list[PricingTier], Decimal]:
        """Tiers ordered by threshold and the product's auto-increment multiplier."""
        product = self.get_product(product_id)
        return self.repository.list_pricing_tiers(product_id), product.auto_increment_multiplier

    def replace_tiers(
        self,
        product_id: str,
        tiers: list[PricingTier],
        auto_increment_multiplier: Decimal | None = None,
    ) -> tuple[list[PricingTier], Decimal]:
        """Replace a product's tiers. Labels default to ``"{n} days"``.

        Raises:
            RentalError: NOT_FOUND for an unknown product, INVALID_INPUT for
                duplicate thresholds
        """
        self.get_product(product_id)
        thresholds = [t.tier_days for t in tiers]
        if len(set(thresholds)) != len(thresholds):
            raise RentalError(
                ErrorCode.INVALID_INPUT,
                details={"tier_days": thresholds},
                message="Pricing tiers must have distinct day thresholds",
            )
        normalized = [
            tier.model_copy(
                update={
                    "label": tier.label or f"{tier.tier_days} days",
                    "sort_order": index,
                }
            )
            for index, tier in enumerate(sorted(tiers, key=lambda t: t.tier_days))
        ]
        if not self.repository.replace_pricing_tiers(
            product_id, normalized, auto_increment_multiplier
        ):
            raise RentalError(ErrorCode.NOT_FOUND, details={"product_id": product_id})
        logger.info(
            "Pricing tiers replaced",
            extra={"product_id": product_id, "tier_days": [t.tier_days for t in normalized]},
        )
        return self.get_tiers(product_id)

    def quote_for_product(
        self, product: Product, start_date: dt.date, end_date: dt.date
    ) -> PriceCalculation:
        if start_date > end_date:
            raise RentalError(
                ErrorCode.INVALID_RANGE,
                details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
            )
        return calculate_price(
            start_date,
            end_date,
            product.daily_rate_cents,
            product.deposit_cents,
            self.repository.list_pricing_tiers(product.product_id),
            product.auto_increment_multiplier,
        )

    def quote(self, product_id: str, start_date: dt.date, end_date: dt.date) -> PriceCalculation:
        """Price a rental of one unit of a product using its stored tiers."""
        return self.quote_for_product(self.get_product(product_id), start_date, end_date)

    def reprice_reservation(self, reservation: Reservation) -> ContractPricing:
        """Recompute a reservation's prices for its contract.

        Never fails: if the product is gone or pricing raises, the DECIMAL
        amounts stored on the reservation are used and the failure is logged.
        """
        quantity = max(1, len(reservation.stock_item_ids))
        try:
            price = self.quote(
                reservation.product_id, reservation.start_date, reservation.end_date
            )
        except (
            RentalError,
            ClientError,
            BotoCoreError,
            KeyError,
            InvalidOperation,
            ValidationError,
        ) as e:
            logger.error(
                "Re-pricing failed, using stored reservation amounts",
                extra={"reservation_id": reservation.reservation_id, "error": str(e)},
                exc_info=True,
            )
            subtotal = decimal_to_cents(reservation.total_rental_price)
            deposit = decimal_to_cents(reservation.total_deposit)
            return ContractPricing(
                reservation_id=reservation.reservation_id,
                days=max(1, days_between(reservation.start_date, reservation.end_date)),
                quantity=quantity,
                rental_subtotal_cents=subtotal,
                deposit_cents=deposit,
                total_cents=subtotal + deposit,
                recalculated=False,
            )

        subtotal = price.rental_subtotal_cents * quantity
        deposit = price.deposit_cents * quantity
        return ContractPricing(
            reservation_id=reservation.reservation_id,
            days=price.days,
            quantity=quantity,
            rental_subtotal_cents=subtotal,
            deposit_cents=deposit,
            total_cents=subtotal + deposit,
            recalculated=True,
        )
