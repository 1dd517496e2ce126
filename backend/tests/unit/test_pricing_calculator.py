"""Unit tests for the rental price calculator.

Test categories:
- Tier selection (smallest threshold covering the stay)
- Extension beyond the highest tier
- Linear pricing and malformed tier fallback
- Input validation
"""

import datetime as dt
from decimal import Decimal

import pytest

from rental_shared.models import ErrorCode, PricingMode, PricingTier, RentalError
from rental_shared.services.pricing import calculate_price, usable_tiers

JUNE_10 = dt.date(2026, 6, 10)


def _days_after(days: int) -> dt.date:
    return JUNE_10 + dt.timedelta(days=days)


class TestTierSelection:
    """The smallest tier whose threshold covers the stay prices it."""

    def test_five_days_uses_seven_day_tier(self, sample_tiers) -> None:
        price = calculate_price(JUNE_10, _days_after(5), 10000, pricing_tiers=sample_tiers)

        assert price.days == 5
        assert price.rental_subtotal_cents == 50000
        assert price.pricing_mode == PricingMode.TIER
        assert price.tier_label == "Week"

    def test_two_days_uses_three_day_tier(self, sample_tiers) -> None:
        price = calculate_price(JUNE_10, _days_after(2), 10000, pricing_tiers=sample_tiers)

        assert price.rental_subtotal_cents == 25000
        assert price.daily_rate_cents_applied == 12500

    def test_exact_threshold_uses_that_tier(self, sample_tiers) -> None:
        price = calculate_price(JUNE_10, _days_after(3), 10000, pricing_tiers=sample_tiers)

        assert price.rental_subtotal_cents == 25000
        assert price.tier_label == "3 days"

    def test_single_day_rental_counts_as_one_day(self, sample_tiers) -> None:
        price = calculate_price(JUNE_10, JUNE_10, 10000, pricing_tiers=sample_tiers)

        assert price.days == 1
        assert price.rental_subtotal_cents == 10000

    def test_unsorted_tiers_give_same_result(self, sample_tiers) -> None:
        shuffled = [sample_tiers[2], sample_tiers[0], sample_tiers[1]]

        assert calculate_price(
            JUNE_10, _days_after(2), 10000, pricing_tiers=shuffled
        ) == calculate_price(JUNE_10, _days_after(2), 10000, pricing_tiers=sample_tiers)

    def test_fractional_subtotal_rounds_half_up(self) -> None:
        tiers = [PricingTier(tier_days=2, multiplier=Decimal("1.5"))]

        price = calculate_price(JUNE_10, _days_after(2), 3333, pricing_tiers=tiers)

        # 3333 * 1.5 = 4999.5
        assert price.rental_subtotal_cents == 5000


class TestBeyondHighestTier:
    def test_ten_days_extends_seven_day_tier(self, sample_tiers) -> None:
        price = calculate_price(
            JUNE_10,
            _days_after(10),
            10000,
            pricing_tiers=sample_tiers,
            auto_increment_multiplier=Decimal("0.3"),
        )

        # 10000 * (5 + 3 * 0.3)
        assert price.rental_subtotal_cents == 59000
        assert price.pricing_mode == PricingMode.TIER_EXTENDED
        assert price.tier_label == "Week"

    def test_default_multiplier_adds_full_daily_rate(self, sample_tiers) -> None:
        price = calculate_price(JUNE_10, _days_after(9), 10000, pricing_tiers=sample_tiers)

        assert price.rental_subtotal_cents == 70000

    def test_zero_multiplier_caps_price_at_highest_tier(self, sample_tiers) -> None:
        price = calculate_price(
            JUNE_10,
            _days_after(30),
            10000,
            pricing_tiers=sample_tiers,
            auto_increment_multiplier=0,
        )

        assert price.rental_subtotal_cents == 50000

    def test_multiplier_accepts_numeric_string(self, sample_tiers) -> None:
        price = calculate_price(
            JUNE_10,
            _days_after(8),
            10000,
            pricing_tiers=sample_tiers,
            auto_increment_multiplier="0.5",
        )

        assert price.rental_subtotal_cents == 55000


class TestLinearPricing:
    def test_no_tiers_prices_per_day(self) -> None:
        price = calculate_price(JUNE_10, _days_after(4), 3500)

        assert price.rental_subtotal_cents == 14000
        assert price.pricing_mode == PricingMode.LINEAR
        assert price.tier_label is None

    def test_empty_tier_list_is_linear(self) -> None:
        price = calculate_price(JUNE_10, _days_after(4), 3500, pricing_tiers=[])

        assert price.pricing_mode == PricingMode.LINEAR

    def test_decimal_rate_rounds_once(self) -> None:
        price = calculate_price(JUNE_10, _days_after(3), Decimal("99.5"))

        # 298.5 -> 299
        assert price.rental_subtotal_cents == 299


class TestDeposit:
    def test_total_is_subtotal_plus_deposit(self, sample_tiers) -> None:
        price = calculate_price(
            JUNE_10, _days_after(5), 10000, deposit_cents=50000, pricing_tiers=sample_tiers
        )

        assert price.deposit_cents == 50000
        assert price.total_cents == 100000

    def test_deposit_is_not_scaled_by_days(self) -> None:
        short = calculate_price(JUNE_10, _days_after(1), 1000, deposit_cents=20000)
        long = calculate_price(JUNE_10, _days_after(20), 1000, deposit_cents=20000)

        assert short.deposit_cents == long.deposit_cents == 20000

    def test_repeated_calls_return_equal_results(self, sample_tiers) -> None:
        first = calculate_price(JUNE_10, _days_after(10), 10000, 500, sample_tiers, "0.3")
        second = calculate_price(JUNE_10, _days_after(10), 10000, 500, sample_tiers, "0.3")

        assert first == second


class TestMalformedTiers:
    """Malformed tier lists fall back to linear pricing instead of failing."""

    @pytest.mark.parametrize(
        "tiers",
        [
            [
                PricingTier(tier_days=3, multiplier=Decimal("2")),
                PricingTier(tier_days=3, multiplier=Decimal("2.5")),
            ],
            [PricingTier(tier_days=0, multiplier=Decimal("1"))],
            [PricingTier(tier_days=7, multiplier=Decimal("-1"))],
        ],
        ids=["duplicate_days", "zero_days", "negative_multiplier"],
    )
    def test_falls_back_to_linear(self, tiers, caplog) -> None:
        price = calculate_price(JUNE_10, _days_after(4), 10000, pricing_tiers=tiers)

        assert price.pricing_mode == PricingMode.LINEAR
        assert price.rental_subtotal_cents == 40000
        assert "Malformed pricing tiers" in caplog.text

    def test_usable_tiers_sorts_valid_list(self, sample_tiers) -> None:
        ordered = usable_tiers(list(reversed(sample_tiers)))

        assert [t.tier_days for t in ordered] == [1, 3, 7]


class TestInvalidInput:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"daily_rate_cents": -1},
            {"daily_rate_cents": 1000, "deposit_cents": -5},
            {"daily_rate_cents": Decimal("NaN")},
            {"daily_rate_cents": 1000, "deposit_cents": float("inf")},
            {"daily_rate_cents": 1000, "auto_increment_multiplier": Decimal("-0.1")},
        ],
        ids=["negative_rate", "negative_deposit", "nan_rate", "infinite_deposit", "negative_auto"],
    )
    def test_rejects_bad_amounts(self, kwargs) -> None:
        with pytest.raises(RentalError) as exc_info:
            calculate_price(JUNE_10, _days_after(2), **kwargs)

        assert exc_info.value.code == ErrorCode.INVALID_INPUT

    def test_rejects_end_before_start(self) -> None:
        with pytest.raises(RentalError) as exc_info:
            calculate_price(_days_after(2), JUNE_10, 1000)

        assert exc_info.value.code == ErrorCode.INVALID_INPUT
