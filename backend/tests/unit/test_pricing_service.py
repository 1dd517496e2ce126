"""Unit tests for PricingService with a mocked repository."""

import datetime as dt
from decimal import Decimal, InvalidOperation
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from rental_shared.models import ErrorCode, PricingMode, PricingTier, RentalError
from rental_shared.services.pricing import PricingService


@pytest.fixture
def mock_repository(sample_product, sample_tiers) -> MagicMock:
    repository = MagicMock()
    repository.get_product.return_value = sample_product
    repository.list_pricing_tiers.return_value = sample_tiers
    repository.replace_pricing_tiers.return_value = True
    return repository


@pytest.fixture
def service(mock_repository) -> PricingService:
    return PricingService(mock_repository)


class TestQuote:
    def test_uses_stored_tiers_and_multiplier(self, service) -> None:
        price = service.quote("trailer-01", dt.date(2026, 6, 10), dt.date(2026, 6, 20))

        assert price.rental_subtotal_cents == 59000
        assert price.deposit_cents == 50000
        assert price.total_cents == 109000
        assert price.pricing_mode == PricingMode.TIER_EXTENDED

    def test_unknown_product(self, service, mock_repository) -> None:
        mock_repository.get_product.return_value = None

        with pytest.raises(RentalError) as exc_info:
            service.quote("nope", dt.date(2026, 6, 10), dt.date(2026, 6, 12))

        assert exc_info.value.code == ErrorCode.NOT_FOUND

    def test_reversed_range_is_invalid_range(self, service) -> None:
        with pytest.raises(RentalError) as exc_info:
            service.quote("trailer-01", dt.date(2026, 6, 12), dt.date(2026, 6, 10))

        assert exc_info.value.code == ErrorCode.INVALID_RANGE


class TestReplaceTiers:
    def test_sorts_labels_and_orders_tiers(self, service, mock_repository) -> None:
        service.replace_tiers(
            "trailer-01",
            [
                PricingTier(tier_days=7, multiplier=Decimal("5"), label="Week"),
                PricingTier(tier_days=2, multiplier=Decimal("1.8")),
            ],
            Decimal("0.4"),
        )

        product_id, tiers, multiplier = mock_repository.replace_pricing_tiers.call_args.args
        assert product_id == "trailer-01"
        assert [(t.tier_days, t.label, t.sort_order) for t in tiers] == [
            (2, "2 days", 0),
            (7, "Week", 1),
        ]
        assert multiplier == Decimal("0.4")

    def test_rejects_duplicate_thresholds(self, service, mock_repository) -> None:
        with pytest.raises(RentalError) as exc_info:
            service.replace_tiers(
                "trailer-01",
                [
                    PricingTier(tier_days=3, multiplier=Decimal("2")),
                    PricingTier(tier_days=3, multiplier=Decimal("2.5")),
                ],
            )

        assert exc_info.value.code == ErrorCode.INVALID_INPUT
        mock_repository.replace_pricing_tiers.assert_not_called()

    def test_product_deleted_during_write(self, service, mock_repository) -> None:
        mock_repository.replace_pricing_tiers.return_value = False

        with pytest.raises(RentalError) as exc_info:
            service.replace_tiers("trailer-01", [])

        assert exc_info.value.code == ErrorCode.NOT_FOUND


class TestRepriceReservation:
    def test_recalculates_from_current_tiers(self, service, reservation_factory) -> None:
        pricing = service.reprice_reservation(reservation_factory())

        assert pricing.recalculated is True
        assert pricing.days == 5
        assert pricing.rental_subtotal_cents == 50000
        assert pricing.total_cents == 100000

    def test_multiplies_by_unit_count(self, service, reservation_factory) -> None:
        reservation = reservation_factory(stock_item_ids=["unit-a", "unit-b"])

        pricing = service.reprice_reservation(reservation)

        assert pricing.quantity == 2
        assert pricing.rental_subtotal_cents == 100000
        assert pricing.deposit_cents == 100000

    def test_falls_back_to_stored_amounts_when_product_is_gone(
        self, service, mock_repository, reservation_factory
    ) -> None:
        mock_repository.get_product.return_value = None

        pricing = service.reprice_reservation(reservation_factory())

        assert pricing.recalculated is False
        assert pricing.rental_subtotal_cents == 25000
        assert pricing.deposit_cents == 50000
        assert pricing.total_cents == 75000

    def test_falls_back_when_storage_fails(
        self, service, mock_repository, reservation_factory
    ) -> None:
        mock_repository.list_pricing_tiers.side_effect = ClientError(
            {"Error": {"Code": "ProvisionedThroughputExceededException", "Message": "slow"}},
            "Query",
        )

        pricing = service.reprice_reservation(reservation_factory())

        assert pricing.recalculated is False
        assert pricing.days == 5

    @pytest.mark.parametrize(
        "error",
        [
            KeyError("multiplier"),
            InvalidOperation(),
            lambda product_id: [PricingTier.model_validate({"tier_days": "many"})],
        ],
        ids=["missing-attribute", "bad-decimal", "invalid-tier"],
    )
    def test_falls_back_when_stored_tiers_are_malformed(
        self, service, mock_repository, reservation_factory, error
    ) -> None:
        mock_repository.list_pricing_tiers.side_effect = error

        pricing = service.reprice_reservation(reservation_factory())

        assert pricing.recalculated is False
        assert pricing.total_cents == 75000
