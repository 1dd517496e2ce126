"""Unit tests for availability resolution.

Covers buffered reservation windows, unit unavailability windows and the
blocked-date hint returned when nothing is free.
"""

import datetime as dt

import pytest

from rental_shared.models import (
    BlockReason,
    ErrorCode,
    PaymentStatus,
    RentalError,
    StockUnit,
)
from rental_shared.services.availability import resolve_availability


def d(value: str) -> dt.date:
    return dt.date.fromisoformat(value)


@pytest.fixture
def paid_on_unit_a(reservation_factory):
    return reservation_factory(
        reservation_id="RES-2024-PAID0001",
        start="2024-06-10",
        end="2024-06-15",
        payment_status=PaymentStatus.PAID,
        stock_item_ids=["unit-a"],
    )


class TestBufferedReservations:
    """Product with buffer_before=1 and buffer_after=2."""

    def test_range_inside_after_buffer_is_blocked(self, paid_on_unit_a) -> None:
        unit_a = StockUnit(stock_item_id="unit-a", product_id="trailer-01")

        result = resolve_availability(
            [unit_a],
            {"unit-a": [paid_on_unit_a]},
            d("2024-06-16"),
            d("2024-06-18"),
            buffer_before=1,
            buffer_after=2,
        )

        assert result.available is False
        assert result.blocked_start_date == d("2024-06-10")
        assert result.blocked_end_date == d("2024-06-15")
        assert result.blocked_units[0].reason == BlockReason.RESERVATION
        assert result.blocked_units[0].reservation_id == "RES-2024-PAID0001"

    def test_range_after_buffer_is_available(self, paid_on_unit_a) -> None:
        unit_a = StockUnit(stock_item_id="unit-a", product_id="trailer-01")

        result = resolve_availability(
            [unit_a],
            {"unit-a": [paid_on_unit_a]},
            d("2024-06-18"),
            d("2024-06-20"),
            buffer_before=1,
            buffer_after=2,
        )

        assert result.available is True
        assert result.available_stock_item_ids == ["unit-a"]
        assert result.blocked_start_date is None

    def test_free_unit_is_available_while_other_is_booked(
        self, sample_units, paid_on_unit_a
    ) -> None:
        result = resolve_availability(
            sample_units,
            {"unit-a": [paid_on_unit_a], "unit-b": []},
            d("2024-06-16"),
            d("2024-06-18"),
            buffer_before=1,
            buffer_after=2,
        )

        assert result.available is True
        assert result.available_stock_item_ids == ["unit-b"]
        # Blocked dates are only reported when nothing is free
        assert result.blocked_start_date is None
        assert [b.stock_item_id for b in result.blocked_units] == ["unit-a"]

    def test_range_ending_on_before_buffer_day_is_blocked(self, paid_on_unit_a) -> None:
        unit_a = StockUnit(stock_item_id="unit-a", product_id="trailer-01")

        result = resolve_availability(
            [unit_a], {"unit-a": [paid_on_unit_a]}, d("2024-06-05"), d("2024-06-09"), 1, 2
        )

        assert result.available is False

    def test_range_ending_before_buffer_is_available(self, paid_on_unit_a) -> None:
        unit_a = StockUnit(stock_item_id="unit-a", product_id="trailer-01")

        result = resolve_availability(
            [unit_a], {"unit-a": [paid_on_unit_a]}, d("2024-06-05"), d("2024-06-08"), 1, 2
        )

        assert result.available is True

    def test_single_shared_day_is_a_conflict(self, paid_on_unit_a) -> None:
        unit_a = StockUnit(stock_item_id="unit-a", product_id="trailer-01")

        result = resolve_availability(
            [unit_a], {"unit-a": [paid_on_unit_a]}, d("2024-06-15"), d("2024-06-15"), 0, 0
        )

        assert result.available is False

    def test_day_after_reservation_is_free_without_buffer(self, paid_on_unit_a) -> None:
        unit_a = StockUnit(stock_item_id="unit-a", product_id="trailer-01")

        result = resolve_availability(
            [unit_a], {"unit-a": [paid_on_unit_a]}, d("2024-06-16"), d("2024-06-16"), 0, 0
        )

        assert result.available is True

    def test_negative_buffers_are_clamped(self, paid_on_unit_a) -> None:
        unit_a = StockUnit(stock_item_id="unit-a", product_id="trailer-01")

        result = resolve_availability(
            [unit_a], {"unit-a": [paid_on_unit_a]}, d("2024-06-16"), d("2024-06-16"), -3, -3
        )

        assert result.available is True
        assert result.buffer_before == 0
        assert result.buffer_after == 0


class TestReservationStatuses:
    @pytest.mark.parametrize(
        "status",
        [PaymentStatus.PENDING, PaymentStatus.PAID, PaymentStatus.MANUAL, PaymentStatus.COMPLETED],
    )
    def test_blocking_statuses_block(self, reservation_factory, status) -> None:
        reservation = reservation_factory(payment_status=status)
        unit = StockUnit(stock_item_id="unit-a", product_id="trailer-01")

        result = resolve_availability(
            [unit], {"unit-a": [reservation]}, d("2026-06-12"), d("2026-06-13")
        )

        assert result.available is False

    @pytest.mark.parametrize(
        "status",
        [PaymentStatus.FAILED, PaymentStatus.CANCELLED, PaymentStatus.RETURNED],
    )
    def test_released_statuses_do_not_block(self, reservation_factory, status) -> None:
        reservation = reservation_factory(payment_status=status)
        unit = StockUnit(stock_item_id="unit-a", product_id="trailer-01")

        result = resolve_availability(
            [unit], {"unit-a": [reservation]}, d("2026-06-12"), d("2026-06-13")
        )

        assert result.available is True


class TestUnavailabilityWindow:
    def test_window_blocks_overlapping_range(self) -> None:
        unit = StockUnit(
            stock_item_id="unit-a",
            product_id="trailer-01",
            unavailable_from=d("2026-07-01"),
            unavailable_to=d("2026-07-10"),
        )

        result = resolve_availability([unit], {}, d("2026-07-10"), d("2026-07-12"))

        assert result.available is False
        assert result.blocked_units[0].reason == BlockReason.UNAVAILABILITY
        # No reservation caused the block, so there is no blocked window hint
        assert result.blocked_start_date is None
        assert result.blocked_end_date is None

    def test_window_ignores_buffers(self) -> None:
        unit = StockUnit(
            stock_item_id="unit-a",
            product_id="trailer-01",
            unavailable_from=d("2026-07-01"),
            unavailable_to=d("2026-07-10"),
        )

        result = resolve_availability(
            [unit], {}, d("2026-07-11"), d("2026-07-12"), buffer_before=5, buffer_after=5
        )

        assert result.available is True

    def test_open_ended_window_blocks_everything_after(self) -> None:
        unit = StockUnit(
            stock_item_id="unit-a",
            product_id="trailer-01",
            unavailable_from=d("2026-01-01"),
        )

        assert not resolve_availability([unit], {}, d("2030-01-01"), d("2030-01-02")).available
        assert resolve_availability([unit], {}, d("2025-12-01"), d("2025-12-31")).available

    def test_window_is_checked_before_reservations(self, reservation_factory) -> None:
        unit = StockUnit(
            stock_item_id="unit-a",
            product_id="trailer-01",
            unavailable_from=d("2026-06-01"),
            unavailable_to=d("2026-06-30"),
        )
        reservation = reservation_factory()

        result = resolve_availability(
            [unit], {"unit-a": [reservation]}, d("2026-06-12"), d("2026-06-13")
        )

        assert result.blocked_units[0].reason == BlockReason.UNAVAILABILITY
        assert result.blocked_start_date is None


class TestResultShape:
    def test_units_are_reported_in_id_order(self) -> None:
        units = [
            StockUnit(stock_item_id=uid, product_id="trailer-01")
            for uid in ("unit-c", "unit-a", "unit-b")
        ]

        result = resolve_availability(units, {}, d("2026-06-01"), d("2026-06-02"))

        assert result.available_stock_item_ids == ["unit-a", "unit-b", "unit-c"]

    def test_first_conflict_sets_blocked_dates(self, reservation_factory) -> None:
        units = [
            StockUnit(stock_item_id="unit-a", product_id="trailer-01"),
            StockUnit(stock_item_id="unit-b", product_id="trailer-01"),
        ]
        on_a = reservation_factory("RES-A", "2026-06-10", "2026-06-15", stock_item_ids=["unit-a"])
        on_b = reservation_factory("RES-B", "2026-06-12", "2026-06-20", stock_item_ids=["unit-b"])

        result = resolve_availability(
            units, {"unit-a": [on_a], "unit-b": [on_b]}, d("2026-06-13"), d("2026-06-14")
        )

        assert result.available is False
        assert (result.blocked_start_date, result.blocked_end_date) == (
            d("2026-06-10"),
            d("2026-06-15"),
        )

    def test_no_units_means_unavailable(self) -> None:
        result = resolve_availability([], {}, d("2026-06-01"), d("2026-06-02"))

        assert result.available is False
        assert result.available_stock_item_ids == []

    def test_start_after_end_is_invalid_range(self) -> None:
        with pytest.raises(RentalError) as exc_info:
            resolve_availability([], {}, d("2026-06-05"), d("2026-06-01"))

        assert exc_info.value.code == ErrorCode.INVALID_RANGE
