"""Availability resolution for stock units.

A unit is available for ``[start, end]`` (inclusive calendar dates) when the
range does not touch its own unavailability window and does not touch the
buffered window ``[r.start - before, r.end + after]`` of any blocking
reservation holding it.
"""

import datetime as dt
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

from rental_shared.models import (
    AvailabilityResult,
    BlockedUnit,
    BlockReason,
    ErrorCode,
    Product,
    RentalError,
    Reservation,
    StockUnit,
    UnitBooking,
)
from rental_shared.utils.dates import add_days, ranges_overlap
from rental_shared.utils.logging import get_logger, log_availability_check

if TYPE_CHECKING:
    from rental_shared.config import Settings

    from .inventory import InventoryRepository

logger = get_logger(__name__)


def resolve_availability(
    units: Sequence[StockUnit],
    reservations_by_unit: Mapping[str, Sequence[Reservation]],
    start_date: dt.date,
    end_date: dt.date,
    buffer_before: int = 1,
    buffer_after: int = 1,
) -> AvailabilityResult:
    """Decide which units are free for a date range.

    Args:
        units: Stock units of one product
        reservations_by_unit: Reservations holding each unit, keyed by unit id.
            Non-blocking reservations are ignored.
        start_date: First rental day
        end_date: Last rental day (equal to start for a single-day rental)
        buffer_before: Days blocked before each reservation
        buffer_after: Days blocked after each reservation

    Returns:
        AvailabilityResult listing free unit ids in id order

    Raises:
        RentalError: INVALID_RANGE when start_date is after end_date
    """
    if start_date > end_date:
        raise RentalError(
            ErrorCode.INVALID_RANGE,
            details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
        )
    buffer_before = max(0, buffer_before)
    buffer_after = max(0, buffer_after)

    available_ids: list[str] = []
    blocked: list[BlockedUnit] = []
    first_conflict: Reservation | None = None

    for unit in sorted(units, key=lambda u: u.stock_item_id):
        if unit.has_unavailability_window and ranges_overlap(
            start_date, end_date, unit.unavailable_from, unit.unavailable_to
        ):
            blocked.append(
                BlockedUnit(
                    stock_item_id=unit.stock_item_id,
                    reason=BlockReason.UNAVAILABILITY,
                    start_date=unit.unavailable_from,
                    end_date=unit.unavailable_to,
                )
            )
            continue

        conflict = next(
            (
                r
                for r in reservations_by_unit.get(unit.stock_item_id, ())
                if r.is_blocking
                and ranges_overlap(
                    start_date,
                    end_date,
                    add_days(r.start_date, -buffer_before),
                    add_days(r.end_date, buffer_after),
                )
            ),
            None,
        )
        if conflict is None:
            available_ids.append(unit.stock_item_id)
            continue

        blocked.append(
            BlockedUnit(
                stock_item_id=unit.stock_item_id,
                reason=BlockReason.RESERVATION,
                reservation_id=conflict.reservation_id,
                start_date=conflict.start_date,
                end_date=conflict.end_date,
            )
        )
        if first_conflict is None:
            first_conflict = conflict

    available = bool(available_ids)
    return AvailabilityResult(
        available=available,
        available_stock_item_ids=available_ids,
        blocked_start_date=None if available or not first_conflict else first_conflict.start_date,
        blocked_end_date=None if available or not first_conflict else first_conflict.end_date,
        blocked_units=blocked,
        buffer_before=buffer_before,
        buffer_after=buffer_after,
    )


class AvailabilityService:
    """Service for availability checks against the inventory store."""

    def __init__(self, repository: "InventoryRepository", settings: "Settings") -> None:
        """Initialize availability service.

        Args:
            repository: Inventory repository
            settings: Application settings (default buffer days)
        """
        self.repository = repository
        self.default_buffer_days = settings.default_buffer_days

    def get_product(self, product_id: str) -> Product:
        product = self.repository.get_product(product_id)
        if product is None:
            raise RentalError(ErrorCode.NOT_FOUND, details={"product_id": product_id})
        return product

    def resolve_buffers(
        self, product: Product, buffer_days: int | None = None
    ) -> tuple[int, int]:
        """Per-product buffers, else the caller's default, else the configured one."""
        fallback = self.default_buffer_days if buffer_days is None else buffer_days
        before = product.buffer_before if product.buffer_before is not None else fallback
        after = product.buffer_after if product.buffer_after is not None else fallback
        return max(0, before), max(0, after)

    def check_availability(
        self,
        product_id: str,
        start_date: dt.date,
        end_date: dt.date,
        buffer_days: int | None = None,
    ) -> AvailabilityResult:
        """Check which stock units of a product are free for a date range.

        Read-only: the returned units are not held.

        Raises:
            RentalError: NOT_FOUND for an unknown product, INVALID_RANGE when
                start_date is after end_date
        """
        product = self.get_product(product_id)
        result, _ = self.evaluate(product, start_date, end_date, buffer_days)
        return result

    def evaluate(
        self,
        product: Product,
        start_date: dt.date,
        end_date: dt.date,
        buffer_days: int | None = None,
        consistent: bool = False,
    ) -> tuple[AvailabilityResult, list[StockUnit]]:
        """Resolve availability and return the units as they were read.

        Used by the booking flow, which needs each unit's ``lock_version``.
        """
        if start_date > end_date:
            raise RentalError(
                ErrorCode.INVALID_RANGE,
                details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
            )
        before, after = self.resolve_buffers(product, buffer_days)
        units = self.repository.list_stock_units(product.product_id, consistent=consistent)
        reservations = self.repository.reservations_by_unit(units)
        result = resolve_availability(units, reservations, start_date, end_date, before, after)

        log_availability_check(
            logger,
            product.product_id,
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat(),
            available=result.available,
            available_count=len(result.available_stock_item_ids),
            blocked_count=len(result.blocked_units),
        )
        return result, units

    def list_bookings(
        self, product_id: str, buffer_days: int | None = None
    ) -> list[UnitBooking]:
        """Blocking reservations per unit with buffers applied, for the office calendar."""
        product = self.get_product(product_id)
        before, after = self.resolve_buffers(product, buffer_days)
        units = self.repository.list_stock_units(product_id)
        reservations = self.repository.reservations_by_unit(units)

        bookings = [
            UnitBooking(
                stock_item_id=unit.stock_item_id,
                reservation_id=r.reservation_id,
                start_date=r.start_date,
                end_date=r.end_date,
                buffered_start_date=add_days(r.start_date, -before),
                buffered_end_date=add_days(r.end_date, after),
                payment_status=r.payment_status,
            )
            for unit in units
            for r in reservations.get(unit.stock_item_id, [])
        ]
        return sorted(bookings, key=lambda b: (b.stock_item_id, b.start_date))
