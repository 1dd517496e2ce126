"""Availability models."""

import datetime as dt

from pydantic import Field

from .base import CamelModel
from .enums import BlockReason, PaymentStatus


class BlockedUnit(CamelModel):
    """A stock unit that cannot be rented for the requested range."""

    stock_item_id: str
    reason: BlockReason
    reservation_id: str | None = Field(
        default=None, description="First blocking reservation, if blocked by one"
    )
    start_date: dt.date | None = Field(
        default=None, description="Start of the blocking reservation or window"
    )
    end_date: dt.date | None = Field(
        default=None, description="End of the blocking reservation or window"
    )


class AvailabilityResult(CamelModel):
    """Outcome of an availability check for one product.

    ``blocked_start_date``/``blocked_end_date`` are advisory: the unbuffered
    dates of the first conflicting reservation, set only when nothing is free.
    """

    available: bool
    available_stock_item_ids: list[str] = Field(default_factory=list)
    blocked_start_date: dt.date | None = None
    blocked_end_date: dt.date | None = None
    blocked_units: list[BlockedUnit] = Field(default_factory=list)
    buffer_before: int = Field(default=1, ge=0)
    buffer_after: int = Field(default=1, ge=0)


class UnitBooking(CamelModel):
    """A blocking reservation on a stock unit, as shown in the office calendar."""

    stock_item_id: str
    reservation_id: str
    start_date: dt.date
    end_date: dt.date
    buffered_start_date: dt.date
    buffered_end_date: dt.date
    payment_status: PaymentStatus
