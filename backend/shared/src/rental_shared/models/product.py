"""Product and stock unit models."""

import datetime as dt
from decimal import Decimal

from pydantic import Field, model_validator

from .base import CamelModel


class Product(CamelModel):
    """A rentable product.

    Amounts are stored in minor currency units. Buffers left unset in storage
    are ``None`` so callers can fall back to their own default.
    """

    product_id: str = Field(..., min_length=1, description="Unique product ID")
    name: str = Field(default="", description="Display name")
    daily_rate_cents: int = Field(..., ge=0, description="Base price per day in minor units")
    deposit_cents: int = Field(default=0, ge=0, description="Refundable deposit in minor units")
    buffer_before: int | None = Field(
        default=None, ge=0, description="Days blocked before each reservation"
    )
    buffer_after: int | None = Field(
        default=None, ge=0, description="Days blocked after each reservation"
    )
    auto_increment_multiplier: Decimal = Field(
        default=Decimal("1.0"),
        ge=0,
        description="Per-day multiplier applied beyond the highest pricing tier",
    )


class StockUnit(CamelModel):
    """One physical rentable item belonging to a product.

    Its busy state is derived at query time from reservations and its own
    optional unavailability window (either bound may be open).
    """

    stock_item_id: str = Field(..., min_length=1, description="Unique stock unit ID")
    product_id: str = Field(..., min_length=1)
    serial_number: str | None = None
    unavailable_from: dt.date | None = None
    unavailable_to: dt.date | None = None
    unavailable_reason: str | None = None
    lock_version: int = Field(
        default=0,
        ge=0,
        description="Bumped by every reservation write on this unit",
    )
    reservation_ids: list[str] = Field(
        default_factory=list,
        description="Reservations currently holding this unit",
    )

    @model_validator(mode="after")
    def check_window(self) -> "StockUnit":
        if (
            self.unavailable_from is not None
            and self.unavailable_to is not None
            and self.unavailable_from > self.unavailable_to
        ):
            raise ValueError("unavailable_from must be on or before unavailable_to")
        return self

    @property
    def has_unavailability_window(self) -> bool:
        return self.unavailable_from is not None or self.unavailable_to is not None
