"""Shared API request/response models.

Domain records (Product, Reservation, PriceCalculation, ...) live in
rental_shared.models and are returned directly; this module holds
HTTP-layer concerns only.
"""

import datetime as dt

from pydantic import Field

from rental_shared.models import ErrorCode, RentalError
from rental_shared.models.base import CamelModel
from rental_shared.utils.dates import parse_iso_date

__all__ = [
    "DateRangeRequest",
    "HealthResponse",
    "ValidationErrorDetail",
    "parse_date_range",
]


class ValidationErrorDetail(CamelModel):
    """Detail of a single validation error."""

    loc: list[str | int] = Field(
        ...,
        description="Path to the field that failed validation",
        examples=[["body", "productId"]],
    )
    msg: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Error type identifier", examples=["missing"])


class DateRangeRequest(CamelModel):
    """Request body carrying a product and an inclusive ISO date range.

    Dates are kept as strings so a malformed date is reported as an invalid
    range rather than a schema error.
    """

    product_id: str = Field(..., min_length=1, max_length=100, examples=["trailer-01"])
    start_date: str = Field(..., description="First rental day (YYYY-MM-DD)", examples=["2026-06-10"])
    end_date: str = Field(..., description="Last rental day (YYYY-MM-DD)", examples=["2026-06-15"])

    def date_range(self) -> tuple[dt.date, dt.date]:
        return parse_date_range(self.start_date, self.end_date)


class HealthResponse(CamelModel):
    status: str = "ok"
    service: str = "rental-api"
    environment: str
    timestamp: dt.datetime


def parse_date_range(start_date: str | None, end_date: str | None) -> tuple[dt.date, dt.date]:
    """Parse an inclusive ISO date range from request input.

    Raises:
        RentalError: INVALID_RANGE for a missing or non-ISO date, or start after end
    """
    details = {"start_date": start_date, "end_date": end_date}
    try:
        start = parse_iso_date(start_date or "")
        end = parse_iso_date(end_date or "")
    except ValueError as e:
        raise RentalError(ErrorCode.INVALID_RANGE, details=details, message=str(e)) from e
    if start > end:
        raise RentalError(ErrorCode.INVALID_RANGE, details=details)
    return start, end
