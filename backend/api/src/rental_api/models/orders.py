"""API models for office (back-office) endpoints."""

from pydantic import Field

from rental_shared.models import OrderAction, PaymentStatus, Product
from rental_shared.models.base import CamelModel
from rental_shared.models.reservation import CustomerDetails

from .common import DateRangeRequest


class ManualOrderRequest(DateRangeRequest):
    """An order entered by office staff, paid outside the shop."""

    quantity: int = Field(default=1, ge=1, le=20)
    customer: CustomerDetails = Field(default_factory=CustomerDetails)
    notes: str | None = Field(default=None, max_length=2000)
    buffer_days: int | None = None


class OrderActionRequest(CamelModel):
    action: OrderAction


class OrderPaymentRequest(CamelModel):
    """Office payment edit. Omitted fields keep their stored values."""

    payment_status: PaymentStatus | None = None
    notes: str | None = Field(default=None, max_length=2000)
    invoice_sent: bool | None = None


class OfficeProduct(Product):
    """Product row in the office listing.

    ``available_count`` is set only when a date range was requested.
    """

    stock_count: int
    available_count: int | None = None
