"""Reservation (order) models."""

import datetime as dt
from decimal import Decimal

from pydantic import EmailStr, Field, model_validator

from .base import CamelModel
from .enums import OrderStatus, PaymentStatus


class CustomerDetails(CamelModel):
    """Contact details captured with a reservation."""

    email: EmailStr | None = None
    full_name: str | None = Field(default=None, max_length=200)
    phone: str | None = Field(default=None, max_length=50)
    company_name: str | None = Field(default=None, max_length=200)
    tax_id: str | None = Field(default=None, max_length=20, description="Company tax ID (NIP)")


class Reservation(CamelModel):
    """A reservation of one or more stock units for an inclusive date range.

    Prices are persisted as DECIMAL major units, converted at the boundary.
    """

    reservation_id: str
    product_id: str
    stock_item_ids: list[str] = Field(default_factory=list)
    start_date: dt.date
    end_date: dt.date
    payment_status: PaymentStatus = PaymentStatus.PENDING
    order_status: OrderStatus = OrderStatus.PENDING
    customer: CustomerDetails = Field(default_factory=CustomerDetails)
    total_rental_price: Decimal = Decimal("0.00")
    total_deposit: Decimal = Decimal("0.00")
    payment_method: str | None = None
    stripe_session_id: str | None = None
    notes: str | None = None
    invoice_sent: bool = False
    created_at: dt.datetime
    updated_at: dt.datetime

    @model_validator(mode="after")
    def check_range(self) -> "Reservation":
        if self.start_date > self.end_date:
            raise ValueError("start_date must be on or before end_date")
        return self

    @property
    def is_blocking(self) -> bool:
        return self.payment_status.is_blocking
