"""API models for checkout endpoints."""

from pydantic import EmailStr, Field

from rental_shared.models import OrderStatus, PaymentStatus, PriceCalculation
from rental_shared.models.base import CamelModel
from rental_shared.models.reservation import CustomerDetails

from .common import DateRangeRequest


class CheckoutCustomer(CustomerDetails):
    """Customer details; an email address is required at checkout."""

    email: EmailStr


class CreateCheckoutSessionRequest(DateRangeRequest):
    customer: CheckoutCustomer


class CreateCheckoutSessionResponse(CamelModel):
    """Where to send the customer to pay.

    The reservation already blocks the unit as ``pending``.
    """

    id: str = Field(..., description="Stripe checkout session ID")
    url: str = Field(..., description="Stripe-hosted checkout page")
    reservation_id: str
    pricing: PriceCalculation


class ConfirmCheckoutSessionRequest(CamelModel):
    session_id: str = Field(..., min_length=1, max_length=255)


class ConfirmCheckoutSessionResponse(CamelModel):
    reservation_id: str
    payment_status: PaymentStatus
    order_status: OrderStatus


class WebhookResponse(CamelModel):
    """Webhook acknowledgement."""

    received: bool = True
    event_id: str | None = None
    event_type: str | None = None
    processing_result: str
    message: str | None = None
