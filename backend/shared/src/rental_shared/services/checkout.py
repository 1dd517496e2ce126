"""Checkout orchestration: availability, pricing, reservation and payment session."""

import datetime as dt
from typing import TYPE_CHECKING

from pydantic import BaseModel

from rental_shared.models import (
    CustomerDetails,
    ErrorCode,
    PaymentStatus,
    PriceCalculation,
    RentalError,
    Reservation,
)
from rental_shared.utils.logging import get_logger, log_payment_operation

from .stripe_service import StripeServiceError

if TYPE_CHECKING:
    from .booking import BookingService
    from .pricing import PricingService
    from .stripe_service import StripeService

logger = get_logger(__name__)


class CheckoutSession(BaseModel):
    """A created payment session and the reservation it pays for."""

    session_id: str
    checkout_url: str
    reservation_id: str
    pricing: PriceCalculation


class CheckoutService:
    """Turns a storefront checkout request into a pending reservation and a Stripe session."""

    def __init__(
        self,
        pricing: "PricingService",
        booking: "BookingService",
        stripe_service: "StripeService",
    ) -> None:
        self.pricing = pricing
        self.booking = booking
        self.stripe = stripe_service

    def create_session(
        self,
        product_id: str,
        start_date: dt.date,
        end_date: dt.date,
        customer: CustomerDetails,
        buffer_days: int | None = None,
    ) -> CheckoutSession:
        """Reserve a unit and open a payment session for it.

        The pending reservation blocks the unit until payment succeeds or
        fails. If the session cannot be created the reservation is marked
        failed, releasing the unit.

        Raises:
            RentalError: NOT_FOUND, INVALID_RANGE, UNAVAILABLE, or
                UPSTREAM_FAILURE when Stripe fails
        """
        product = self.pricing.get_product(product_id)
        price = self.pricing.quote_for_product(product, start_date, end_date)
        reservation = self.booking.reserve(
            product,
            start_date,
            end_date,
            price,
            customer=customer,
            payment_status=PaymentStatus.PENDING,
            buffer_days=buffer_days,
        )

        try:
            session = self.stripe.create_checkout_session(
                reservation_id=reservation.reservation_id,
                product_name=product.name or product.product_id,
                rental_cents=price.rental_subtotal_cents,
                deposit_cents=price.deposit_cents,
                description=f"{start_date.isoformat()} to {end_date.isoformat()}",
                customer_email=customer.email,
                metadata={"product_id": product.product_id},
            )
        except StripeServiceError as e:
            log_payment_operation(
                logger,
                "create_checkout_session",
                reservation_id=reservation.reservation_id,
                amount_cents=price.total_cents,
                error=str(e),
            )
            self.booking.mark_failed(reservation.reservation_id)
            raise RentalError(
                ErrorCode.UPSTREAM_FAILURE,
                details={
                    "reservation_id": reservation.reservation_id,
                    "stripe_error_code": e.stripe_error_code,
                },
            ) from e

        self.booking.repository.attach_checkout_session(
            reservation.reservation_id, session["session_id"]
        )
        log_payment_operation(
            logger,
            "create_checkout_session",
            reservation_id=reservation.reservation_id,
            session_id=session["session_id"],
            amount_cents=price.total_cents,
            status=PaymentStatus.PENDING.value,
        )
        return CheckoutSession(
            session_id=session["session_id"],
            checkout_url=session["checkout_url"],
            reservation_id=reservation.reservation_id,
            pricing=price,
        )

    def confirm_session(self, session_id: str) -> Reservation:
        """Mark the session's reservation paid once Stripe reports it paid.

        Raises:
            RentalError: UPSTREAM_FAILURE if Stripe fails, PAYMENT_NOT_COMPLETED
                if the session is unpaid, NOT_FOUND if it has no reservation
        """
        try:
            session = self.stripe.retrieve_session(session_id)
        except StripeServiceError as e:
            raise RentalError(
                ErrorCode.UPSTREAM_FAILURE,
                details={"session_id": session_id, "stripe_error_code": e.stripe_error_code},
            ) from e

        reservation_id = session.get("reservation_id")
        if not reservation_id:
            raise RentalError(ErrorCode.NOT_FOUND, details={"session_id": session_id})
        if session.get("payment_status") != "paid":
            log_payment_operation(
                logger,
                "confirm_checkout_session",
                reservation_id=reservation_id,
                session_id=session_id,
                status=session.get("payment_status"),
            )
            raise RentalError(
                ErrorCode.PAYMENT_NOT_COMPLETED,
                details={
                    "session_id": session_id,
                    "payment_status": session.get("payment_status"),
                },
            )

        methods = session.get("payment_method_types") or ["stripe"]
        reservation = self.booking.mark_paid(
            reservation_id, session_id=session_id, payment_method=methods[0]
        )
        log_payment_operation(
            logger,
            "confirm_checkout_session",
            reservation_id=reservation_id,
            session_id=session_id,
            status=reservation.payment_status.value,
        )
        return reservation
