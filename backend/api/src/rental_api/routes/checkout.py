"""Checkout endpoints for the storefront.

Creating a session reserves a unit as ``pending`` before the customer is sent
to Stripe, so a unit cannot be sold twice while a payment is in progress.
"""

from fastapi import APIRouter, Depends

from rental_api.dependencies import get_checkout_service
from rental_api.models.checkout import (
    ConfirmCheckoutSessionRequest,
    ConfirmCheckoutSessionResponse,
    CreateCheckoutSessionRequest,
    CreateCheckoutSessionResponse,
)
from rental_shared.services.checkout import CheckoutService

router = APIRouter(tags=["checkout"])


@router.post(
    "/create-checkout-session",
    summary="Reserve a unit and start payment",
    response_model=CreateCheckoutSessionResponse,
    responses={
        400: {"description": "Invalid date range"},
        404: {"description": "Product not found"},
        409: {"description": "No unit free; details carry the blocked window"},
        502: {"description": "Payment provider failed"},
    },
)
async def create_checkout_session(
    body: CreateCheckoutSessionRequest,
    service: CheckoutService = Depends(get_checkout_service),
) -> CreateCheckoutSessionResponse:
    start_date, end_date = body.date_range()
    session = service.create_session(body.product_id, start_date, end_date, body.customer)
    return CreateCheckoutSessionResponse(
        id=session.session_id,
        url=session.checkout_url,
        reservation_id=session.reservation_id,
        pricing=session.pricing,
    )


@router.post(
    "/confirm-checkout-session",
    summary="Confirm a completed payment",
    description="Called from the success page. Marks the reservation paid once Stripe reports the session paid.",
    response_model=ConfirmCheckoutSessionResponse,
    responses={
        404: {"description": "Session has no reservation"},
        409: {"description": "Payment not completed"},
        502: {"description": "Payment provider failed"},
    },
)
async def confirm_checkout_session(
    body: ConfirmCheckoutSessionRequest,
    service: CheckoutService = Depends(get_checkout_service),
) -> ConfirmCheckoutSessionResponse:
    reservation = service.confirm_session(body.session_id)
    return ConfirmCheckoutSessionResponse(
        reservation_id=reservation.reservation_id,
        payment_status=reservation.payment_status,
        order_status=reservation.order_status,
    )
