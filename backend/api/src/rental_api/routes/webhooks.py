"""Stripe webhook endpoint.

Not gated by the office token: payloads are authenticated by their Stripe
signature instead.
"""

from fastapi import APIRouter, Depends, Header, Request

from rental_api.dependencies import get_stripe_service, get_webhook_handler
from rental_api.models.checkout import WebhookResponse
from rental_shared.models import ErrorCode, RentalError
from rental_shared.services.stripe_service import StripeService, StripeServiceError
from rental_shared.services.webhook_handler import WebhookHandler
from rental_shared.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["webhooks"])


@router.post(
    "/stripe-webhook",
    summary="Receive Stripe events",
    response_model=WebhookResponse,
    responses={400: {"description": "Missing or invalid signature"}},
)
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None, alias="Stripe-Signature"),
    stripe_service: StripeService = Depends(get_stripe_service),
    handler: WebhookHandler = Depends(get_webhook_handler),
) -> WebhookResponse:
    """Verify and apply a Stripe event.

    Processing errors are acknowledged with 200 and recorded, so Stripe does
    not retry events that cannot succeed.
    """
    if not stripe_signature:
        raise RentalError(
            ErrorCode.INVALID_INPUT,
            details={"header": "Stripe-Signature"},
            message="Missing Stripe-Signature header",
        )

    payload = await request.body()
    try:
        event = stripe_service.verify_webhook_signature(payload, stripe_signature)
    except StripeServiceError as e:
        raise RentalError(
            ErrorCode.INVALID_INPUT,
            details={"header": "Stripe-Signature"},
            message="Invalid webhook signature",
        ) from e

    result, message = handler.handle_event(event)
    logger.info(
        "Stripe webhook processed",
        extra={"event_id": event.get("id"), "event_type": event.get("type"), "result": result},
    )
    return WebhookResponse(
        event_id=event.get("id"),
        event_type=event.get("type"),
        processing_result=result,
        message=message,
    )
