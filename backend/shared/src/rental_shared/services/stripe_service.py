"""Stripe payment service for checkout sessions and webhooks.

Uses the v8+ StripeClient pattern. Credentials come from settings, falling
back to SSM Parameter Store under ``{ssm_prefix}/stripe/``.
"""

import datetime as dt
import json
import logging
from typing import TYPE_CHECKING, Any

import stripe
from stripe import StripeClient

from .ssm_service import SSMService, SSMServiceError

if TYPE_CHECKING:
    from rental_shared.config import Settings

logger = logging.getLogger(__name__)


class StripeServiceError(Exception):
    """Raised when a Stripe operation fails."""

    def __init__(self, message: str, stripe_error_code: str | None = None) -> None:
        """Initialize with message and optional Stripe error code.

        Args:
            message: Human-readable error message.
            stripe_error_code: Stripe-specific error code if available.
        """
        super().__init__(message)
        self.stripe_error_code = stripe_error_code


class StripeService:
    """Service for Stripe payment operations.

    Handles:
    - Checkout session creation (rental and deposit as separate line items)
    - Checkout session retrieval
    - Webhook signature validation

    Usage:
        stripe_svc = StripeService(get_settings())
        session = stripe_svc.create_checkout_session(
            reservation_id="RES-2026-1A2B3C4D",
            product_name="Camping trailer",
            rental_cents=50000,
            deposit_cents=20000,
            description="2026-06-10 to 2026-06-15",
        )
    """

    def __init__(self, settings: "Settings", ssm: SSMService | None = None) -> None:
        """Initialize Stripe service.

        Args:
            settings: Application settings
            ssm: SSM service for credentials missing from settings
        """
        self._settings = settings
        self._ssm = ssm
        self._client: StripeClient | None = None
        self._webhook_secret: str | None = None

    def _secret(self, configured: Any, parameter: str) -> str:
        if configured is not None:
            return str(configured.get_secret_value())
        if self._ssm is None:
            self._ssm = SSMService(region_name=self._settings.aws_region)
        try:
            return self._ssm.get_parameter(f"{self._settings.ssm_prefix}/stripe/{parameter}")
        except SSMServiceError as e:
            raise StripeServiceError(f"Failed to load Stripe {parameter}: {e}") from e

    def _get_client(self) -> StripeClient:
        """Get or create the Stripe client (lazy initialization).

        Raises:
            StripeServiceError: If credentials cannot be retrieved.
        """
        if self._client is None:
            secret_key = self._secret(self._settings.stripe_secret_key, "secret_key")
            self._client = StripeClient(secret_key)
            logger.info("Stripe client initialized for environment: %s", self._settings.environment)
        return self._client

    def _get_webhook_secret(self) -> str:
        if self._webhook_secret is None:
            self._webhook_secret = self._secret(
                self._settings.stripe_webhook_secret, "webhook_secret"
            )
        return self._webhook_secret

    def create_checkout_session(
        self,
        *,
        reservation_id: str,
        product_name: str,
        rental_cents: int,
        deposit_cents: int,
        description: str,
        quantity: int = 1,
        customer_email: str | None = None,
        success_url: str | None = None,
        cancel_url: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Create a Stripe Checkout session for a reservation.

        Args:
            reservation_id: Reservation ID (used as idempotency key).
            product_name: Line item name.
            rental_cents: Rental price per unit in minor units.
            deposit_cents: Deposit per unit in minor units (omitted when 0).
            description: Line item description (rental dates).
            quantity: Number of units.
            customer_email: Optional customer email for Stripe receipt.
            success_url: Redirect on success; defaults to the site's success page.
            cancel_url: Redirect on cancel; defaults to the site's cancel page.
            metadata: Additional metadata to include.

        Returns:
            Dict with session_id, checkout_url and expires_at.

        Raises:
            StripeServiceError: If session creation fails.
        """
        client = self._get_client()
        currency = self._settings.currency
        site_url = self._settings.site_url.rstrip("/")

        session_metadata = {"reservation_id": reservation_id}
        if metadata:
            session_metadata.update(metadata)

        line_items: list[dict[str, Any]] = [
            {
                "price_data": {
                    "currency": currency,
                    "unit_amount": rental_cents,
                    "product_data": {"name": product_name, "description": description},
                },
                "quantity": quantity,
            }
        ]
        if deposit_cents > 0:
            line_items.append(
                {
                    "price_data": {
                        "currency": currency,
                        "unit_amount": deposit_cents,
                        "product_data": {"name": f"Deposit: {product_name}"},
                    },
                    "quantity": quantity,
                }
            )

        expires_at = (
            int(dt.datetime.now(dt.UTC).timestamp())
            + self._settings.checkout_session_ttl_seconds
        )
        params: dict[str, Any] = {
            "mode": "payment",
            "line_items": line_items,
            "success_url": success_url
            or f"{site_url}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": cancel_url or f"{site_url}/checkout/cancel",
            "metadata": session_metadata,
            "client_reference_id": reservation_id,
            "expires_at": expires_at,
        }
        if customer_email:
            params["customer_email"] = customer_email

        try:
            logger.info(
                "Creating Stripe checkout session for reservation %s, amount %d minor units",
                reservation_id,
                (rental_cents + deposit_cents) * quantity,
            )
            session = client.checkout.sessions.create(
                params=params,  # type: ignore[arg-type]
                options={"idempotency_key": f"checkout_{reservation_id}"},
            )
        except stripe.StripeError as e:
            error_code = getattr(e, "code", None)
            logger.error(
                "Stripe checkout session creation failed: %s (code: %s)",
                str(e),
                error_code,
            )
            raise StripeServiceError(
                f"Failed to create checkout session: {e}",
                stripe_error_code=error_code,
            ) from e

        logger.info("Checkout session created: %s for reservation %s", session.id, reservation_id)
        return {
            "session_id": session.id,
            "checkout_url": session.url,
            "expires_at": dt.datetime.fromtimestamp(session.expires_at, tz=dt.UTC),
        }

    def retrieve_session(self, session_id: str) -> dict[str, Any]:
        """Fetch a checkout session.

        Returns:
            Dict with session_id, payment_status, reservation_id and
            payment_method_types.

        Raises:
            StripeServiceError: If retrieval fails.
        """
        client = self._get_client()
        try:
            session = client.checkout.sessions.retrieve(session_id)
        except stripe.StripeError as e:
            error_code = getattr(e, "code", None)
            logger.error("Stripe session retrieval failed: %s (code: %s)", str(e), error_code)
            raise StripeServiceError(
                f"Failed to retrieve checkout session: {e}",
                stripe_error_code=error_code,
            ) from e

        metadata = session.metadata or {}
        return {
            "session_id": session.id,
            "payment_status": session.payment_status,
            "reservation_id": metadata.get("reservation_id") or session.client_reference_id,
            "payment_method_types": list(session.payment_method_types or []),
        }

    def verify_webhook_signature(self, payload: bytes, signature: str) -> dict[str, Any]:
        """Verify a webhook signature and parse the event.

        Args:
            payload: Raw request body bytes.
            signature: Stripe-Signature header value.

        Returns:
            Parsed Stripe event dictionary.

        Raises:
            StripeServiceError: If signature is invalid.
        """
        webhook_secret = self._get_webhook_secret()

        try:
            event = stripe.Webhook.construct_event(payload, signature, webhook_secret)
        except (stripe.SignatureVerificationError, ValueError) as e:
            logger.warning("Invalid webhook signature: %s", str(e))
            raise StripeServiceError("Invalid webhook signature") from e

        logger.info("Webhook signature verified for event: %s", event["id"])
        parsed: dict[str, Any] = json.loads(payload)
        return parsed
