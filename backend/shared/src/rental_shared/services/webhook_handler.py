"""Webhook handler for processing Stripe events.

Business logic for webhook events, kept apart from HTTP routing so it can be
unit tested directly. Each event id is processed at most once.
"""

import datetime as dt
import hashlib
import json
import logging
from typing import TYPE_CHECKING, Any

from rental_shared.models import RentalError

if TYPE_CHECKING:
    from .booking import BookingService
    from .dynamodb import DynamoDBService

logger = logging.getLogger(__name__)

PAID_EVENTS = frozenset(
    {"checkout.session.completed", "checkout.session.async_payment_succeeded"}
)
# A declined card inside Checkout can be retried in the same session, so only
# session-level outcomes release the hold.
FAILED_EVENTS = frozenset(
    {"checkout.session.async_payment_failed", "checkout.session.expired"}
)


class WebhookHandler:
    """Applies Stripe payment events to reservations.

    Results are ``success``, ``duplicate``, ``ignored``, ``skipped`` or
    ``error``. Every event except duplicates is recorded in the events table.
    """

    WEBHOOK_EVENTS_TABLE = "stripe-webhook-events"

    def __init__(self, db: "DynamoDBService", booking: "BookingService") -> None:
        self._db = db
        self._booking = booking

    def is_event_already_processed(self, event_id: str) -> bool:
        existing = self._db.get_item(self.WEBHOOK_EVENTS_TABLE, {"event_id": event_id})
        return existing is not None

    def log_event(
        self,
        event: dict[str, Any],
        reservation_id: str | None,
        processing_result: str,
        error_message: str | None = None,
    ) -> None:
        """Record a processed event for idempotency and audit.

        Args:
            event: Parsed Stripe event
            reservation_id: Associated reservation ID (if any)
            processing_result: success, ignored, skipped or error
            error_message: Error message if processing failed
        """
        item: dict[str, Any] = {
            "event_id": event.get("id", ""),
            "event_type": event.get("type", ""),
            "processed_at": dt.datetime.now(dt.UTC).isoformat(),
            "payload_hash": hashlib.sha256(
                json.dumps(event, sort_keys=True).encode()
            ).hexdigest(),
            "processing_result": processing_result,
        }
        if reservation_id:
            item["reservation_id"] = reservation_id
        if error_message:
            item["error_message"] = error_message

        if not self._db.put_item(
            self.WEBHOOK_EVENTS_TABLE, item, condition_expression="attribute_not_exists(event_id)"
        ):
            logger.info(
                "Webhook event already recorded by a concurrent delivery",
                extra={"event_id": item["event_id"]},
            )

    def handle_event(self, event: dict[str, Any]) -> tuple[str, str | None]:
        """Process one verified event.

        Returns:
            Tuple of (processing_result, error_message)
        """
        event_id = event.get("id", "")
        event_type = event.get("type", "")

        if event_id and self.is_event_already_processed(event_id):
            logger.info("Duplicate webhook event %s (%s), skipping", event_id, event_type)
            return "duplicate", None

        if event_type not in PAID_EVENTS and event_type not in FAILED_EVENTS:
            logger.debug("Ignoring webhook event type %s", event_type)
            self.log_event(event, None, "ignored")
            return "ignored", None

        obj = event.get("data", {}).get("object", {})
        metadata = obj.get("metadata") or {}
        reservation_id = metadata.get("reservation_id") or obj.get("client_reference_id")
        if not reservation_id:
            logger.warning("%s without reservation_id in metadata", event_type)
            error_msg = "Missing reservation_id in metadata"
            self.log_event(event, None, "error", error_msg)
            return "error", error_msg

        if event_type in PAID_EVENTS:
            return self._apply_paid(event, obj, reservation_id)
        return self._apply_failed(event, reservation_id)

    def _apply_paid(
        self, event: dict[str, Any], session: dict[str, Any], reservation_id: str
    ) -> tuple[str, str | None]:
        payment_status = session.get("payment_status")
        if payment_status != "paid":
            # Delayed payment methods complete the session before funds arrive.
            skip_msg = f"Payment status is '{payment_status}', not 'paid'"
            logger.info("Session for %s not paid yet: %s", reservation_id, payment_status)
            self.log_event(event, reservation_id, "skipped", skip_msg)
            return "skipped", skip_msg

        methods = session.get("payment_method_types") or ["stripe"]
        try:
            self._booking.mark_paid(
                reservation_id, session_id=session.get("id"), payment_method=methods[0]
            )
        except RentalError as e:
            logger.error("Failed to mark reservation %s paid: %s", reservation_id, e.message)
            self.log_event(event, reservation_id, "error", e.message)
            return "error", e.message

        logger.info("Reservation %s marked paid via webhook", reservation_id)
        self.log_event(event, reservation_id, "success")
        return "success", None

    def _apply_failed(
        self, event: dict[str, Any], reservation_id: str
    ) -> tuple[str, str | None]:
        try:
            self._booking.mark_failed(reservation_id)
        except RentalError as e:
            logger.error("Failed to mark reservation %s failed: %s", reservation_id, e.message)
            self.log_event(event, reservation_id, "error", e.message)
            return "error", e.message

        logger.info(
            "Reservation %s released via %s", reservation_id, event.get("type", "")
        )
        self.log_event(event, reservation_id, "success")
        return "success", None
