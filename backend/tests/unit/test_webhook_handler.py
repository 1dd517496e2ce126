"""Unit tests for WebhookHandler event processing.

Tests the business logic for Stripe events without HTTP routing.
"""

from typing import Any
from unittest.mock import MagicMock

import pytest

from rental_shared.models import ErrorCode, PaymentStatus, RentalError
from rental_shared.services.webhook_handler import WebhookHandler

TEST_RESERVATION_ID = "RES-2026-AAAA0001"


# === Test Fixtures ===


@pytest.fixture
def mock_db() -> MagicMock:
    db = MagicMock()
    db.get_item.return_value = None
    return db


@pytest.fixture
def mock_booking(reservation_factory) -> MagicMock:
    booking = MagicMock()
    booking.mark_paid.return_value = reservation_factory(payment_status=PaymentStatus.PAID)
    booking.mark_failed.return_value = reservation_factory(payment_status=PaymentStatus.FAILED)
    return booking


@pytest.fixture
def handler(mock_db, mock_booking) -> WebhookHandler:
    return WebhookHandler(mock_db, mock_booking)


def _event(
    event_type: str = "checkout.session.completed",
    event_id: str = "evt_test_1",
    payment_status: str = "paid",
    metadata: dict[str, Any] | None = None,
) -> dict[str, Any]:
    return {
        "id": event_id,
        "type": event_type,
        "data": {
            "object": {
                "id": "cs_test_1",
                "payment_status": payment_status,
                "payment_method_types": ["card"],
                "metadata": (
                    metadata if metadata is not None else {"reservation_id": TEST_RESERVATION_ID}
                ),
            }
        },
    }


def _logged_result(mock_db: MagicMock) -> str:
    table, item = mock_db.put_item.call_args.args
    assert table == "stripe-webhook-events"
    return item["processing_result"]


class TestPaidEvents:
    @pytest.mark.parametrize(
        "event_type",
        ["checkout.session.completed", "checkout.session.async_payment_succeeded"],
    )
    def test_marks_reservation_paid(self, handler, mock_booking, mock_db, event_type) -> None:
        result, message = handler.handle_event(_event(event_type))

        assert (result, message) == ("success", None)
        mock_booking.mark_paid.assert_called_once_with(
            TEST_RESERVATION_ID, session_id="cs_test_1", payment_method="card"
        )
        assert _logged_result(mock_db) == "success"

    def test_unpaid_session_is_skipped(self, handler, mock_booking, mock_db) -> None:
        result, message = handler.handle_event(_event(payment_status="unpaid"))

        assert result == "skipped"
        assert "unpaid" in message
        mock_booking.mark_paid.assert_not_called()
        assert _logged_result(mock_db) == "skipped"

    def test_falls_back_to_client_reference_id(self, handler, mock_booking) -> None:
        event = _event(metadata={})
        event["data"]["object"]["client_reference_id"] = TEST_RESERVATION_ID

        result, _ = handler.handle_event(event)

        assert result == "success"
        assert mock_booking.mark_paid.call_args.args == (TEST_RESERVATION_ID,)

    def test_released_reservation_is_recorded_as_error(
        self, handler, mock_booking, mock_db
    ) -> None:
        mock_booking.mark_paid.side_effect = RentalError(ErrorCode.INVALID_TRANSITION)

        result, message = handler.handle_event(_event())

        assert result == "error"
        assert message == "The order cannot move to the requested status"
        assert _logged_result(mock_db) == "error"


class TestFailedEvents:
    @pytest.mark.parametrize(
        "event_type",
        ["checkout.session.async_payment_failed", "checkout.session.expired"],
    )
    def test_marks_reservation_failed(self, handler, mock_booking, event_type) -> None:
        result, _ = handler.handle_event(_event(event_type))

        assert result == "success"
        mock_booking.mark_failed.assert_called_once_with(TEST_RESERVATION_ID)

    def test_unknown_reservation(self, handler, mock_booking) -> None:
        mock_booking.mark_failed.side_effect = RentalError(ErrorCode.NOT_FOUND)

        result, _ = handler.handle_event(_event("checkout.session.expired"))

        assert result == "error"

    def test_payment_intent_failure_does_not_release(
        self, handler, mock_booking, mock_db
    ) -> None:
        # PaymentIntent objects carry no reservation metadata; the customer
        # may still retry inside the same Checkout session.
        event = {
            "id": "evt_pi_failed",
            "type": "payment_intent.payment_failed",
            "data": {"object": {"id": "pi_test_1", "object": "payment_intent", "metadata": {}}},
        }

        result, message = handler.handle_event(event)

        assert (result, message) == ("ignored", None)
        mock_booking.mark_failed.assert_not_called()
        assert _logged_result(mock_db) == "ignored"


class TestEventFiltering:
    def test_duplicate_event_is_not_reprocessed(self, handler, mock_db, mock_booking) -> None:
        mock_db.get_item.return_value = {"event_id": "evt_test_1"}

        result, _ = handler.handle_event(_event())

        assert result == "duplicate"
        mock_booking.mark_paid.assert_not_called()
        mock_db.put_item.assert_not_called()

    def test_unhandled_event_type_is_ignored(self, handler, mock_db, mock_booking) -> None:
        result, _ = handler.handle_event(_event("customer.created"))

        assert result == "ignored"
        assert _logged_result(mock_db) == "ignored"
        mock_booking.mark_paid.assert_not_called()

    def test_missing_reservation_id(self, handler, mock_db) -> None:
        result, message = handler.handle_event(_event(metadata={}))

        assert result == "error"
        assert message == "Missing reservation_id in metadata"

    def test_logged_event_has_payload_hash(self, handler, mock_db) -> None:
        handler.handle_event(_event())

        _, item = mock_db.put_item.call_args.args
        assert item["event_id"] == "evt_test_1"
        assert item["reservation_id"] == TEST_RESERVATION_ID
        assert len(item["payload_hash"]) == 64
