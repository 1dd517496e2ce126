"""Reservation lifecycle: atomic reserve, payment outcome and office actions."""

import datetime as dt
import uuid
from typing import TYPE_CHECKING, Any

from rental_shared.models import (
    CustomerDetails,
    ErrorCode,
    OrderAction,
    OrderStatus,
    PaymentStatus,
    PriceCalculation,
    Product,
    RentalError,
    Reservation,
)
from rental_shared.utils.logging import get_logger
from rental_shared.utils.money import cents_to_decimal

if TYPE_CHECKING:
    from rental_shared.config import Settings

    from .availability import AvailabilityService
    from .inventory import InventoryRepository

logger = get_logger(__name__)

# action -> (order statuses it applies to, resulting order status, resulting payment status)
# A resulting payment status of None keeps the current one.
ORDER_TRANSITIONS: dict[
    OrderAction, tuple[frozenset[OrderStatus], OrderStatus, PaymentStatus | None]
] = {
    OrderAction.RESERVE: (
        frozenset({OrderStatus.PENDING}),
        OrderStatus.RESERVED,
        None,
    ),
    OrderAction.PICK_UP: (
        frozenset({OrderStatus.PENDING, OrderStatus.RESERVED}),
        OrderStatus.PICKED_UP,
        None,
    ),
    OrderAction.RETURN: (
        frozenset({OrderStatus.PICKED_UP}),
        OrderStatus.RETURNED,
        PaymentStatus.RETURNED,
    ),
    OrderAction.CANCEL: (
        frozenset({OrderStatus.PENDING, OrderStatus.RESERVED, OrderStatus.PICKED_UP}),
        OrderStatus.CANCELLED,
        PaymentStatus.CANCELLED,
    ),
}


def generate_reservation_id() -> str:
    """Generate a reservation ID like ``RES-2026-1A2B3C4D``."""
    year = dt.datetime.now(dt.UTC).year
    return f"RES-{year}-{uuid.uuid4().hex[:8].upper()}"


class BookingService:
    """Service that creates reservations and moves them through their statuses."""

    def __init__(
        self,
        repository: "InventoryRepository",
        availability: "AvailabilityService",
        settings: "Settings",
    ) -> None:
        """Initialize booking service.

        Args:
            repository: Inventory repository
            availability: Availability service used to pick units
            settings: Application settings (retry budget)
        """
        self.repository = repository
        self.availability = availability
        self.max_attempts = settings.reservation_max_attempts

    def get_reservation(self, reservation_id: str) -> Reservation:
        reservation = self.repository.get_reservation(reservation_id)
        if reservation is None:
            raise RentalError(ErrorCode.NOT_FOUND, details={"reservation_id": reservation_id})
        return reservation

    def reserve(
        self,
        product: Product,
        start_date: dt.date,
        end_date: dt.date,
        price: PriceCalculation,
        *,
        customer: CustomerDetails,
        quantity: int = 1,
        payment_status: PaymentStatus = PaymentStatus.PENDING,
        order_status: OrderStatus = OrderStatus.PENDING,
        buffer_days: int | None = None,
        notes: str | None = None,
    ) -> Reservation:
        """Pick free units and create a blocking reservation for them atomically.

        Availability is re-resolved from fresh reads on every attempt. The
        write only commits if none of the chosen units changed since they
        were read; otherwise the next attempt may pick other units.

        Args:
            product: Product to rent
            start_date: First rental day
            end_date: Last rental day
            price: Price of one unit for the range
            customer: Contact details stored on the reservation
            quantity: Number of units to reserve
            payment_status: Initial payment status (must be blocking)
            order_status: Initial order status
            buffer_days: Caller default for buffers the product leaves unset
            notes: Free-text note

        Returns:
            The created reservation

        Raises:
            RentalError: UNAVAILABLE when too few units are free, or when
                every attempt lost a race
        """
        if not payment_status.is_blocking:
            raise RentalError(
                ErrorCode.INVALID_INPUT,
                details={"payment_status": payment_status.value},
                message="A new reservation needs a blocking payment status",
            )
        if quantity < 1:
            raise RentalError(
                ErrorCode.INVALID_INPUT,
                details={"quantity": quantity},
                message="quantity must be at least 1",
            )

        for attempt in range(1, self.max_attempts + 1):
            result, units = self.availability.evaluate(
                product, start_date, end_date, buffer_days, consistent=True
            )
            if len(result.available_stock_item_ids) < quantity:
                raise RentalError(
                    ErrorCode.UNAVAILABLE,
                    details={
                        "product_id": product.product_id,
                        "requested_quantity": quantity,
                        "available_count": len(result.available_stock_item_ids),
                        "blocked_start_date": _iso(result.blocked_start_date),
                        "blocked_end_date": _iso(result.blocked_end_date),
                    },
                )

            chosen_ids = result.available_stock_item_ids[:quantity]
            chosen = [u for u in units if u.stock_item_id in chosen_ids]
            now = dt.datetime.now(dt.UTC)
            reservation = Reservation(
                reservation_id=generate_reservation_id(),
                product_id=product.product_id,
                stock_item_ids=chosen_ids,
                start_date=start_date,
                end_date=end_date,
                payment_status=payment_status,
                order_status=order_status,
                customer=customer,
                total_rental_price=cents_to_decimal(price.rental_subtotal_cents * quantity),
                total_deposit=cents_to_decimal(price.deposit_cents * quantity),
                notes=notes,
                created_at=now,
                updated_at=now,
            )
            if self.repository.create_reservation(
                reservation, chosen, price.rental_subtotal_cents, price.deposit_cents
            ):
                return reservation

            logger.warning(
                "Reservation lost a race for stock units, retrying",
                extra={
                    "product_id": product.product_id,
                    "stock_item_ids": chosen_ids,
                    "attempt": attempt,
                },
            )

        raise RentalError(
            ErrorCode.UNAVAILABLE,
            details={
                "product_id": product.product_id,
                "requested_quantity": quantity,
                "reason": "concurrent_reservations",
            },
        )

    def mark_paid(
        self,
        reservation_id: str,
        *,
        session_id: str | None = None,
        payment_method: str | None = "stripe",
    ) -> Reservation:
        """Promote a pending reservation to paid. Already-paid ones are returned as is.

        Raises:
            RentalError: NOT_FOUND, or INVALID_TRANSITION if the reservation
                was released (failed or cancelled) before payment arrived
        """
        reservation = self.get_reservation(reservation_id)
        if reservation.payment_status in (
            PaymentStatus.PAID,
            PaymentStatus.COMPLETED,
            PaymentStatus.MANUAL,
        ):
            return reservation
        if reservation.payment_status != PaymentStatus.PENDING:
            logger.error(
                "Payment received for a released reservation",
                extra={
                    "reservation_id": reservation_id,
                    "payment_status": reservation.payment_status.value,
                    "session_id": session_id,
                },
            )
            raise RentalError(
                ErrorCode.INVALID_TRANSITION,
                details={
                    "reservation_id": reservation_id,
                    "payment_status": reservation.payment_status.value,
                },
            )
        return self._set_status(
            reservation,
            PaymentStatus.PAID,
            reservation.order_status,
            stripe_session_id=session_id,
            payment_method=payment_method,
        )

    def mark_failed(self, reservation_id: str) -> Reservation:
        """Mark a pending reservation failed, releasing its units.

        Reservations that are no longer pending are returned unchanged.
        """
        reservation = self.get_reservation(reservation_id)
        if reservation.payment_status != PaymentStatus.PENDING:
            logger.info(
                "Ignoring payment failure for non-pending reservation",
                extra={
                    "reservation_id": reservation_id,
                    "payment_status": reservation.payment_status.value,
                },
            )
            return reservation
        return self._set_status(reservation, PaymentStatus.FAILED, reservation.order_status)

    def apply_action(self, reservation_id: str, action: OrderAction) -> Reservation:
        """Apply an office action (reserve, pick up, return, cancel).

        Raises:
            RentalError: NOT_FOUND, or INVALID_TRANSITION when the action does
                not apply to the reservation's current statuses
        """
        reservation = self.get_reservation(reservation_id)
        allowed_from, next_order, next_payment = ORDER_TRANSITIONS[action]
        if reservation.order_status not in allowed_from or not reservation.is_blocking:
            raise RentalError(
                ErrorCode.INVALID_TRANSITION,
                details={
                    "reservation_id": reservation_id,
                    "action": action.value,
                    "order_status": reservation.order_status.value,
                    "payment_status": reservation.payment_status.value,
                },
            )
        updated = self._set_status(
            reservation, next_payment or reservation.payment_status, next_order
        )
        logger.info(
            "Order action applied",
            extra={
                "reservation_id": reservation_id,
                "action": action.value,
                "order_status": updated.order_status.value,
                "payment_status": updated.payment_status.value,
            },
        )
        return updated

    def update_payment(
        self,
        reservation_id: str,
        *,
        payment_status: PaymentStatus | None = None,
        notes: str | None = None,
        invoice_sent: bool | None = None,
    ) -> Reservation:
        """Office edit of payment status, notes and the invoice flag.

        A move to a non-blocking status releases the units. Released
        reservations cannot become blocking again because their units may
        already be taken.

        Raises:
            RentalError: NOT_FOUND, or INVALID_TRANSITION for a released
                reservation moved back to a blocking status
        """
        reservation = self.get_reservation(reservation_id)
        target = payment_status or reservation.payment_status
        if target.is_blocking and not reservation.is_blocking:
            raise RentalError(
                ErrorCode.INVALID_TRANSITION,
                details={
                    "reservation_id": reservation_id,
                    "payment_status": reservation.payment_status.value,
                    "requested_payment_status": target.value,
                },
            )
        updated = self._set_status(
            reservation,
            target,
            reservation.order_status,
            notes=notes,
            invoice_sent=invoice_sent,
        )
        logger.info(
            "Order payment updated",
            extra={"reservation_id": reservation_id, "payment_status": target.value},
        )
        return updated

    def _set_status(
        self,
        reservation: Reservation,
        payment_status: PaymentStatus,
        order_status: OrderStatus,
        **fields: Any,
    ) -> Reservation:
        updated = self.repository.update_reservation_status(
            reservation, payment_status, order_status, **fields
        )
        if updated is None:
            raise RentalError(
                ErrorCode.INVALID_TRANSITION,
                details={"reservation_id": reservation.reservation_id},
                message="The order was modified concurrently",
            )
        return updated


def _iso(value: dt.date | None) -> str | None:
    return value.isoformat() if value else None
