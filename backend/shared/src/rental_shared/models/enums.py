"""Enumeration types for rental data models."""

from enum import Enum


class PaymentStatus(str, Enum):
    """Payment/lifecycle status of a reservation.

    Only blocking statuses occupy a stock unit for availability purposes.
    """

    PENDING = "pending"
    PAID = "paid"
    MANUAL = "manual"  # Created by office staff, paid outside the shop
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    RETURNED = "returned"

    @property
    def is_blocking(self) -> bool:
        return self in BLOCKING_PAYMENT_STATUSES

    @classmethod
    def blocking_values(cls) -> list[str]:
        return sorted(s.value for s in BLOCKING_PAYMENT_STATUSES)


BLOCKING_PAYMENT_STATUSES: frozenset[PaymentStatus] = frozenset(
    {
        PaymentStatus.PENDING,
        PaymentStatus.PAID,
        PaymentStatus.MANUAL,
        PaymentStatus.COMPLETED,
    }
)


class OrderStatus(str, Enum):
    """Fulfilment status of a reservation, driven by office staff."""

    PENDING = "pending"
    RESERVED = "reserved"
    PICKED_UP = "picked_up"
    RETURNED = "returned"
    CANCELLED = "cancelled"


class OrderAction(str, Enum):
    """Office actions that move a reservation through its fulfilment states."""

    RESERVE = "reserve"
    PICK_UP = "pick_up"
    RETURN = "return"
    CANCEL = "cancel"


class BlockReason(str, Enum):
    """Why a stock unit is not available for a requested range."""

    UNAVAILABILITY = "unavailability"
    RESERVATION = "reservation"


class PricingMode(str, Enum):
    """Which pricing rule produced a rental subtotal."""

    TIER = "tier"
    TIER_EXTENDED = "tier_extended"
    LINEAR = "linear"
