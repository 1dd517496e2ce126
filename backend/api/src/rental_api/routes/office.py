"""Office (back-office) endpoints.

Every route requires the office bearer token.
"""

from fastapi import APIRouter, Depends, Query
from starlette.status import HTTP_201_CREATED

from rental_api.dependencies import (
    get_availability_service,
    get_booking_service,
    get_inventory_repository,
    get_pricing_service,
)
from rental_api.models.common import parse_date_range
from rental_api.models.orders import (
    ManualOrderRequest,
    OfficeProduct,
    OrderActionRequest,
    OrderPaymentRequest,
)
from rental_api.security import require_office
from rental_shared.models import (
    ContractPricing,
    OrderStatus,
    PaymentStatus,
    Reservation,
    UnitBooking,
)
from rental_shared.services.availability import AvailabilityService
from rental_shared.services.booking import BookingService
from rental_shared.services.inventory import InventoryRepository
from rental_shared.services.pricing import PricingService

router = APIRouter(
    prefix="/office",
    tags=["office"],
    dependencies=[Depends(require_office)],
    responses={401: {"description": "Office token missing or invalid"}},
)


@router.get(
    "/products",
    summary="List products with stock counts",
    description="With `startDate` and `endDate`, each row also carries the number of free units.",
    response_model=list[OfficeProduct],
)
async def list_products(
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    repository: InventoryRepository = Depends(get_inventory_repository),
    availability: AvailabilityService = Depends(get_availability_service),
) -> list[OfficeProduct]:
    date_range = None
    if start_date is not None or end_date is not None:
        date_range = parse_date_range(start_date, end_date)

    rows = []
    for product in repository.list_products():
        if date_range is not None:
            result, units = availability.evaluate(product, *date_range)
            available_count: int | None = len(result.available_stock_item_ids)
        else:
            units = repository.list_stock_units(product.product_id)
            available_count = None
        rows.append(
            OfficeProduct(
                **product.model_dump(),
                stock_count=len(units),
                available_count=available_count,
            )
        )
    return rows


@router.get(
    "/products/{product_id}/bookings",
    summary="Bookings per stock unit",
    description="Blocking reservations with the buffer days applied, for the calendar view.",
    response_model=list[UnitBooking],
    responses={404: {"description": "Product not found"}},
)
async def list_bookings(
    product_id: str,
    availability: AvailabilityService = Depends(get_availability_service),
) -> list[UnitBooking]:
    return availability.list_bookings(product_id)


@router.post(
    "/orders",
    summary="Create a manual order",
    status_code=HTTP_201_CREATED,
    response_model=Reservation,
    responses={
        400: {"description": "Invalid date range"},
        404: {"description": "Product not found"},
        409: {"description": "Not enough units free"},
    },
)
async def create_manual_order(
    body: ManualOrderRequest,
    pricing: PricingService = Depends(get_pricing_service),
    booking: BookingService = Depends(get_booking_service),
) -> Reservation:
    start_date, end_date = body.date_range()
    product = pricing.get_product(body.product_id)
    price = pricing.quote_for_product(product, start_date, end_date)
    return booking.reserve(
        product,
        start_date,
        end_date,
        price,
        customer=body.customer,
        quantity=body.quantity,
        payment_status=PaymentStatus.MANUAL,
        order_status=OrderStatus.RESERVED,
        buffer_days=body.buffer_days,
        notes=body.notes,
    )


@router.get(
    "/orders/{reservation_id}",
    summary="Read an order",
    response_model=Reservation,
    responses={404: {"description": "Order not found"}},
)
async def get_order(
    reservation_id: str,
    booking: BookingService = Depends(get_booking_service),
) -> Reservation:
    return booking.get_reservation(reservation_id)


@router.post(
    "/orders/{reservation_id}/status",
    summary="Move an order through reserve, pick-up, return or cancel",
    response_model=Reservation,
    responses={
        404: {"description": "Order not found"},
        409: {"description": "Action not allowed from the current status"},
    },
)
async def apply_order_action(
    reservation_id: str,
    body: OrderActionRequest,
    booking: BookingService = Depends(get_booking_service),
) -> Reservation:
    return booking.apply_action(reservation_id, body.action)


@router.get(
    "/orders/{reservation_id}/pricing",
    summary="Contract pricing for an order",
    description="Re-prices the order; falls back to the stored amounts if re-pricing fails.",
    response_model=ContractPricing,
    responses={404: {"description": "Order not found"}},
)
async def get_order_pricing(
    reservation_id: str,
    booking: BookingService = Depends(get_booking_service),
    pricing: PricingService = Depends(get_pricing_service),
) -> ContractPricing:
    return pricing.reprice_reservation(booking.get_reservation(reservation_id))


@router.patch(
    "/orders/{reservation_id}/payment",
    summary="Update an order's payment status, notes or invoice flag",
    description=(
        "Moving to `failed`, `cancelled` or `returned` releases the order's units. "
        "A released order cannot be moved back to a blocking status."
    ),
    response_model=Reservation,
    responses={
        404: {"description": "Order not found"},
        409: {"description": "Order was released or changed concurrently"},
    },
)
async def update_order_payment(
    reservation_id: str,
    body: OrderPaymentRequest,
    booking: BookingService = Depends(get_booking_service),
) -> Reservation:
    return booking.update_payment(
        reservation_id,
        payment_status=body.payment_status,
        notes=body.notes,
        invoice_sent=body.invoice_sent,
    )
