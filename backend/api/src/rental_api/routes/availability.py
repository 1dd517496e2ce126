"""Availability endpoint.

All dates are in YYYY-MM-DD format and both ends are inclusive.
"""

from fastapi import APIRouter, Depends

from rental_api.dependencies import get_availability_service
from rental_api.models.availability import CheckAvailabilityRequest
from rental_shared.models import AvailabilityResult
from rental_shared.services.availability import AvailabilityService

router = APIRouter(tags=["availability"])


@router.post(
    "/check-availability",
    summary="Check stock availability",
    description="""
Check which stock units of a product are free for a date range.

A unit is blocked by any pending, paid, manual or completed reservation whose
dates, widened by the product's buffer days, touch the requested range, and by
its own unavailability window.

**Notes:**
- `startDate` may equal `endDate` (single-day rental)
- `blockedStartDate`/`blockedEndDate` are set only when nothing is free and
  show the first conflicting reservation's own dates
- The check does not hold a unit; checkout reserves atomically
""",
    response_model=AvailabilityResult,
    responses={
        200: {
            "description": "Availability check completed",
            "content": {
                "application/json": {
                    "example": {
                        "available": True,
                        "availableStockItemIds": ["trailer-01-a", "trailer-01-b"],
                        "blockedStartDate": None,
                        "blockedEndDate": None,
                        "blockedUnits": [],
                        "bufferBefore": 1,
                        "bufferAfter": 1,
                    }
                }
            },
        },
        400: {"description": "Invalid date range"},
        404: {"description": "Product not found"},
    },
)
async def check_availability(
    body: CheckAvailabilityRequest,
    service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityResult:
    start_date, end_date = body.date_range()
    return service.check_availability(body.product_id, start_date, end_date)
