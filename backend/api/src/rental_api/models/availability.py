"""API models for availability endpoints."""

from pydantic import ConfigDict

from .common import DateRangeRequest


class CheckAvailabilityRequest(DateRangeRequest):
    """Body of ``POST /api/check-availability``.

    Buffer days always come from the product or the server configuration.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"productId": "trailer-01", "startDate": "2026-06-10", "endDate": "2026-06-15"}
            ]
        },
    )
