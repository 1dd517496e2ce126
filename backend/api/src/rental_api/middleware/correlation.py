"""Correlation ID middleware.

Every request gets one id, used as the log prefix for everything the request
triggers and echoed back in ``X-Correlation-ID``. Sources, in order:

1. A well-formed ``X-Correlation-ID`` header from the caller (storefront or
   office app)
2. The API Gateway request id, when running under Mangum
3. A fresh UUID
"""

import re
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from rental_shared.utils.logging import clear_correlation_id, set_correlation_id

CORRELATION_ID_HEADER = "X-Correlation-ID"

# Ids end up in every log line; anything else from the caller is replaced.
_VALID_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def _gateway_request_id(request: Request) -> str | None:
    event: dict[str, Any] = request.scope.get("aws.event") or {}
    return (event.get("requestContext") or {}).get("requestId")


def resolve_correlation_id(request: Request) -> str | None:
    supplied = request.headers.get(CORRELATION_ID_HEADER)
    if supplied and _VALID_ID.match(supplied):
        return supplied
    return _gateway_request_id(request)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        correlation_id = set_correlation_id(resolve_correlation_id(request))
        try:
            response = await call_next(request)
        finally:
            clear_correlation_id()
        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response
