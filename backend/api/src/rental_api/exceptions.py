"""FastAPI exception handlers for converting RentalError to HTTP responses.

Every error body has the same shape: ``{success, error_code, message,
recovery, details}``.

Usage:
    from rental_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

import logging

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_422_UNPROCESSABLE_ENTITY,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_502_BAD_GATEWAY,
)

from rental_shared.models.errors import ErrorCode, ErrorResponse, RentalError

logger = logging.getLogger(__name__)

# Map ErrorCode to HTTP status codes
ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.INVALID_RANGE: HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_INPUT: HTTP_400_BAD_REQUEST,
    ErrorCode.UNAVAILABLE: HTTP_409_CONFLICT,
    ErrorCode.UPSTREAM_FAILURE: HTTP_502_BAD_GATEWAY,
    ErrorCode.PAYMENT_NOT_COMPLETED: HTTP_409_CONFLICT,
    ErrorCode.INVALID_TRANSITION: HTTP_409_CONFLICT,
    ErrorCode.UNAUTHORIZED: HTTP_401_UNAUTHORIZED,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """Get HTTP status code for an ErrorCode, defaulting to 400."""
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_400_BAD_REQUEST)


async def rental_error_handler(request: Request, exc: RentalError) -> JSONResponse:
    """Convert a RentalError into the standard error body."""
    status_code = get_http_status_for_error(exc.code)
    if status_code >= 500:
        logger.error("%s: %s", exc.code.value, exc.message, extra={"details": exc.details})

    headers = {"WWW-Authenticate": "Bearer"} if status_code == HTTP_401_UNAUTHORIZED else None
    return JSONResponse(
        status_code=status_code,
        content=exc.to_error_response().model_dump(mode="json"),
        headers=headers,
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Wrap FastAPI's request validation errors in the standard error body."""
    errors = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg", ""), "type": e.get("type", "")}
        for e in exc.errors()
    ]
    body = ErrorResponse.from_code(
        ErrorCode.INVALID_INPUT,
        details={"errors": jsonable_encoder(errors)},
        message="Request validation failed",
    )
    return JSONResponse(
        status_code=HTTP_422_UNPROCESSABLE_ENTITY,
        content=body.model_dump(mode="json"),
    )


async def aws_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Surface DynamoDB/SSM failures as UPSTREAM_FAILURE."""
    logger.exception("AWS request failed: %s", exc)
    body = ErrorResponse.from_code(ErrorCode.UPSTREAM_FAILURE, details={"service": "aws"})
    return JSONResponse(status_code=HTTP_502_BAD_GATEWAY, content=body.model_dump(mode="json"))


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback for uncaught exceptions; internal details are not exposed."""
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error_code": "ERR_INTERNAL",
            "message": "An unexpected error occurred",
            "recovery": "Please try again later or contact support",
            "details": None,
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(RentalError, rental_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ClientError, aws_error_handler)
    app.add_exception_handler(BotoCoreError, aws_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
