from typing import Any

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse

from donation_ledger.core.logging import get_logger

log = get_logger(__name__)


class AppError(Exception):
    """Base application error; rendered as {"error": {message, code, details}}."""

    code: str = "ERROR"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Application error"
    retryable: bool = False

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message or self.default_message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class UnauthorizedError(AppError):
    code = "UNAUTHORIZED"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class ForbiddenError(AppError):
    code = "FORBIDDEN"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class BadRequestError(AppError):
    code = "BAD_REQUEST"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"


class NotFoundError(AppError):
    """Referenced entity is absent."""

    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class InvalidStateError(AppError):
    """Action is illegal for the entity's current lifecycle stage."""

    code = "INVALID_STATE"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Invalid state"


class AlreadyUnavailableError(AppError):
    """Listing was already purchased, collected or claimed."""

    code = "ALREADY_UNAVAILABLE"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Listing is no longer available"


class InvalidParticipantError(AppError):
    """Self-dealing, or an actor whose role cannot perform the operation."""

    code = "INVALID_PARTICIPANT"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Invalid participant"


class InvalidAmountError(AppError):
    """Ledger entry would drive a balance negative, or the amount is malformed."""

    code = "INVALID_AMOUNT"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid amount"


class PaymentFailedError(AppError):
    """Payment was not confirmed; nothing was committed, so the caller may retry."""

    code = "PAYMENT_FAILED"
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    default_message = "Payment failed"
    retryable = True

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None):
        super().__init__(message, details={"retryable": True, **(details or {})})


def _render(request: Request, status_code: int, message: str, code: str, details: dict[str, Any]) -> ORJSONResponse:
    body: dict[str, Any] = {"error": {"message": message, "code": code, "details": details}}
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        body["request_id"] = request_id
    return ORJSONResponse(status_code=status_code, content=body)


def error_response(request: Request, exc: AppError) -> ORJSONResponse:
    return _render(request, exc.status_code, exc.message, exc.code, exc.details)


async def app_exception_handler(request: Request, exc: AppError) -> ORJSONResponse:
    if exc.status_code >= 500:
        log.error("app_error", code=exc.code, message=exc.message)
    return error_response(request, exc)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> ORJSONResponse:
    return _render(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Validation error",
        "VALIDATION_ERROR",
        {"errors": jsonable_encoder(exc.errors())},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    log.exception("unhandled_exception", exc_info=exc, path=request.url.path)
    return _render(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", "INTERNAL_ERROR", {})
