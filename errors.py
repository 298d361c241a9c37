from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from logging_config import logger


class ReservationError(Exception):
    """Base class for every outcome that ends a booking request early."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "Bad request"

    def __init__(self, message: str = None):
        self.message = message or self.message
        super().__init__(self.message)


class InvalidRequestError(ReservationError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Missing required parameters"


class NotFoundError(ReservationError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Restaurant not found or not approved"


class NoSuitableTableError(ReservationError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "No suitable tables available for your party size"


class SlotUnavailableError(ReservationError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Requested time slot is not available"


class StorageError(ReservationError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Server error"


class NotificationError(ReservationError):
    """Raised by the mail sender. Never returned to a caller."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Notification could not be sent"


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


async def reservation_error_handler(request: Request, exc: ReservationError) -> JSONResponse:
    if exc.status_code >= 500:
        # details were logged where the error was raised
        return _failure(exc.status_code, StorageError.message)
    logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
    return _failure(exc.status_code, exc.message)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info(f"Validation error on {request.url.path}: {exc.errors()}")
    fields = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
    message = "Invalid or missing parameters"
    if fields:
        message += ": " + ", ".join(fields)
    return _failure(status.HTTP_400_BAD_REQUEST, message)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, StorageError.message)


EXCEPTION_HANDLERS = {
    ReservationError: reservation_error_handler,
    RequestValidationError: validation_error_handler,
    Exception: unhandled_error_handler,
}


def register_exception_handlers(app: FastAPI):
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
