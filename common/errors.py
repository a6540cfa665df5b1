"""Booking domain exceptions and their HTTP mapping."""
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse


class BookingError(Exception):
    """Base class for reservation errors surfaced to API callers."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Booking request failed"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class MalformedScheduleError(BookingError, ValueError):
    """The request carries neither a valid session nor a valid start/end pair."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "Provide either a session or both start_time and end_time"


class SlotConflictError(BookingError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "This slot is already reserved or pending approval"


class DataFetchError(BookingError):
    """Existing bookings could not be read; admission is denied and may be retried."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Could not load existing bookings, please retry"


class BookingNotFound(BookingError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Booking not found"


class BookingPermissionError(BookingError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Access denied"


class InvalidStatusTransition(BookingError):
    default_detail = "Invalid status transition"


def booking_error_handler(_: Request, exc: BookingError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


def apply_error_handlers(app: FastAPI) -> None:
    """Map booking domain errors to JSON responses on an app."""

    app.add_exception_handler(BookingError, booking_error_handler)
