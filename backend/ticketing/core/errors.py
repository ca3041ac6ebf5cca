"""
Error taxonomy for the ticketing API.

Every domain error is an ``HTTPException`` so FastAPI routes and services can
raise it directly; the exception handlers in ``ticketing.api.responses``
render all of them into the standard response envelope.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException, status


@dataclass(frozen=True)
class FieldError:
    """One violated field constraint."""

    field: str
    message: str

    def to_dict(self) -> dict:
        return {"field": self.field, "message": self.message}


class TicketingError(HTTPException):
    """Base class: carries a default status code and user-safe message."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    message: str = "Request could not be processed"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(status_code=type(self).status_code, detail=message or type(self).message)


class EventValidationError(TicketingError):
    """One or more field constraints failed. Nothing was written."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    message = "Validation failed"

    def __init__(self, errors: list[FieldError], message: Optional[str] = None) -> None:
        super().__init__(message)
        self.errors = errors

    @classmethod
    def single(cls, field: str, message: str) -> "EventValidationError":
        return cls([FieldError(field, message)], message)


class EventNotFoundError(TicketingError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, event_id: int) -> None:
        super().__init__(f"Event {event_id} not found")
        self.event_id = event_id


class CategoryNotFoundError(TicketingError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, category_id: int) -> None:
        super().__init__(f"Category {category_id} not found")
        self.category_id = category_id


class VenueNotFoundError(TicketingError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, venue_id: int) -> None:
        super().__init__(f"Venue {venue_id} not found")
        self.venue_id = venue_id


class NotEventOwnerError(TicketingError):
    """Authenticated caller is not the event's organizer."""

    status_code = status.HTTP_403_FORBIDDEN
    message = "You can only modify your own events"


class BookingConflictError(TicketingError):
    status_code = status.HTTP_409_CONFLICT
    message = "Booking could not be completed"
